#!/usr/bin/env python3
"""Migration script to add a unique index on interest_submissions.email.

Tables created before the index existed only relied on the pre-insert lookup
for uniqueness. The index lets the store reject concurrent duplicates.
Existing duplicate rows (same email after trim/lowercase) must be cleaned up
first; the script reports them and stops if any are found.
"""

import os
import sys

from dotenv import load_dotenv
from sqlalchemy import create_engine, inspect, text

INDEX_NAME = "ix_interest_submissions_email_unique"


def email_is_unique(connection):
    """Check for any unique index or constraint covering exactly the email column."""
    inspector = inspect(connection)
    for index in inspector.get_indexes("interest_submissions"):
        if index.get("unique") and index["column_names"] == ["email"]:
            return True
    for constraint in inspector.get_unique_constraints("interest_submissions"):
        if constraint["column_names"] == ["email"]:
            return True
    return False


def find_duplicate_emails(connection):
    rows = connection.execute(text(
        "SELECT LOWER(TRIM(email)) AS normalized, COUNT(*) AS n FROM interest_submissions "
        "GROUP BY LOWER(TRIM(email)) HAVING COUNT(*) > 1"
    ))
    return [row[0] for row in rows]


def run_migration(engine):
    print("Running migration to add unique email index to interest_submissions...")

    with engine.connect() as connection:
        if not inspect(connection).has_table("interest_submissions"):
            print("✓ Table 'interest_submissions' does not exist yet; init_db will create it with the index.")
            return True

        if email_is_unique(connection):
            print("✓ Column 'email' is already unique.")
            return True

        duplicates = find_duplicate_emails(connection)
        if duplicates:
            print(f"ERROR: {len(duplicates)} email(s) appear more than once; resolve them before migrating:")
            for email in duplicates:
                print(f"  - {email}")
            return False

        print(f"Creating unique index '{INDEX_NAME}'...")
        connection.execute(text(
            f"CREATE UNIQUE INDEX {INDEX_NAME} ON interest_submissions (email)"
        ))
        connection.commit()
        print(f"✓ Successfully created index '{INDEX_NAME}'.")

    print("\n✓ Migration completed successfully!")
    return True


def main():
    load_dotenv()
    database_url = os.environ.get("DATABASE_URL")

    if not database_url:
        print("ERROR: DATABASE_URL environment variable is required.")
        sys.exit(1)

    # Some hosts hand out postgres:// but SQLAlchemy 2.0+ requires postgresql://
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    engine = create_engine(database_url)
    print(f"Database: {engine.url.host}:{engine.url.port}/{engine.url.database}")
    if not run_migration(engine):
        sys.exit(1)


if __name__ == "__main__":
    main()
