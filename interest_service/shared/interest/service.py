"""Submission service: validate, de-duplicate and persist interest form submissions."""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from interest_service.shared.interest.broadcast import SubmissionBroadcast
from interest_service.shared.interest.database import InterestSubmission
from interest_service.shared.interest.exceptions import DuplicateError, StoreError, ValidationError
from interest_service.shared.interest.input_validation import (
    normalize_email,
    sanitize_text,
    validate_interest_form,
)


def find_by_email(db: Session, email: str) -> Optional[InterestSubmission]:
    """
    Look up a submission by exact (already normalized) email.
    None means "not found"; a failing lookup raises StoreError instead.
    """
    try:
        return db.query(InterestSubmission).filter(InterestSubmission.email == email).first()
    except SQLAlchemyError as e:
        logging.error(f"Database check error: {str(e)}", exc_info=True)
        raise StoreError("Failed to check existing submission")


def submit_interest(
    db: Session,
    name: Optional[str],
    email: Optional[str],
    subscribed: bool = False,
    broadcast: Optional[SubmissionBroadcast] = None,
) -> InterestSubmission:
    """
    Create a new interest submission.

    Raises:
        ValidationError: name/email failed validation (carries the field-error map)
        DuplicateError: the normalized email is already registered
        StoreError: the store failed; message is safe to show to users
    """
    errors = validate_interest_form(name, email)
    if errors:
        raise ValidationError(errors)

    clean_email = normalize_email(email)
    # Escaped names may exceed MAX_NAME_LENGTH and are stored whole
    clean_name = sanitize_text(name)

    existing = find_by_email(db, clean_email)
    if existing:
        logging.info(f"Duplicate interest submission for existing id {existing.id}")
        raise DuplicateError(existing.id, existing.created_at)

    submission = InterestSubmission(
        name=clean_name,
        email=clean_email,
        subscribed_to_updates=bool(subscribed),
    )
    try:
        db.add(submission)
        db.commit()
        db.refresh(submission)
    except IntegrityError:
        # Lost the race against a concurrent identical submission
        db.rollback()
        winner = find_by_email(db, clean_email)
        if winner is None:
            logging.error("Integrity error on insert but no conflicting row found", exc_info=True)
            raise StoreError()
        raise DuplicateError(winner.id, winner.created_at)
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Database insert error: {str(e)}", exc_info=True)
        raise StoreError()

    logging.info(f"Interest submission created: {submission.id}")

    if broadcast is not None:
        broadcast.publish(submission)

    return submission


def count_submissions(db: Session) -> int:
    """Total number of submissions, via a count-only query."""
    try:
        return db.query(func.count(InterestSubmission.id)).scalar() or 0
    except SQLAlchemyError as e:
        logging.error(f"Failed to count submissions: {str(e)}", exc_info=True)
        raise StoreError("Failed to get submission count")


def list_submissions(db: Session, limit: int = 50, offset: int = 0) -> List[InterestSubmission]:
    """Newest-first page of submissions, for admins."""
    try:
        return (
            db.query(InterestSubmission)
            .order_by(InterestSubmission.created_at.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        logging.error(f"Failed to list submissions: {str(e)}", exc_info=True)
        raise StoreError("Failed to list submissions")
