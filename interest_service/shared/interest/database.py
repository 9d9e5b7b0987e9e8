"""Database model for course interest (waitlist) submissions."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, String

from interest_service.shared.database.database import Base


class InterestSubmission(Base):
    """A single waitlist signup from the landing page form."""
    __tablename__ = "interest_submissions"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    # Unbounded: the HTML-escaped name can be several times the raw length
    name = Column(String, nullable=False)
    # Stored trimmed and lower-cased; uniqueness is the store-level duplicate signal
    email = Column(String(255), unique=True, index=True, nullable=False)
    subscribed_to_updates = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
