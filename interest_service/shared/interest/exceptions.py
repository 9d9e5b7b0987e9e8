"""Error taxonomy for interest submissions."""

from datetime import datetime
from typing import Dict, Optional


class InterestServiceError(Exception):
    """Base class. Each subclass maps to one HTTP status and a client-safe message."""
    status_code = 500
    error = "Internal server error"
    default_message = "An unexpected error occurred. Please try again."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_detail(self) -> dict:
        return {
            "success": False,
            "error": self.error,
            "message": self.message,
        }


class ValidationError(InterestServiceError):
    status_code = 400
    error = "Validation failed"
    default_message = "Please check your input and try again"

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        super().__init__(message)

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["errors"] = self.errors
        return detail


class DuplicateError(InterestServiceError):
    status_code = 409
    error = "Email already exists"
    default_message = "This email is already registered for interest updates"

    def __init__(self, existing_id: str, submitted_at: Optional[datetime] = None):
        self.existing_id = existing_id
        self.submitted_at = submitted_at
        super().__init__()

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["data"] = {
            "existingSubmission": {
                "id": self.existing_id,
                "submittedAt": self.submitted_at.isoformat() if self.submitted_at else None,
            }
        }
        return detail


class RateLimitError(InterestServiceError):
    status_code = 429
    error = "Rate limit exceeded"
    default_message = "Too many submissions. Please try again later."

    def __init__(self, retry_after: int, reset_at: datetime):
        self.retry_after = retry_after
        self.reset_at = reset_at
        super().__init__()

    def to_detail(self) -> dict:
        detail = super().to_detail()
        # Minutes, for display on the landing page
        detail["retryAfter"] = max(1, -(-self.retry_after // 60))
        return detail


class StoreError(InterestServiceError):
    status_code = 500
    error = "Database error"
    default_message = "Failed to submit interest form"


class UnexpectedError(InterestServiceError):
    status_code = 500
    error = "Internal server error"
