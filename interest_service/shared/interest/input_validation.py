"""
Input validation and sanitization for the interest form.
Returns field -> message maps instead of raising, so the API and the
client form can report every field error at once.
"""

import html
import re
from typing import Dict, Optional


MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 255
MAX_EMAIL_LENGTH = 255

# Deliberately loose: something@something.something, no whitespace
EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def sanitize_text(text: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Sanitize text input to prevent XSS attacks.

    Args:
        text: Input text to sanitize
        max_length: Maximum allowed length (None for no limit)

    Returns:
        Trimmed, HTML-escaped text
    """
    if not text:
        return ""

    text = html.escape(text.strip())

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def normalize_email(email: Optional[str]) -> str:
    """Trim and lower-case an email address."""
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def validate_name(name: Optional[str]) -> Optional[str]:
    """Return an error message for the name field, or None if it is valid."""
    name = (name or "").strip()
    if not name:
        return "Name is required"
    if len(name) < MIN_NAME_LENGTH:
        return f"Name must be at least {MIN_NAME_LENGTH} characters long"
    if len(name) > MAX_NAME_LENGTH:
        return f"Name must be less than {MAX_NAME_LENGTH} characters"
    return None


def validate_email(email: Optional[str]) -> Optional[str]:
    """Return an error message for the email field, or None if it is valid."""
    email = normalize_email(email)
    if not email:
        return "Email is required"
    if len(email) > MAX_EMAIL_LENGTH or not is_valid_email(email):
        return "Please enter a valid email address"
    return None


FIELD_VALIDATORS = {
    "name": validate_name,
    "email": validate_email,
}


def validate_interest_form(name: Optional[str], email: Optional[str]) -> Dict[str, str]:
    """
    Validate an interest form submission.

    Args:
        name: Submitter's name (raw, untrimmed)
        email: Submitter's email (raw, untrimmed)

    Returns:
        Mapping of field name to error message; empty when the form is valid
    """
    errors = {}
    for field, value in (("name", name), ("email", email)):
        message = FIELD_VALIDATORS[field](value)
        if message:
            errors[field] = message
    return errors
