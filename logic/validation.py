"""
logic/validation.py
Pure logic: normalizes and validates waitlist emails before any storage work.
No I/O. No business logic.
"""

import re

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

MAX_EMAIL_LENGTH = 254

EMAIL_REQUIRED = "Email is required"
EMAIL_INVALID = "Please enter a valid email address"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def validate_email(email: str) -> str:
    """
    Validates a waitlist email.

    Rules:
    - missing / empty -> "Email is required"
    - lowercase + strip
    - must look like local@domain.tld (no whitespace, single "@")
    - at most 254 characters

    Returns:
        the normalized email.

    Raises:
        ValueError with a user-facing message if the email is invalid.
    """
    if not email:
        raise ValueError(EMAIL_REQUIRED)

    cleaned = normalize_email(email)

    if len(cleaned) > MAX_EMAIL_LENGTH:
        raise ValueError(EMAIL_INVALID)

    if not EMAIL_PATTERN.fullmatch(cleaned):
        raise ValueError(EMAIL_INVALID)

    return cleaned
