"""
Credential input validators — framework-agnostic, pure functions.

The request DTOs call these from pydantic field validators; each returns a
bool (or a normalized value) and never raises for ordinary bad input.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

from email_validator import EmailNotValidError, validate_email as _validate_email

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)[A-Za-z\d@$!%*?&]{8,}$")
CODE_PATTERN = re.compile(r"^[0-9]{6}$")

EMAIL_MIN_LENGTH = 6
EMAIL_MAX_LENGTH = 60
PASSWORD_MIN_LENGTH = 8
ALLOWED_EMAIL_TLDS: tuple[str, ...] = ("com", "net", "org", "edu", "gov")


def normalize_email(email: str) -> str:
    """Trim and lowercase *email*; the result is the account identity key."""
    return email.strip().lower()


def validate_email(
    email: str, allowed_tlds: Sequence[str] = ALLOWED_EMAIL_TLDS
) -> Optional[str]:
    """Return an error message for *email*, or ``None`` when it is acceptable.

    Rules (checked in order):
    - length between 6 and 60 characters
    - RFC-shaped address (``email-validator``, no DNS lookup)
    - top-level domain in *allowed_tlds*
    """
    if len(email) < EMAIL_MIN_LENGTH:
        return f"Email must have at least {EMAIL_MIN_LENGTH} characters"
    if len(email) > EMAIL_MAX_LENGTH:
        return f"Email must have at most {EMAIL_MAX_LENGTH} characters"
    try:
        result = _validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return "Email must be a valid email"
    tld = result.domain.rsplit(".", 1)[-1].lower()
    if tld not in allowed_tlds:
        return "Email must be a valid email"
    return None


def validate_password(password: str) -> bool:
    """Return True if *password* meets the account password policy.

    Rules:
    - At least 8 characters
    - At least one lowercase letter, one uppercase letter and one digit
    - Only letters, digits and ``@$!%*?&``
    """
    return bool(PASSWORD_PATTERN.fullmatch(password))


def validate_code(code: str) -> bool:
    """Return True if *code* is exactly six decimal digits."""
    return bool(CODE_PATTERN.fullmatch(code))
