"""
userhub - Input Validators

Email format and password strength checks used by the account service.
Password strength is the zxcvbn score (0-4); anything below
MIN_PASSWORD_STRENGTH is rejected as weak.
"""

import re

from zxcvbn import zxcvbn


MIN_PASSWORD_STRENGTH = 3

# zxcvbn's matchers are quadratic; only this prefix is scored
_MAX_SCORED_LENGTH = 72

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")


def normalize_email(email: str) -> str:
    """Strip surrounding whitespace and lower-case an email address."""
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    """Basic email format validation (allows .local for development)."""
    return bool(_EMAIL_RE.match(email))


def password_strength(password: str) -> int:
    """
    Estimate password strength.

    Returns:
        zxcvbn score from 0 (guessable) to 4 (very unguessable)
    """
    if not password:
        return 0
    return zxcvbn(password[:_MAX_SCORED_LENGTH])["score"]


def is_weak_password(password: str) -> bool:
    return password_strength(password) < MIN_PASSWORD_STRENGTH
