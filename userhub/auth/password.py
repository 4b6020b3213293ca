"""
userhub - Password Hashing Utilities

Password hashing using bcrypt with a fixed work factor.

Security:
- Never log or expose plaintext passwords
- bcrypt includes salt automatically (same input, different hash)
- Verification is constant-time with respect to the candidate password
"""

import bcrypt


# Work factor for bcrypt (2^12 = 4096 iterations)
BCRYPT_WORK_FACTOR = 12

# bcrypt ignores or refuses input past this many bytes
MAX_PASSWORD_BYTES = 72


class EmptyPasswordError(ValueError):
    """Raised when asked to hash an empty password."""
    pass


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plaintext password

    Returns:
        bcrypt hash string ($2b$<cost>$<salt><digest>)

    Raises:
        EmptyPasswordError: If password is empty

    Example:
        >>> hashed = hash_password("SecureP@ss123")
        >>> hashed.startswith("$2b$")
        True
    """
    if not password:
        raise EmptyPasswordError("empty password")

    salt = bcrypt.gensalt(rounds=BCRYPT_WORK_FACTOR)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    Never raises: empty inputs and malformed hashes verify as False.

    Args:
        plain_password: Plaintext password to verify
        hashed_password: bcrypt hash to check against

    Returns:
        True if password matches, False otherwise
    """
    if not plain_password or not hashed_password:
        return False

    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except (ValueError, TypeError):
        # Invalid hash format
        return False


def is_password_too_long(password: str) -> bool:
    """Whether the UTF-8 encoding exceeds what bcrypt can hash."""
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


# Verified against when an email is unknown so that login timing does not
# reveal whether the account exists.
DUMMY_PASSWORD_HASH = hash_password("userhub-timing-equalizer")
