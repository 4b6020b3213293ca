"""
userhub - Account Package

Account lifecycle with:
- bcrypt password hashing
- Access + refresh JWT session tokens
- Conditional-update account store (single-use activation and reset tokens)
- Email activation and password reset links
"""

from userhub.auth.models import Account, AccountSnapshot
from userhub.auth.service import AccountService
from userhub.auth.store import AccountRepository, SQLAccountStore
from userhub.auth.tokens import TokenIssuer, SessionTokens

__all__ = [
    "Account",
    "AccountSnapshot",
    "AccountService",
    "AccountRepository",
    "SQLAccountStore",
    "TokenIssuer",
    "SessionTokens",
]
