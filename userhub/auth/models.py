"""
userhub - Account Database Model

SQLModel table for user accounts and the immutable snapshot handed to
every component outside the store.

Security:
- Passwords stored as bcrypt hashes only
- Activation and reset tokens are unique, single-use lookup keys
- All timestamps in UTC
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, String, Boolean, DateTime


class Account(SQLModel, table=True):
    """
    User account row.

    Lifecycle:
        PendingActivation: active=False, activation_token set
        Active:            active=True, activation_token NULL
        Active+Reset:      active=True, password_reset_token set

    Attributes:
        id: Unique identifier (UUIDv4), immutable
        email: Login identifier (unique, stored lower-cased)
        password_hash: bcrypt hash (never store plaintext)
        activation_token: Single-use token proving control of the email
        password_reset_token: Single-use token authorizing a password change
        activated_at: When the activation token was consumed
        active: Whether the account completed activation
        created_at: Account creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)
    """
    __tablename__ = "accounts"

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        description="Unique account identifier"
    )
    email: str = Field(
        sa_column=Column(String(255), unique=True, index=True, nullable=False),
        description="Account email address (login identifier)"
    )
    password_hash: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="bcrypt password hash"
    )
    activation_token: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), unique=True, nullable=True),
        description="Pending activation token"
    )
    password_reset_token: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), unique=True, nullable=True),
        description="Open password reset token"
    )
    activated_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
        description="Activation timestamp"
    )
    active: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False),
        description="Whether the account is activated"
    )
    created_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Account creation timestamp"
    )
    updated_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
        description="Last update timestamp"
    )


@dataclass(frozen=True)
class AccountSnapshot:
    """
    Read-only copy of an account row.

    None always means "absent" for the optional fields. The password hash
    is kept out of repr and is only read for credential verification.
    """
    id: UUID
    email: str
    password_hash: str = field(repr=False)
    active: bool
    created_at: datetime
    activation_token: Optional[str] = field(default=None, repr=False)
    password_reset_token: Optional[str] = field(default=None, repr=False)
    activated_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, account: Account) -> "AccountSnapshot":
        return cls(
            id=account.id,
            email=account.email,
            password_hash=account.password_hash,
            active=account.active,
            created_at=account.created_at,
            activation_token=account.activation_token,
            password_reset_token=account.password_reset_token,
            activated_at=account.activated_at,
            updated_at=account.updated_at,
        )
