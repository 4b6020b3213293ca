"""
userhub - Account Request/Response Schemas

Pydantic models for API request parsing and response serialization.
Separates API contracts from database models.

Request fields default to empty strings so that missing values reach the
service and are reported with a specific message ("empty email", ...)
instead of a generic body validation error.
"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field

from userhub.auth.models import AccountSnapshot
from userhub.auth.tokens import SessionTokens


class CredentialsRequest(BaseModel):
    """Request body for POST /users and POST /users/login."""
    email: str = Field(default="", description="Account email address")
    password: str = Field(default="", description="Plaintext password")


class EmailRequest(BaseModel):
    """Request body for POST /users/reset-password."""
    email: str = Field(default="", description="Account email address")


class PasswordRequest(BaseModel):
    """Request body for POST /users/check-password."""
    password: str = Field(default="", description="Password to score")


class ResetPasswordRequest(BaseModel):
    """Request body for PATCH /users/reset-password."""
    reset_token: str = Field(
        default="",
        validation_alias=AliasChoices("resetToken", "passwordResetToken"),
        description="Token from the password reset email",
    )
    password: str = Field(default="", description="New password")


class RefreshTokenRequest(BaseModel):
    """Request body for POST /users/refresh-token."""
    refresh_token: str = Field(
        default="",
        validation_alias=AliasChoices("refreshToken", "refresh_token"),
        description="Refresh token issued on login",
    )


class UserResponse(BaseModel):
    """
    Account data returned to clients.

    The account id, password hash and lifecycle tokens are never included.
    """
    email: str
    created: datetime
    updated: Optional[datetime] = None
    auth_token: Optional[str] = Field(default=None, serialization_alias="authToken")
    refresh_token: Optional[str] = Field(default=None, serialization_alias="refreshToken")

    @classmethod
    def from_account(
        cls, account: AccountSnapshot, tokens: Optional[SessionTokens] = None
    ) -> "UserResponse":
        return cls(
            email=account.email,
            created=account.created_at,
            updated=account.updated_at,
            auth_token=tokens.access_token if tokens else None,
            refresh_token=tokens.refresh_token if tokens else None,
        )


class PasswordStrengthResponse(BaseModel):
    """Response body for POST /users/check-password."""
    strength: int = Field(..., ge=0, le=4, description="zxcvbn score")


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
