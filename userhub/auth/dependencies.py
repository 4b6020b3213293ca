"""
userhub - Request Dependencies

FastAPI dependencies resolving per-request collaborators:
- the AccountService built at startup (app.state.account_service)
- the request correlation id set by RequestContextMiddleware
- the account behind a bearer access token

Usage:
    @router.get("/me")
    def me(account: AccountSnapshot = Depends(get_current_account)):
        ...
"""

import uuid
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from userhub.auth.models import AccountSnapshot
from userhub.auth.service import AccountService


# HTTP Bearer scheme for JWT extraction; missing headers are reported by the service
security = HTTPBearer(auto_error=False)


def get_account_service(request: Request) -> AccountService:
    """Get the account service from app state."""
    return request.app.state.account_service


def get_request_id(request: Request) -> str:
    """Correlation id of the current request."""
    request_id = getattr(request.state, "request_id", None)
    return request_id or str(uuid.uuid4())


def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    service: AccountService = Depends(get_account_service),
) -> AccountSnapshot:
    """
    Validate the bearer access token and return its account.

    Raises:
        AuthenticationError: Missing, invalid or expired token
    """
    token = credentials.credentials if credentials else ""
    return service.current_account(token)
