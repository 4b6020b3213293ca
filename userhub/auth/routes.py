"""
userhub - Account Routes

API endpoints for the account lifecycle:
- POST  /users                    - Register and mail activation link
- GET   /users/activate/{token}   - Activate account
- POST  /users/login              - Authenticate and issue session tokens
- POST  /users/refresh-token      - Exchange refresh token for a new pair
- GET   /users/me                 - Current account (bearer access token)
- POST  /users/reset-password     - Mail password reset link
- PATCH /users/reset-password     - Set new password with reset token
- POST  /users/check-password     - Score password strength

Handlers are plain functions run in the worker thread pool. Domain errors
raised by the service are turned into responses by the handlers in
userhub.errors.
"""

from fastapi import APIRouter, Depends, Response, status

from userhub.auth.dependencies import (
    get_account_service,
    get_current_account,
    get_request_id,
)
from userhub.auth.models import AccountSnapshot
from userhub.auth.schemas import (
    CredentialsRequest,
    EmailRequest,
    ErrorResponse,
    PasswordRequest,
    PasswordStrengthResponse,
    RefreshTokenRequest,
    ResetPasswordRequest,
    UserResponse,
)
from userhub.auth.service import AccountService


router = APIRouter(prefix="/users", tags=["users"])

_errors = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


@router.post(
    "",
    response_model=UserResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses={**_errors, status.HTTP_409_CONFLICT: {"model": ErrorResponse}},
    summary="Register new account",
)
def register(
    body: CredentialsRequest,
    service: AccountService = Depends(get_account_service),
):
    """
    Register an account and send the activation email.

    The account stays inactive until the emailed link is followed.
    """
    account = service.register(body.email, body.password)
    return UserResponse.from_account(account)


@router.get(
    "/activate/{token}",
    response_model=UserResponse,
    response_model_exclude_none=True,
    responses={**_errors, status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
    summary="Activate account",
)
def activate(
    token: str,
    service: AccountService = Depends(get_account_service),
):
    """Consume the activation token from the registration email."""
    account = service.activate(token)
    return UserResponse.from_account(account)


@router.post(
    "/login",
    response_model=UserResponse,
    response_model_exclude_none=True,
    responses={**_errors, status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}},
    summary="Authenticate and issue session tokens",
)
def login(
    body: CredentialsRequest,
    request_id: str = Depends(get_request_id),
    service: AccountService = Depends(get_account_service),
):
    """
    Authenticate with email and password.

    Returns:
        UserResponse with authToken and refreshToken; both tokens carry
        the request id as "jti"
    """
    account, tokens = service.login(body.email, body.password, request_id)
    return UserResponse.from_account(account, tokens)


@router.post(
    "/refresh-token",
    response_model=UserResponse,
    response_model_exclude_none=True,
    responses={**_errors, status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}},
    summary="Exchange refresh token for a new token pair",
)
def refresh_token(
    body: RefreshTokenRequest,
    request_id: str = Depends(get_request_id),
    service: AccountService = Depends(get_account_service),
):
    """Issue a new token pair once the previous access token has expired."""
    account, tokens = service.refresh_session(body.refresh_token, request_id)
    return UserResponse.from_account(account, tokens)


@router.get(
    "/me",
    response_model=UserResponse,
    response_model_exclude_none=True,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse}},
    summary="Get current account",
)
def me(account: AccountSnapshot = Depends(get_current_account)):
    """Account identified by the bearer access token."""
    return UserResponse.from_account(account)


@router.post(
    "/reset-password",
    status_code=status.HTTP_202_ACCEPTED,
    response_class=Response,
    responses=_errors,
    summary="Request password reset email",
)
def request_password_reset(
    body: EmailRequest,
    service: AccountService = Depends(get_account_service),
):
    """
    Send a password reset link.

    Always answers 202 for a well-formed email, whether or not an active
    account exists for it.
    """
    service.request_password_reset(body.email)
    return Response(status_code=status.HTTP_202_ACCEPTED)


@router.patch(
    "/reset-password",
    response_model=UserResponse,
    response_model_exclude_none=True,
    responses={**_errors, status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
    summary="Set new password with reset token",
)
def reset_password(
    body: ResetPasswordRequest,
    service: AccountService = Depends(get_account_service),
):
    """Replace the password; the client must log in again afterwards."""
    account = service.reset_password(body.reset_token, body.password)
    return UserResponse.from_account(account)


@router.post(
    "/check-password",
    response_model=PasswordStrengthResponse,
    responses={status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}},
    summary="Score password strength",
)
def check_password(
    body: PasswordRequest,
    service: AccountService = Depends(get_account_service),
):
    """Return the password's strength score from 0 (weak) to 4 (strong)."""
    return PasswordStrengthResponse(strength=service.check_password_strength(body.password))
