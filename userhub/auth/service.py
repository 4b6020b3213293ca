"""
userhub - Account Lifecycle Service

Request-level orchestration of the account lifecycle:

    register                validate -> hash -> create -> mail activation link
    activate                consume activation token
    login                   find -> verify password -> check active -> issue tokens
    request_password_reset  issue reset token -> mail reset link
    reset_password          validate -> hash -> consume reset token
    refresh_session         verify refresh token -> issue new token pair
    current_account         verify access token -> load account

The service is stateless; every call is independent and all cross-request
coordination is left to the store's conditional updates. Store errors are
translated into the typed errors of userhub.errors here, and nowhere else.
"""

from typing import Optional, Tuple
from uuid import UUID

from userhub.auth.models import AccountSnapshot
from userhub.auth.password import (
    DUMMY_PASSWORD_HASH,
    hash_password,
    is_password_too_long,
    verify_password,
)
from userhub.auth.store import AccountNotFoundError, AccountRepository, DuplicateEmailError
from userhub.auth.tokens import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    ExpiredTokenError,
    InvalidTokenError,
    SessionTokens,
    SigningError,
    TokenClaims,
    TokenIssuer,
    TokenNotYetValidError,
)
from userhub.auth.validators import (
    is_valid_email,
    is_weak_password,
    normalize_email,
    password_strength,
)
from userhub.errors import (
    AuthenticationError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from userhub.logging_config import get_logger
from userhub.mail import Mailer, MailError


log = get_logger(__name__)

ACTIVATION_SUBJECT = "Account activation"
PASSWORD_RESET_SUBJECT = "Password reset"


class AccountService:
    """
    Account lifecycle orchestrator.

    Args:
        repository: Account state store
        token_issuer: Session token issuer/verifier
        mailer: Outbound mail transport
        external_url: Public base URL of this service (no trailing slash)
        frontend_password_reset_path: Frontend route that receives reset tokens
    """

    def __init__(
        self,
        repository: AccountRepository,
        token_issuer: TokenIssuer,
        mailer: Mailer,
        external_url: str,
        frontend_password_reset_path: str,
    ):
        self.repository = repository
        self.token_issuer = token_issuer
        self.mailer = mailer
        self.external_url = external_url.rstrip("/")
        self.frontend_password_reset_path = frontend_password_reset_path.strip("/")

    # =========================================================================
    # Registration and activation
    # =========================================================================

    def register(self, email: str, password: str) -> AccountSnapshot:
        """
        Register a new account and mail its activation link.

        If the email cannot be sent the account row is kept in the
        pending state and an InternalError is raised.

        Raises:
            ValidationError: Empty/invalid email, empty, too long or weak password
            ConflictError: Email already registered
            InternalError: Store or mail failure
        """
        email = _require_email(email)
        _require_strong_password(password)

        try:
            account = self.repository.create_account(email, hash_password(password))
        except DuplicateEmailError:
            raise ConflictError("already registered")

        link = f"{self.external_url}/users/activate/{account.activation_token}"
        self._send(account.email, ACTIVATION_SUBJECT, link, "send_activation_link")

        log.info("account_registered", account_id=str(account.id))
        return account

    def activate(self, activation_token: str) -> AccountSnapshot:
        """
        Consume an activation token.

        Raises:
            ValidationError: Empty token
            NotFoundError: Unknown token or account already active
        """
        if not activation_token or not activation_token.strip():
            raise ValidationError("empty activation token")

        try:
            account = self.repository.activate_account(activation_token.strip())
        except AccountNotFoundError:
            raise NotFoundError("invalid activation token")

        log.info("account_activated", account_id=str(account.id))
        return account

    # =========================================================================
    # Authentication
    # =========================================================================

    def login(
        self, email: str, password: str, correlation_id: str
    ) -> Tuple[AccountSnapshot, SessionTokens]:
        """
        Authenticate with email and password and issue session tokens.

        Unknown email and wrong password produce the same error; a correct
        password on a pending account reports that activation is required.

        Raises:
            ValidationError: Empty/invalid email or empty password
            AuthenticationError: Bad credentials or account not activated
            InternalError: Token signing failure
        """
        email = _require_email(email)
        if not password:
            raise ValidationError("empty password")

        try:
            account: Optional[AccountSnapshot] = self.repository.find_account_by_email(email)
        except AccountNotFoundError:
            account = None

        # Unknown emails still pay for one bcrypt comparison
        password_hash = account.password_hash if account else DUMMY_PASSWORD_HASH
        password_ok = verify_password(password, password_hash)
        if account is None or not password_ok:
            log.info("login_failed", reason="invalid_credentials")
            raise AuthenticationError("invalid credentials")

        if not account.active:
            log.info("login_failed", reason="not_activated", account_id=str(account.id))
            raise AuthenticationError("account not activated")

        tokens = self._issue_tokens(account, correlation_id)
        log.info("login_succeeded", account_id=str(account.id))
        return account, tokens

    def refresh_session(
        self, refresh_token: str, correlation_id: str
    ) -> Tuple[AccountSnapshot, SessionTokens]:
        """
        Exchange a refresh token for a new token pair.

        The refresh token is not consumed; it stays valid until it expires.

        Raises:
            ValidationError: Empty token
            AuthenticationError: Invalid, expired or not-yet-valid token, or
                the account no longer exists or is inactive
        """
        if not refresh_token:
            raise ValidationError("empty refresh token")

        claims = self._verify(refresh_token, REFRESH_TOKEN)
        account = self._load_subject(claims, "invalid refresh token")

        tokens = self._issue_tokens(account, correlation_id)
        log.info("session_refreshed", account_id=str(account.id), previous_jti=claims.jti)
        return account, tokens

    def current_account(self, access_token: str) -> AccountSnapshot:
        """
        Resolve the account an access token was issued to.

        Raises:
            AuthenticationError: Missing, invalid or expired token, or unknown account
        """
        if not access_token:
            raise AuthenticationError("missing authentication token")

        claims = self._verify(access_token, ACCESS_TOKEN)
        return self._load_subject(claims, "invalid access token")

    # =========================================================================
    # Passwords
    # =========================================================================

    def check_password_strength(self, password: str) -> int:
        """
        Score a password from 0 to 4 without touching any state.

        Raises:
            ValidationError: Empty password
        """
        if not password:
            raise ValidationError("empty password")
        return password_strength(password)

    def request_password_reset(self, email: str) -> None:
        """
        Issue a password reset token and mail the reset link.

        Unknown or inactive emails are not reported to the caller, so the
        response does not disclose whether an account exists.

        Raises:
            ValidationError: Empty/invalid email
            InternalError: Store or mail failure
        """
        email = _require_email(email)

        try:
            account = self.repository.issue_password_reset_token(email)
        except AccountNotFoundError:
            log.info("password_reset_skipped", reason="no_active_account")
            return

        link = (
            f"{self.external_url}/{self.frontend_password_reset_path}/"
            f"{account.password_reset_token}"
        )
        self._send(account.email, PASSWORD_RESET_SUBJECT, link, "send_password_reset_link")
        log.info("password_reset_requested", account_id=str(account.id))

    def reset_password(self, reset_token: str, password: str) -> AccountSnapshot:
        """
        Replace the password of the account holding a reset token.

        No session tokens are issued; the caller must log in again.

        Raises:
            ValidationError: Empty token, empty, too long or weak password
            NotFoundError: Unknown or already consumed token
        """
        if not reset_token or not reset_token.strip():
            raise ValidationError("empty password reset token")
        _require_strong_password(password)

        try:
            account = self.repository.consume_password_reset_token(
                reset_token.strip(), hash_password(password)
            )
        except AccountNotFoundError:
            raise NotFoundError("invalid password reset token")

        log.info("password_reset", account_id=str(account.id))
        return account

    # =========================================================================
    # Helpers
    # =========================================================================

    def _send(self, recipient: str, subject: str, body: str, action: str) -> None:
        try:
            self.mailer.send(recipient, subject, body)
        except MailError as e:
            log.warning(action, error=str(e))
            raise InternalError()

    def _issue_tokens(self, account: AccountSnapshot, correlation_id: str) -> SessionTokens:
        try:
            return self.token_issuer.issue_session_tokens(str(account.id), correlation_id)
        except SigningError as e:
            log.warning("issue_session_tokens", error=str(e), account_id=str(account.id))
            raise InternalError()

    def _verify(self, token: str, expected_type: str) -> TokenClaims:
        try:
            return self.token_issuer.verify(token, expected_type=expected_type)
        except ExpiredTokenError:
            raise AuthenticationError(f"{expected_type} token expired")
        except TokenNotYetValidError:
            raise AuthenticationError(f"{expected_type} token not yet valid")
        except InvalidTokenError:
            raise AuthenticationError(f"invalid {expected_type} token")

    def _load_subject(self, claims: TokenClaims, message: str) -> AccountSnapshot:
        try:
            account = self.repository.find_account_by_id(UUID(claims.sub))
        except (AccountNotFoundError, ValueError):
            raise AuthenticationError(message)

        if not account.active:
            raise AuthenticationError(message)
        return account


def _require_email(email: str) -> str:
    email = normalize_email(email or "")
    if not email:
        raise ValidationError("empty email")
    if not is_valid_email(email):
        raise ValidationError("invalid email")
    return email


def _require_strong_password(password: str) -> None:
    if not password:
        raise ValidationError("empty password")
    if is_password_too_long(password):
        raise ValidationError("password too long")
    if is_weak_password(password):
        raise ValidationError("weak password")
