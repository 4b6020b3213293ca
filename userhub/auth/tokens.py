"""
userhub - JWT Session Tokens

Issues and verifies the pair of signed bearer tokens handed out on login:
- Access token: short-lived (minutes)
- Refresh token: long-lived (days), not valid before the access token expires

Both tokens of a pair share the same "jti", the request correlation id of the
login that produced them. The jti links the pair for tracing; it is not a
uniqueness guarantee across logins.

Security:
- HMAC-SHA256 signatures; the issuer refuses to start with an empty secret
- Expiry and not-before are checked against an injectable clock
- There is no revocation list: a valid token stays valid until it expires
"""

from datetime import datetime, timedelta
from typing import NamedTuple, Optional

from jose import JWTError, jwt
from pydantic import BaseModel, Field

from userhub.clock import Clock, utc_now


ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


class InvalidTokenError(Exception):
    """Raised when a token fails signature, format, issuer or type checks."""
    pass


class ExpiredTokenError(InvalidTokenError):
    """Raised when the current time is past the token's "exp" claim."""
    pass


class TokenNotYetValidError(InvalidTokenError):
    """Raised when the current time is before the token's "nbf" claim."""
    pass


class EmptySecretError(ValueError):
    """Raised when a token issuer is constructed without a signing secret."""
    pass


class SigningError(Exception):
    """Raised when a token cannot be signed."""
    pass


class TokenClaims(BaseModel):
    """
    Decoded JWT claims.

    Attributes:
        iss: Issuer name
        sub: Account ID
        jti: Request correlation id shared by the token pair
        typ: "access" or "refresh"
        iat: Issued-at time
        exp: Expiration time
        nbf: Not-before time (refresh tokens only)
    """
    iss: str
    sub: str = Field(..., description="Account ID")
    jti: str = Field(..., description="Correlation id of the issuing request")
    typ: str = Field(..., description="Token type")
    iat: datetime
    exp: datetime
    nbf: Optional[datetime] = None


class SessionTokens(NamedTuple):
    """Access and refresh token pair returned on login."""
    access_token: str
    refresh_token: str


class TokenIssuer:
    """
    Creates and validates session token pairs.

    Args:
        issuer: Value of the "iss" claim
        secret: HMAC signing key; must not be empty
        access_token_ttl: Access token lifetime
        refresh_token_ttl: Refresh token lifetime
        algorithm: JWS algorithm (HS256)
        clock: Returns the current aware UTC time; injectable for tests

    Raises:
        EmptySecretError: If secret is empty
    """

    def __init__(
        self,
        issuer: str,
        secret: str,
        access_token_ttl: timedelta = timedelta(minutes=15),
        refresh_token_ttl: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
        clock: Optional[Clock] = None,
    ):
        if not secret:
            raise EmptySecretError("empty secret")

        self.issuer = issuer
        self._secret = secret
        self._algorithm = algorithm
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl
        self._clock = clock or utc_now

    def issue_session_tokens(self, account_id: str, correlation_id: str) -> SessionTokens:
        """
        Create an access/refresh token pair for an account.

        The refresh token's "nbf" equals the access token's "exp", so it can
        only be exchanged once the access token has naturally expired.

        Args:
            account_id: Subject of both tokens
            correlation_id: Request id written as "jti" into both tokens

        Returns:
            SessionTokens(access_token, refresh_token)

        Raises:
            SigningError: If encoding fails
        """
        now = self._clock()
        access_exp = now + self.access_token_ttl
        refresh_exp = now + self.refresh_token_ttl

        base = {
            "iss": self.issuer,
            "sub": str(account_id),
            "iat": _timestamp(now),
            "jti": correlation_id,
        }

        access_token = self._encode({
            **base,
            "typ": ACCESS_TOKEN,
            "exp": _timestamp(access_exp),
        })
        refresh_token = self._encode({
            **base,
            "typ": REFRESH_TOKEN,
            "exp": _timestamp(refresh_exp),
            "nbf": _timestamp(access_exp),
        })

        return SessionTokens(access_token, refresh_token)

    def verify(self, token: str, expected_type: Optional[str] = None) -> TokenClaims:
        """
        Verify signature, issuer, type and validity window of a token.

        Args:
            token: Encoded JWT string
            expected_type: Require the "typ" claim to match, if given

        Returns:
            Decoded TokenClaims

        Raises:
            InvalidTokenError: Signature mismatch, malformed token, wrong issuer or type
            ExpiredTokenError: Current time is at or past "exp"
            TokenNotYetValidError: Current time is before "nbf"
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self.issuer,
                # Time-based claims are checked below against the injected clock.
                # jose turns require_<claim> back into verify_<claim>, so
                # presence of exp/sub/jti is enforced by TokenClaims instead.
                options={
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                    "verify_aud": False,
                },
            )
            claims = TokenClaims(**payload)
        except (JWTError, ValueError) as e:
            raise InvalidTokenError(f"Token validation failed: {e}")

        if expected_type is not None and claims.typ != expected_type:
            raise InvalidTokenError(f"Expected {expected_type} token, got {claims.typ}")

        now = self._clock()
        if now >= claims.exp:
            raise ExpiredTokenError("Token has expired")
        if claims.nbf is not None and now < claims.nbf:
            raise TokenNotYetValidError("Token is not yet valid")

        return claims

    def _encode(self, claims: dict) -> str:
        try:
            return jwt.encode(claims, self._secret, algorithm=self._algorithm)
        except JWTError as e:
            raise SigningError(f"encode {claims.get('typ')} token: {e}")


def _timestamp(moment: datetime) -> int:
    return int(moment.timestamp())
