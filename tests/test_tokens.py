"""
userhub - Session Token Tests

Tests for access/refresh token issuance and verification:
- Claims written into both tokens of a pair
- Expiry and not-before checked against the injected clock
- Signature, issuer and type checks

Run with: pytest tests/test_tokens.py -v
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from jose import jwt

from userhub.auth.tokens import (
    ACCESS_TOKEN,
    REFRESH_TOKEN,
    EmptySecretError,
    ExpiredTokenError,
    InvalidTokenError,
    TokenIssuer,
    TokenNotYetValidError,
)
from userhub.clock import utc_now
from tests.conftest import TEST_ISSUER, TEST_SECRET, FrozenClock


def _raw_claims(token: str) -> dict:
    return jwt.get_unverified_claims(token)


# =============================================================================
# ISSUANCE TESTS
# =============================================================================

class TestIssueSessionTokens:

    def test_pair_carries_subject_and_correlation_id(self, token_issuer):
        """Both tokens name the account and the issuing request."""
        account_id = str(uuid4())
        tokens = token_issuer.issue_session_tokens(account_id, "req-123")

        for token in tokens:
            claims = _raw_claims(token)
            assert claims["sub"] == account_id
            assert claims["jti"] == "req-123"
            assert claims["iss"] == TEST_ISSUER

    def test_token_types(self, token_issuer):
        tokens = token_issuer.issue_session_tokens(str(uuid4()), "req")

        assert _raw_claims(tokens.access_token)["typ"] == ACCESS_TOKEN
        assert _raw_claims(tokens.refresh_token)["typ"] == REFRESH_TOKEN

    def test_lifetimes(self, token_issuer, clock):
        """Access lives 15 minutes, refresh 7 days, both from issue time."""
        issued_at = int(clock().timestamp())
        tokens = token_issuer.issue_session_tokens(str(uuid4()), "req")

        access = _raw_claims(tokens.access_token)
        refresh = _raw_claims(tokens.refresh_token)

        assert access["iat"] == issued_at
        assert access["exp"] == issued_at + 15 * 60
        assert refresh["exp"] == issued_at + 7 * 24 * 3600

    def test_refresh_not_before_is_access_expiry(self, token_issuer):
        tokens = token_issuer.issue_session_tokens(str(uuid4()), "req")

        access = _raw_claims(tokens.access_token)
        refresh = _raw_claims(tokens.refresh_token)

        assert refresh["nbf"] == access["exp"]
        assert "nbf" not in access

    def test_empty_secret_rejected(self):
        with pytest.raises(EmptySecretError):
            TokenIssuer(issuer=TEST_ISSUER, secret="")


# =============================================================================
# VERIFICATION TESTS
# =============================================================================

class TestVerifyToken:

    def test_verify_access_token(self, token_issuer):
        account_id = str(uuid4())
        tokens = token_issuer.issue_session_tokens(account_id, "req-1")

        claims = token_issuer.verify(tokens.access_token, expected_type=ACCESS_TOKEN)

        assert claims.sub == account_id
        assert claims.jti == "req-1"
        assert claims.typ == ACCESS_TOKEN

    def test_access_token_expires(self, token_issuer, clock):
        """Access token is rejected once the clock reaches exp."""
        tokens = token_issuer.issue_session_tokens(str(uuid4()), "req")

        clock.advance(minutes=14, seconds=59)
        token_issuer.verify(tokens.access_token, expected_type=ACCESS_TOKEN)

        clock.advance(seconds=1)
        with pytest.raises(ExpiredTokenError):
            token_issuer.verify(tokens.access_token, expected_type=ACCESS_TOKEN)

    def test_refresh_token_not_yet_valid(self, token_issuer, clock):
        """Refresh token cannot be used while the access token is still valid."""
        tokens = token_issuer.issue_session_tokens(str(uuid4()), "req")

        with pytest.raises(TokenNotYetValidError):
            token_issuer.verify(tokens.refresh_token, expected_type=REFRESH_TOKEN)

        clock.advance(minutes=15)
        claims = token_issuer.verify(tokens.refresh_token, expected_type=REFRESH_TOKEN)
        assert claims.typ == REFRESH_TOKEN

    def test_refresh_token_expires(self, token_issuer, clock):
        tokens = token_issuer.issue_session_tokens(str(uuid4()), "req")

        clock.advance(days=7)
        with pytest.raises(ExpiredTokenError):
            token_issuer.verify(tokens.refresh_token, expected_type=REFRESH_TOKEN)

    def test_wrong_type_rejected(self, token_issuer, clock):
        """An access token cannot stand in for a refresh token and vice versa."""
        tokens = token_issuer.issue_session_tokens(str(uuid4()), "req")

        with pytest.raises(InvalidTokenError):
            token_issuer.verify(tokens.access_token, expected_type=REFRESH_TOKEN)

        clock.advance(minutes=15)
        with pytest.raises(InvalidTokenError):
            token_issuer.verify(tokens.refresh_token, expected_type=ACCESS_TOKEN)

    def test_tampered_token_rejected(self, token_issuer):
        tokens = token_issuer.issue_session_tokens(str(uuid4()), "req")
        header, payload, signature = tokens.access_token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])

        with pytest.raises(InvalidTokenError):
            token_issuer.verify(tampered)

    def test_other_secret_rejected(self, token_issuer, clock):
        other = TokenIssuer(issuer=TEST_ISSUER, secret="another-secret", clock=clock)
        tokens = other.issue_session_tokens(str(uuid4()), "req")

        with pytest.raises(InvalidTokenError):
            token_issuer.verify(tokens.access_token)

    def test_other_issuer_rejected(self, token_issuer, clock):
        other = TokenIssuer(issuer="someone-else", secret=TEST_SECRET, clock=clock)
        tokens = other.issue_session_tokens(str(uuid4()), "req")

        with pytest.raises(InvalidTokenError):
            token_issuer.verify(tokens.access_token)

    def test_garbage_rejected(self, token_issuer):
        with pytest.raises(InvalidTokenError):
            token_issuer.verify("not.a.jwt")

    @pytest.mark.parametrize("missing", ["sub", "jti", "exp"])
    def test_missing_claim_rejected(self, token_issuer, clock, missing):
        """Tokens lacking a required claim are invalid, even if correctly signed."""
        now = int(clock().timestamp())
        claims = {
            "iss": TEST_ISSUER,
            "sub": str(uuid4()),
            "jti": "req",
            "typ": ACCESS_TOKEN,
            "iat": now,
            "exp": now + 60,
        }
        del claims[missing]
        token = jwt.encode(claims, TEST_SECRET, algorithm="HS256")

        with pytest.raises(InvalidTokenError):
            token_issuer.verify(token)

    def test_custom_ttl(self, clock):
        issuer = TokenIssuer(
            issuer=TEST_ISSUER,
            secret=TEST_SECRET,
            access_token_ttl=timedelta(minutes=1),
            clock=clock,
        )
        tokens = issuer.issue_session_tokens(str(uuid4()), "req")

        clock.advance(minutes=1)
        with pytest.raises(ExpiredTokenError):
            issuer.verify(tokens.access_token)


# =============================================================================
# CLOCK SOURCE TESTS
# =============================================================================

class TestClockSource:
    """Expiry is judged against the issuer's clock, never the library's."""

    def test_expired_with_wall_clock(self):
        """A token issued an hour ago is expired for a default-clock issuer."""
        past = TokenIssuer(
            issuer=TEST_ISSUER,
            secret=TEST_SECRET,
            clock=lambda: utc_now() - timedelta(hours=1),
        )
        tokens = past.issue_session_tokens(str(uuid4()), "req")

        issuer = TokenIssuer(issuer=TEST_ISSUER, secret=TEST_SECRET)

        with pytest.raises(ExpiredTokenError):
            issuer.verify(tokens.access_token, expected_type=ACCESS_TOKEN)

    def test_fresh_token_with_wall_clock(self):
        issuer = TokenIssuer(issuer=TEST_ISSUER, secret=TEST_SECRET)
        tokens = issuer.issue_session_tokens(str(uuid4()), "req")

        claims = issuer.verify(tokens.access_token, expected_type=ACCESS_TOKEN)

        assert claims.typ == ACCESS_TOKEN

    def test_old_token_valid_under_old_clock(self):
        """A token from years ago is still valid when the clock says so."""
        clock = FrozenClock(datetime(2001, 6, 1, tzinfo=timezone.utc))
        issuer = TokenIssuer(issuer=TEST_ISSUER, secret=TEST_SECRET, clock=clock)
        tokens = issuer.issue_session_tokens(str(uuid4()), "req")

        clock.advance(minutes=15)
        claims = issuer.verify(tokens.refresh_token, expected_type=REFRESH_TOKEN)

        assert claims.typ == REFRESH_TOKEN

    def test_current_token_expired_under_future_clock(self):
        tokens = TokenIssuer(issuer=TEST_ISSUER, secret=TEST_SECRET).issue_session_tokens(
            str(uuid4()), "req"
        )
        future = TokenIssuer(
            issuer=TEST_ISSUER,
            secret=TEST_SECRET,
            clock=lambda: utc_now() + timedelta(days=1),
        )

        with pytest.raises(ExpiredTokenError):
            future.verify(tokens.access_token)
