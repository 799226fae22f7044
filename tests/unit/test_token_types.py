"""
Unit tests for TokenPair, Session and JWT claim helpers.
"""

from datetime import UTC, datetime, timedelta

import pytest

from authcore.auth_token.claims import decode_claims, token_expiry, token_subject
from authcore.auth_token.types import ANONYMOUS_SESSION, RefreshState, Session, TokenPair
from authcore.constants import DEFAULT_ACCESS_TOKEN_LIFETIME_SECONDS
from tests.fixtures.auth_fixtures import OLD_ACCESS, OLD_REFRESH, make_jwt, make_pair


class TestTokenPair:
    """Test class for TokenPair functionality."""

    def test_rejects_empty_access_token(self):
        with pytest.raises(ValueError):
            TokenPair("", OLD_REFRESH, datetime.now(UTC))

    def test_rejects_naive_expiry(self):
        with pytest.raises(ValueError):
            TokenPair(OLD_ACCESS, OLD_REFRESH, datetime.now())

    def test_is_frozen(self):
        pair = make_pair()
        with pytest.raises(AttributeError):
            pair.access_token = "other"

    def test_from_lifetime_uses_expires_in(self):
        now = datetime(2026, 1, 1, tzinfo=UTC)

        pair = TokenPair.from_lifetime(OLD_ACCESS, OLD_REFRESH, 300, now=now)

        assert pair.expires_at == now + timedelta(seconds=300)

    def test_from_lifetime_falls_back_to_exp_claim(self):
        token = make_jwt(expires_in=3600)

        pair = TokenPair.from_lifetime(token, OLD_REFRESH, None)

        assert pair.expires_at == token_expiry(token)

    def test_from_lifetime_falls_back_to_default_lifetime(self):
        now = datetime(2026, 1, 1, tzinfo=UTC)

        pair = TokenPair.from_lifetime(OLD_ACCESS, OLD_REFRESH, None, now=now)

        assert pair.expires_at == now + timedelta(seconds=DEFAULT_ACCESS_TOKEN_LIFETIME_SECONDS)

    def test_is_expired_honours_skew(self):
        now = datetime(2026, 1, 1, tzinfo=UTC)
        pair = TokenPair(OLD_ACCESS, OLD_REFRESH, now + timedelta(seconds=20))

        assert pair.is_expired(skew_seconds=30, now=now)
        assert not pair.is_expired(skew_seconds=10, now=now)
        assert pair.seconds_remaining(now) == 20

    def test_repr_hides_tokens(self):
        text = repr(make_pair())
        assert OLD_ACCESS not in text
        assert OLD_REFRESH not in text


class TestClaims:
    """Test class for unverified JWT inspection."""

    def test_decode_claims_reads_payload(self):
        claims = decode_claims(make_jwt(sub="alice", role="admin"))
        assert claims["sub"] == "alice"
        assert claims["role"] == "admin"

    def test_decode_claims_ignores_expired_tokens(self):
        assert decode_claims(make_jwt(expires_in=-60))["sub"] == "user-123"

    @pytest.mark.parametrize("token", [None, "", "opaque-token", "a.b.c"])
    def test_decode_claims_of_non_jwt_is_empty(self, token):
        assert decode_claims(token) == {}

    def test_token_subject(self):
        assert token_subject(make_jwt(sub="42")) == "42"
        assert token_subject(make_jwt(sub=None)) is None
        assert token_subject("opaque") is None

    def test_token_expiry_is_utc(self):
        expiry = token_expiry(make_jwt(expires_in=60))
        assert expiry is not None
        assert expiry.tzinfo is UTC


class TestSessionTypes:
    def test_anonymous_session(self):
        assert ANONYMOUS_SESSION == Session(False, "")

    def test_refresh_state_values(self):
        assert [s.value for s in RefreshState] == ["idle", "refreshing", "failed"]
