"""Shared types for the auth_token package."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from ..constants import DEFAULT_ACCESS_TOKEN_LIFETIME_SECONDS, TOKEN_EXPIRY_SKEW_SECONDS
from ..utils import utc_now
from .claims import token_expiry


class RefreshState(str, Enum):
    """Enumeration of refresh coordinator states.

    Attributes:
        IDLE: No refresh in flight; a 401 may start one.
        REFRESHING: One refresh call is in flight; further 401s queue behind it.
        FAILED: The last refresh failed; terminal until the session is reset.
    """

    IDLE = "idle"
    REFRESHING = "refreshing"
    FAILED = "failed"


@dataclass(frozen=True)
class TokenPair:
    """Immutable access/refresh token pair.

    Frozen so that a pair can only be replaced as a whole; readers holding a
    reference never see the access token of one pair next to the refresh
    token of another.

    Attributes:
        access_token: Short-lived bearer credential.
        refresh_token: Credential exchanged for a new pair.
        expires_at: Timezone-aware expiry of the access token.
    """

    access_token: str
    refresh_token: str
    expires_at: datetime

    def __post_init__(self) -> None:
        if not self.access_token:
            raise ValueError("access_token must be non-empty")
        if self.expires_at.tzinfo is None:
            raise ValueError("expires_at must be timezone-aware")

    @classmethod
    def from_lifetime(
        cls,
        access_token: str,
        refresh_token: str,
        expires_in: int | float | None,
        *,
        now: datetime | None = None,
    ) -> TokenPair:
        """Build a pair from a relative lifetime.

        Falls back to the access token's ``exp`` claim and then to the default
        access token lifetime when ``expires_in`` is missing.
        """
        now = now or utc_now()
        if expires_in is not None:
            expires_at = now + timedelta(seconds=max(float(expires_in), 0.0))
        else:
            expires_at = token_expiry(access_token) or now + timedelta(
                seconds=DEFAULT_ACCESS_TOKEN_LIFETIME_SECONDS
            )
        return cls(access_token, refresh_token, expires_at)

    def seconds_remaining(self, now: datetime | None = None) -> float:
        return (self.expires_at - (now or utc_now())).total_seconds()

    def is_expired(
        self, skew_seconds: int = TOKEN_EXPIRY_SKEW_SECONDS, now: datetime | None = None
    ) -> bool:
        return self.seconds_remaining(now) <= skew_seconds

    def __repr__(self) -> str:
        # Never render credentials
        return f"TokenPair(expires_at={self.expires_at.isoformat()})"


@dataclass(frozen=True)
class Session:
    """Application-visible session state derived from token presence."""

    is_authenticated: bool = False
    user_id: str = ""


ANONYMOUS_SESSION = Session()
