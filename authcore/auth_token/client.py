"""Refresh endpoint HTTP client."""

from __future__ import annotations

import asyncio
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..constants import (
    DEFAULT_REFRESH_PATH,
    REFRESH_REQUEST_TIMEOUT_SECONDS,
    TRANSPORT_SENTINEL_TIMEOUT,
)
from ..errors.internal import HttpStatusError, ParsingError
from ..http.classifier import Success, classify
from ..http.models import HttpResponse, RawOutcome, RequestConfig
from ..http.transport import Transport
from ..utils import format_duration
from .types import TokenPair


class RefreshResponse(BaseModel):
    """Success payload of the refresh endpoint.

    Accepts both camelCase and snake_case keys. ``refreshToken`` is optional
    for servers that only rotate the access token.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    access_token: str = Field(alias="accessToken", min_length=1)
    refresh_token: str | None = Field(default=None, alias="refreshToken")
    expires_in: float | None = Field(default=None, alias="expiresIn", ge=0)


class RefreshClient:
    """Exchanges a refresh token for a new token pair.

    Talks to the transport directly: the refresh call carries no bearer
    header and is never itself subject to the refresh protocol.

    Args:
        transport: Transport used for the refresh call.
        refresh_path: Path (or absolute URL) of the refresh endpoint.
        timeout: Hard upper bound for one refresh call in seconds.
    """

    def __init__(
        self,
        transport: Transport,
        refresh_path: str = DEFAULT_REFRESH_PATH,
        timeout: float = REFRESH_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.transport = transport
        self.refresh_path = refresh_path
        self.timeout = timeout
        self.calls = 0

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Perform one refresh call.

        Args:
            refresh_token: The refresh token to exchange.

        Returns:
            The new token pair.

        Raises:
            NetworkError: No response (including exceeding ``timeout``).
            HttpStatusError: Any non-2xx response, most commonly 401.
            ParsingError: A 2xx response without a usable payload.
            UnknownRequestError: Unclassifiable outcome.
        """
        self.calls += 1
        config = RequestConfig(
            "POST",
            self.refresh_path,
            headers={"Content-Type": "application/json"},
            json_body={"refreshToken": refresh_token},
            timeout=self.timeout,
        )
        try:
            outcome = await asyncio.wait_for(
                self.transport.send(config), timeout=self.timeout
            )
        except TimeoutError as e:
            logging.warning(f"⏱️ Token refresh timeout timeout={self.timeout}s")
            outcome = RawOutcome(error=e, sentinel=TRANSPORT_SENTINEL_TIMEOUT)

        result = classify(outcome)
        if isinstance(result, Success):
            response = result.response
            if not 200 <= response.status < 300:
                raise HttpStatusError(response.status, response.body)
            return self._parse(response, refresh_token)
        logging.warning(f"❌ Token refresh failed outcome={type(result).__name__}")
        raise result.to_exception()

    @staticmethod
    def _parse(response: HttpResponse, previous_refresh_token: str) -> TokenPair:
        payload = response.json()
        if not isinstance(payload, dict):
            raise ParsingError("Refresh response is not a JSON object")
        try:
            parsed = RefreshResponse.model_validate(payload)
        except ValidationError as e:
            raise ParsingError(
                f"Invalid refresh response: {e.error_count()} validation error(s)"
            ) from e
        pair = TokenPair.from_lifetime(
            parsed.access_token,
            parsed.refresh_token or previous_refresh_token,
            parsed.expires_in,
        )
        logging.info(
            f"🔄 Token refreshed (lifetime {format_duration(pair.seconds_remaining())}) "
            f"rotated_refresh={parsed.refresh_token is not None}"
        )
        return pair
