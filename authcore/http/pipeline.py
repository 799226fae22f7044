"""Outgoing request decoration."""

from __future__ import annotations

from ..auth_token.store import TokenStore
from .classifier import Classification, classify
from .models import RequestConfig
from .transport import Transport

AUTHORIZATION_HEADER = "Authorization"
_BEARER_PREFIX = "Bearer "


class RequestPipeline:
    """Injects the current access token into every outgoing request.

    The token is read at attachment time, never cached, so a request issued
    right after ``TokenStore.set`` returns carries the new token. Knows
    nothing about refresh.
    """

    def __init__(self, store: TokenStore) -> None:
        self.store = store

    def attach(self, config: RequestConfig) -> RequestConfig:
        pair = self.store.get()
        if pair is None:
            return config
        return config.with_header(AUTHORIZATION_HEADER, f"{_BEARER_PREFIX}{pair.access_token}")


def bearer_token(config: RequestConfig) -> str | None:
    """Return the bearer token a decorated request carries, if any."""
    value = config.header(AUTHORIZATION_HEADER)
    if value and value.startswith(_BEARER_PREFIX):
        return value[len(_BEARER_PREFIX):]
    return None


async def send_attached(
    pipeline: RequestPipeline, transport: Transport, config: RequestConfig
) -> tuple[Classification, str | None]:
    """Decorate, send and classify one attempt.

    Returns:
        Tuple of (classification, access token the attempt carried).
    """
    attached = pipeline.attach(config)
    outcome = await transport.send(attached)
    return classify(outcome), bearer_token(attached)
