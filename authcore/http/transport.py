"""Network transports.

A transport performs exactly one HTTP attempt and reports what happened as a
``RawOutcome``. Transport-level failures are captured, never raised, so that
classification stays the single place where failures get their meaning.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

import aiohttp

from ..constants import (
    HTTP_REQUEST_TIMEOUT_SECONDS,
    TRANSPORT_SENTINEL_CONNECTION_ERROR,
    TRANSPORT_SENTINEL_TIMEOUT,
)
from .models import HttpResponse, RawOutcome, RequestConfig


@runtime_checkable
class Transport(Protocol):
    async def send(self, config: RequestConfig) -> RawOutcome: ...


def join_url(base_url: str, url: str) -> str:
    if "://" in url or not base_url:
        return url
    return f"{base_url.rstrip('/')}/{url.lstrip('/')}"


class AiohttpTransport:
    """Transport backed by a shared ``aiohttp.ClientSession``.

    Args:
        session: HTTP session used for every request.
        base_url: Prefix for relative request URLs.
        default_timeout: Total timeout when the request config carries none.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str = "",
        default_timeout: float = HTTP_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        if session is None:
            raise TypeError("session cannot be None")
        self.session = session
        self.base_url = base_url
        self.default_timeout = default_timeout

    async def send(self, config: RequestConfig) -> RawOutcome:
        url = join_url(self.base_url, config.url)
        timeout = aiohttp.ClientTimeout(total=config.timeout or self.default_timeout)
        try:
            async with self.session.request(
                config.method.upper(),
                url,
                headers=dict(config.headers),
                params=dict(config.params) if config.params else None,
                json=config.json_body,
                data=config.data,
                timeout=timeout,
            ) as resp:
                body = await resp.read()
                return RawOutcome(
                    response=HttpResponse(
                        status=resp.status,
                        body=body,
                        headers=dict(resp.headers),
                        url=str(resp.url),
                    )
                )
        except TimeoutError as e:
            logging.debug(f"⏱️ Request timeout method={config.method} url={url}")
            return RawOutcome(error=e, sentinel=TRANSPORT_SENTINEL_TIMEOUT)
        except (aiohttp.ClientError, OSError) as e:
            logging.debug(
                f"💥 Transport error method={config.method} url={url} type={type(e).__name__}"
            )
            return RawOutcome(error=e, sentinel=TRANSPORT_SENTINEL_CONNECTION_ERROR)
