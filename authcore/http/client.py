"""Authenticated request client."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..auth_token.coordinator import RefreshCoordinator
from .classifier import Success, is_unauthorized
from .models import HttpResponse, RequestConfig
from .pipeline import RequestPipeline, send_attached
from .transport import Transport


class AuthenticatedClient:
    """Sends requests with the current bearer token and resolves 401s.

    Successful responses (status < 400) are returned. Every other outcome is
    raised as the matching ``InternalError`` subclass: network failures and
    non-401 HTTP errors unmodified, 401s only after the refresh protocol has
    run (replay response, replay error, ``AuthExpiredError`` or
    ``RequestCancelledError``).
    """

    def __init__(
        self,
        pipeline: RequestPipeline,
        transport: Transport,
        coordinator: RefreshCoordinator,
        default_timeout: float | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.transport = transport
        self.coordinator = coordinator
        self.default_timeout = default_timeout

    async def send(self, config: RequestConfig) -> HttpResponse:
        result, token_used = await send_attached(self.pipeline, self.transport, config)
        if isinstance(result, Success):
            return result.response
        if is_unauthorized(result):
            logging.debug(f"🔐 401 received method={config.method} url={config.url}")
            return await self.coordinator.handle_unauthorized(config, result, token_used)
        raise result.to_exception()

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        data: Any = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        config = RequestConfig(
            method=method.upper(),
            url=url,
            headers=dict(headers or {}),
            params=params,
            json_body=json_body,
            data=data,
            timeout=timeout if timeout is not None else self.default_timeout,
        )
        return await self.send(config)

    async def get(self, url: str, **kwargs: Any) -> HttpResponse:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, json_body: Any = None, **kwargs: Any) -> HttpResponse:
        return await self.request("POST", url, json_body=json_body, **kwargs)

    async def put(self, url: str, json_body: Any = None, **kwargs: Any) -> HttpResponse:
        return await self.request("PUT", url, json_body=json_body, **kwargs)

    async def patch(self, url: str, json_body: Any = None, **kwargs: Any) -> HttpResponse:
        return await self.request("PATCH", url, json_body=json_body, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> HttpResponse:
        return await self.request("DELETE", url, **kwargs)
