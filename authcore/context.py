"""Explicitly constructed auth context owning the token/session components."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp

from .auth_token.client import RefreshClient
from .auth_token.coordinator import RefreshCoordinator
from .auth_token.store import TokenStore
from .auth_token.types import RefreshState, Session, TokenPair
from .config.model import AuthClientConfig
from .http.client import AuthenticatedClient
from .http.pipeline import RequestPipeline
from .http.transport import AiohttpTransport, Transport
from .session.actions import PostFailureActionQueue
from .session.storage import SecureStorage
from .session.synchronizer import SessionSynchronizer


class AuthContext:
    """Holds one token store and everything wired to it.

    Replaces any process-global token state: build one with ``create``, call
    ``initialize`` at startup, pass ``client`` to code that makes requests,
    and ``shutdown`` at exit.
    """

    # Class / instance attribute type declarations (helps mypy)
    http_session: aiohttp.ClientSession | None
    _owns_session: bool
    _initialized: bool
    _lock: asyncio.Lock

    def __init__(
        self,
        config: AuthClientConfig,
        storage: SecureStorage,
        on_session_expired: Callable[[], Awaitable[Any] | Any],
        transport: Transport,
    ) -> None:
        self.config = config
        self.transport = transport
        self.store = TokenStore()
        self.pipeline = RequestPipeline(self.store)
        self.action_queue = PostFailureActionQueue()
        self.refresh_client = RefreshClient(
            transport, config.refresh_path, config.refresh_timeout_seconds
        )
        self.coordinator = RefreshCoordinator(
            self.store,
            self.pipeline,
            transport,
            self.refresh_client,
            self.action_queue,
            on_session_expired,
        )
        self.synchronizer = SessionSynchronizer(
            self.store,
            storage,
            keys=config.storage_keys,
            persist_max_attempts=config.persist_max_attempts,
        )
        self.client = AuthenticatedClient(
            self.pipeline,
            transport,
            self.coordinator,
            default_timeout=config.request_timeout_seconds,
        )
        self.http_session = None
        self._owns_session = False
        self._initialized = False
        self._lock = asyncio.Lock()

    # ------------------------- Construction ------------------------- #
    @classmethod
    async def create(
        cls,
        config: AuthClientConfig,
        storage: SecureStorage,
        on_session_expired: Callable[[], Awaitable[Any] | Any],
        *,
        transport: Transport | None = None,
        http_session: aiohttp.ClientSession | None = None,
    ) -> AuthContext:
        """Create a context, building an aiohttp transport unless one is given.

        Args:
            config: Client configuration.
            storage: Durable secure store for the token pair.
            on_session_expired: Host logout/redirect callback.
            transport: Custom transport; bypasses aiohttp entirely.
            http_session: Existing session to build the aiohttp transport on.
                When omitted a session is created and owned by the context.

        Returns:
            A context ready for ``initialize``.
        """
        owns_session = False
        if transport is None:
            if http_session is None:
                http_session = aiohttp.ClientSession()
                owns_session = True
                logging.debug("🔗 HTTP session created")
            transport = AiohttpTransport(
                http_session, config.base_url, config.request_timeout_seconds
            )
        ctx = cls(config, storage, on_session_expired, transport)
        ctx.http_session = http_session
        ctx._owns_session = owns_session
        return ctx

    # --------------------------- Lifecycle -------------------------- #
    async def initialize(self) -> Session:
        """Restore the persisted session. Idempotent."""
        async with self._lock:
            if not self._initialized:
                await self.synchronizer.load()
                self._initialized = True
                logging.debug("🚀 Auth context initialized")
        return self.session

    async def login(self, pair: TokenPair) -> Session:
        """Install a freshly obtained token pair and re-arm expiry handling."""
        self.synchronizer.start()
        self.coordinator.reset()
        self.store.set(pair)
        logging.info(f"🔓 Logged in user={self.session.user_id or 'unknown'}")
        return self.session

    async def logout(self) -> None:
        """Drop the session; queued requests fail with ``RequestCancelledError``."""
        cancelled = self.coordinator.cancel_pending()
        self.store.clear()
        await self.synchronizer.flush()
        logging.info(f"🔒 Logged out cancelled={cancelled}")

    async def shutdown(self) -> None:
        """Stop background work and close owned resources."""
        async with self._lock:
            logging.info("🔻 Auth context shutdown initiated")
            await self.coordinator.aclose()
            await self.action_queue.drain()
            await self.synchronizer.close()
            await self._close_http_session()
            self._initialized = False
            logging.info("✅ Auth context shutdown complete")

    async def _close_http_session(self) -> None:
        if not (self.http_session and self._owns_session):
            return
        try:
            await self.http_session.close()
        except (aiohttp.ClientError, OSError, ValueError) as e:
            logging.error(f"💥 Error closing HTTP session: {str(e)}")
        finally:
            self.http_session = None
            self._owns_session = False

    # ---------------------------- Views ----------------------------- #
    @property
    def session(self) -> Session:
        return self.synchronizer.session

    @property
    def refresh_state(self) -> RefreshState:
        return self.coordinator.state
