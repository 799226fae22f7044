"""Mirrors the token store to durable storage and to the host's session view."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from ..auth_token.claims import token_expiry, token_subject
from ..auth_token.store import TokenStore
from ..auth_token.types import ANONYMOUS_SESSION, Session, TokenPair
from ..config.model import StorageKeys
from ..constants import (
    PERSIST_MAX_ATTEMPTS,
    PERSIST_RETRY_BASE_SECONDS,
    PERSIST_RETRY_MAX_BACKOFF_SECONDS,
)
from ..errors.handling import log_error
from ..errors.internal import StorageError
from ..utils import (
    RetryExhaustedError,
    format_duration,
    parse_aware_datetime,
    retry_async,
    utc_now,
)
from .storage import SecureStorage

SessionListener = Callable[[Session], None]


class SessionSynchronizer:
    """Keeps secure storage and the derived ``Session`` in step with the store.

    The token store stays the source of truth for the lifetime of the
    process: persistence is fire-and-forget, retried with backoff, and its
    failures are logged rather than raised. Writes are serialized so the
    durable copy always converges to the latest in-memory state.

    Args:
        store: Token store to mirror.
        storage: Durable secure key-value store.
        keys: Storage key names.
        persist_max_attempts: Attempts per durable write.
    """

    def __init__(
        self,
        store: TokenStore,
        storage: SecureStorage,
        *,
        keys: StorageKeys | None = None,
        persist_max_attempts: int = PERSIST_MAX_ATTEMPTS,
    ) -> None:
        self.store = store
        self.storage = storage
        self.keys = keys or StorageKeys()
        self.persist_max_attempts = persist_max_attempts
        self.persist_failures = 0
        self._session = ANONYMOUS_SESSION
        self._listeners: list[SessionListener] = []
        self._persist_lock = asyncio.Lock()
        self._persist_tasks: set[asyncio.Task[None]] = set()
        self._last_persisted: TokenPair | None = None
        self._unsubscribe: Callable[[], None] | None = None

    # ---------------------------- Lifecycle ---------------------------- #
    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_token_change)

    async def load(self) -> TokenPair | None:
        """Restore a persisted pair into the token store.

        Called once at startup, before any request is made. An incomplete or
        unreadable persisted pair leaves the store empty.
        """
        self.start()
        try:
            access = await self.storage.get_item(self.keys.access_token)
            refresh = await self.storage.get_item(self.keys.refresh_token)
            expires_raw = await self.storage.get_item(self.keys.expires_at)
        except (StorageError, OSError) as e:
            log_error("Failed to load persisted session", e, level=logging.WARNING)
            return None
        if not access or not refresh:
            if access or refresh:
                logging.warning("⚠️ Ignoring incomplete persisted token pair")
            else:
                logging.info("📂 No persisted session found")
            return None
        expires_at = parse_aware_datetime(expires_raw) or token_expiry(access) or utc_now()
        pair = TokenPair(access, refresh, expires_at)
        # Already durable; skip the mirror write this set would trigger.
        self._last_persisted = pair
        self.store.set(pair)
        logging.info(
            f"📂 Session restored user={self._session.user_id or 'unknown'} "
            f"remaining={format_duration(pair.seconds_remaining())}"
        )
        return pair

    async def flush(self) -> None:
        """Wait until every scheduled durable write has finished."""
        while self._persist_tasks:
            await asyncio.gather(*list(self._persist_tasks), return_exceptions=True)

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        await self.flush()

    # ----------------------------- Session ----------------------------- #
    @property
    def session(self) -> Session:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    @property
    def user_id(self) -> str:
        return self._session.user_id

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a session-change listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _update_session(self, pair: TokenPair | None) -> None:
        if pair is None:
            new = ANONYMOUS_SESSION
        else:
            new = Session(True, token_subject(pair.access_token) or "")
        if new == self._session:
            return
        self._session = new
        logging.debug(
            f"👤 Session changed authenticated={new.is_authenticated} user={new.user_id or '-'}"
        )
        for listener in list(self._listeners):
            try:
                listener(new)
            except Exception as e:  # noqa: BLE001
                log_error("Session listener failed", e, level=logging.WARNING)

    # --------------------------- Persistence --------------------------- #
    def _on_token_change(self, pair: TokenPair | None) -> None:
        self._update_session(pair)
        if pair is not None and pair == self._last_persisted:
            return
        self._last_persisted = pair
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logging.warning("⚠️ No running event loop; token change not persisted")
            return
        task = loop.create_task(self._persist(pair))
        self._persist_tasks.add(task)
        task.add_done_callback(self._persist_tasks.discard)

    async def _persist(self, pair: TokenPair | None) -> None:
        action = "clear" if pair is None else "store"
        async with self._persist_lock:
            try:
                await retry_async(
                    lambda: self._write(pair),
                    max_attempts=self.persist_max_attempts,
                    base_delay=PERSIST_RETRY_BASE_SECONDS,
                    max_delay=PERSIST_RETRY_MAX_BACKOFF_SECONDS,
                    retry_on=(StorageError, OSError),
                )
            except RetryExhaustedError as e:
                self.persist_failures += 1
                log_error(
                    "Token persistence failed",
                    e.final_exception or e,
                    context={"action": action, "attempts": e.attempts},
                    level=logging.WARNING,
                )
            except Exception as e:  # noqa: BLE001
                self.persist_failures += 1
                log_error(
                    "Unexpected token persistence error",
                    e,
                    context={"action": action},
                    level=logging.WARNING,
                )

    async def _write(self, pair: TokenPair | None) -> None:
        if pair is None:
            for key in self.keys.all():
                await self.storage.delete_item(key)
            return
        await self.storage.set_item(self.keys.access_token, pair.access_token)
        await self.storage.set_item(self.keys.refresh_token, pair.refresh_token)
        await self.storage.set_item(self.keys.expires_at, pair.expires_at.isoformat())

