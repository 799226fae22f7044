"""In-memory authoritative token holder."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from ..errors.handling import log_error
from .types import TokenPair

TokenListener = Callable[[TokenPair | None], None]


class TokenStore:
    """Holds the current token pair and notifies subscribers on change.

    All operations are guarded by a lock so that concurrent readers never
    observe a half-written pair. Subscribers run synchronously after the
    state change and before ``set``/``clear`` return, outside the lock, so a
    subscriber may read the store without deadlocking.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pair: TokenPair | None = None
        self._listeners: list[TokenListener] = []
        self._version = 0

    def get(self) -> TokenPair | None:
        with self._lock:
            return self._pair

    @property
    def version(self) -> int:
        """Monotonic counter bumped on every ``set`` / ``clear``."""
        with self._lock:
            return self._version

    def set(self, pair: TokenPair) -> None:
        if not isinstance(pair, TokenPair):
            raise TypeError("pair must be a TokenPair")
        with self._lock:
            self._pair = pair
            self._version += 1
            listeners = list(self._listeners)
        logging.debug(f"🔑 Token store updated expires_at={pair.expires_at.isoformat()}")
        self._notify(listeners, pair)

    def clear(self) -> None:
        with self._lock:
            had_pair = self._pair is not None
            self._pair = None
            self._version += 1
            listeners = list(self._listeners)
        if had_pair:
            logging.debug("🧹 Token store cleared")
        self._notify(listeners, None)

    def subscribe(self, listener: TokenListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    @staticmethod
    def _notify(listeners: list[TokenListener], pair: TokenPair | None) -> None:
        for listener in listeners:
            try:
                listener(pair)
            except Exception as e:  # noqa: BLE001
                log_error("Token listener failed", e, level=logging.WARNING)
