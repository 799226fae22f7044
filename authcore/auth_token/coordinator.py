"""Single-flight token refresh and replay of unauthorized requests."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from ..errors.handling import log_error
from ..errors.internal import (
    AuthExpiredError,
    InternalError,
    RequestCancelledError,
)
from ..http.classifier import HttpError, Success
from ..http.models import HttpResponse, RequestConfig
from ..http.pipeline import RequestPipeline, send_attached
from ..http.transport import Transport
from ..session.actions import PostFailureActionQueue
from .client import RefreshClient
from .store import TokenStore
from .types import RefreshState, TokenPair


@dataclass
class PendingRequest:
    """A request that hit 401 and waits for the in-flight refresh.

    Attributes:
        config: The caller's original, undecorated request.
        waiter: Resolved with the replay's response or rejected with its error.
        sequence: Order in which the 401 was observed.
    """

    config: RequestConfig
    waiter: asyncio.Future[HttpResponse]
    sequence: int
    replay_task: asyncio.Task[None] | None = field(default=None, repr=False)


class RefreshCoordinator:
    """State machine that turns 401 responses into at most one refresh call.

    Idle -> Refreshing on the first 401 with a refresh token present; every
    401 seen while Refreshing queues behind that one call. On success the
    store is updated and each queued request is replayed once, in the order
    its 401 was observed. On failure every queued request is rejected with
    ``AuthExpiredError``, the store is cleared and the session-expired action
    runs exactly once. Failed is terminal until ``reset``.

    All state changes happen on the event loop thread between suspension
    points, so the state and the waiter list need no further locking.

    Args:
        store: Authoritative token store.
        pipeline: Decorator used for every replay.
        transport: Transport used for every replay.
        refresh_client: Performs the refresh call.
        action_queue: Coalesces the session-expired side effect.
        on_session_expired: Host callback (sync or async) fired on terminal failure.
    """

    def __init__(
        self,
        store: TokenStore,
        pipeline: RequestPipeline,
        transport: Transport,
        refresh_client: RefreshClient,
        action_queue: PostFailureActionQueue,
        on_session_expired: Callable[[], Awaitable[Any] | Any],
    ) -> None:
        self.store = store
        self.pipeline = pipeline
        self.transport = transport
        self.refresh_client = refresh_client
        self.action_queue = action_queue
        self.on_session_expired = on_session_expired
        self._state = RefreshState.IDLE
        self._pending: list[PendingRequest] = []
        self._sequence = 0
        self._epoch = 0
        self._refresh_task: asyncio.Task[None] | None = None
        self._replay_tasks: set[asyncio.Task[None]] = set()
        self._last_error: BaseException | None = None

    # ------------------------------ State ------------------------------ #
    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def last_error(self) -> BaseException | None:
        """Error that caused the most recent transition to Failed."""
        return self._last_error

    def _transition(self, new_state: RefreshState) -> None:
        if new_state is self._state:
            return
        logging.debug(f"🔀 Refresh state {self._state.value} -> {new_state.value}")
        self._state = new_state

    # --------------------------- 401 handling -------------------------- #
    async def handle_unauthorized(
        self,
        config: RequestConfig,
        failure: HttpError,
        token_used: str | None,
    ) -> HttpResponse:
        """Resolve a request that came back 401.

        Args:
            config: The caller's original, undecorated request.
            failure: The 401 classification of the attempt.
            token_used: Access token the failed attempt carried, None if it
                went out unauthenticated.

        Returns:
            The replayed request's successful response.

        Raises:
            AuthExpiredError: The refresh failed, or the session already had.
            RequestCancelledError: Logout happened while the request waited.
            InternalError: The replay's own failure, unmodified.
        """
        if self._state is RefreshState.FAILED:
            raise AuthExpiredError() from self._last_error

        if self._state is RefreshState.REFRESHING:
            return await self._enqueue(config).waiter

        pair = self.store.get()
        if pair is not None and pair.access_token != token_used:
            # Token already rotated since this attempt was issued.
            logging.debug("♻️ Stale 401; replaying with current token")
            return await self._replay(config)

        if pair is None or not pair.refresh_token:
            raise failure.to_exception()

        pending = self._enqueue(config)
        self._start_refresh(pair)
        return await pending.waiter

    def _enqueue(self, config: RequestConfig) -> PendingRequest:
        self._sequence += 1
        waiter: asyncio.Future[HttpResponse] = asyncio.get_running_loop().create_future()
        pending = PendingRequest(config, waiter, self._sequence)
        self._pending.append(pending)
        logging.debug(f"⏳ Request queued for refresh pending={len(self._pending)}")
        return pending

    def _start_refresh(self, pair: TokenPair) -> None:
        self._transition(RefreshState.REFRESHING)
        self._refresh_task = asyncio.create_task(
            self._run_refresh(pair.refresh_token, self._epoch)
        )
        self._refresh_task.add_done_callback(self._log_task_error)

    def _drain(self) -> list[PendingRequest]:
        pending, self._pending = self._pending, []
        return pending

    # ------------------------------ Refresh ---------------------------- #
    async def _run_refresh(self, refresh_token: str, epoch: int) -> None:
        try:
            new_pair = await self.refresh_client.refresh(refresh_token)
        except asyncio.CancelledError:
            logging.debug("🛑 Refresh call cancelled")
            raise
        except InternalError as e:
            if epoch != self._epoch:
                return
            await self._fail(e)
            return
        except Exception as e:  # noqa: BLE001
            if epoch != self._epoch:
                return
            log_error("Unexpected token refresh error", e)
            await self._fail(e)
            return

        if epoch != self._epoch:
            logging.warning("⚠️ Discarding refreshed token obtained after logout")
            return
        self.store.set(new_pair)
        self._transition(RefreshState.IDLE)
        pending = self._drain()
        logging.info(f"✅ Token refresh complete replaying={len(pending)}")
        for item in pending:
            self._schedule_replay(item)

    async def _fail(self, error: BaseException) -> None:
        self._last_error = error
        self._transition(RefreshState.FAILED)
        pending = self._drain()
        log_error(
            "Token refresh failed; session expired",
            error,
            context={"pending": len(pending)},
            level=logging.WARNING,
        )
        for item in pending:
            if not item.waiter.done():
                exc = AuthExpiredError()
                exc.__cause__ = error
                item.waiter.set_exception(exc)
        self.store.clear()
        await self.action_queue.enqueue_once(self.on_session_expired)

    # ------------------------------ Replay ----------------------------- #
    def _schedule_replay(self, item: PendingRequest) -> None:
        if item.waiter.done():
            # Caller gave up while waiting.
            return
        task = asyncio.create_task(self._replay_into(item))
        item.replay_task = task
        self._replay_tasks.add(task)
        task.add_done_callback(self._replay_tasks.discard)

    async def _replay_into(self, item: PendingRequest) -> None:
        try:
            response = await self._replay(item.config)
        except asyncio.CancelledError:
            if not item.waiter.done():
                item.waiter.cancel()
            raise
        except Exception as e:  # noqa: BLE001
            if not item.waiter.done():
                item.waiter.set_exception(e)
            return
        if not item.waiter.done():
            item.waiter.set_result(response)

    async def _replay(self, config: RequestConfig) -> HttpResponse:
        """Send once more with the current token; failures go back to the caller."""
        result, _ = await send_attached(self.pipeline, self.transport, config)
        if isinstance(result, Success):
            return result.response
        raise result.to_exception()

    # ---------------------------- Lifecycle ---------------------------- #
    def cancel_pending(self) -> int:
        """Abandon the in-flight refresh because of an explicit logout.

        Every queued request is rejected with ``RequestCancelledError``. A
        refresh result that still arrives afterwards is discarded.

        Returns:
            Number of rejected requests.
        """
        self._epoch += 1
        pending = self._drain()
        for item in pending:
            if not item.waiter.done():
                item.waiter.set_exception(RequestCancelledError())
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
        if self._state is RefreshState.REFRESHING:
            self._transition(RefreshState.IDLE)
        if pending:
            logging.info(f"🚫 Cancelled pending requests count={len(pending)}")
        return len(pending)

    def reset(self) -> None:
        """Start over for a new session so future 401s may refresh again.

        A refresh still running for the previous session is abandoned the
        same way a logout abandons it, and the expiry callback is re-armed.
        """
        if self._state is RefreshState.REFRESHING:
            self.cancel_pending()
        self._last_error = None
        if self._state is RefreshState.FAILED:
            self._transition(RefreshState.IDLE)
        self.action_queue.reset()

    async def aclose(self) -> None:
        self.cancel_pending()
        tasks = [t for t in (self._refresh_task, *self._replay_tasks) if t is not None]
        for task in tasks:
            if not task.done():
                task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    @staticmethod
    def _log_task_error(task: asyncio.Task[Any]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log_error("Refresh task crashed", exc)
