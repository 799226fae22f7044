"""Coalescing of one-shot side effects (e.g. "navigate to login")."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from ..constants import SESSION_EXPIRED_ACTION_KEY
from ..errors.handling import log_error

Action = Callable[[], Awaitable[Any] | Any]


class PostFailureActionQueue:
    """Runs each keyed action at most once until re-armed.

    Concurrent ``enqueue_once`` calls for the same key share a single
    execution: the first call schedules it, later calls await the task that
    is already running or already finished. ``reset`` re-arms a key for the
    next expiry event.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self.executions: dict[str, int] = {}

    async def enqueue_once(
        self, action: Action, *, key: str = SESSION_EXPIRED_ACTION_KEY
    ) -> bool:
        """Run ``action`` unless an execution for ``key`` already exists.

        Returns:
            True if this call scheduled the execution, False if it was
            coalesced into an existing one.
        """
        task = self._tasks.get(key)
        scheduled = task is None
        if task is None:
            task = asyncio.create_task(self._run(key, action))
            self._tasks[key] = task
            logging.debug(f"📬 One-shot action scheduled key={key}")
        else:
            logging.debug(f"📭 One-shot action coalesced key={key}")
        # Shield: a cancelled caller must not cancel the shared execution.
        await asyncio.shield(task)
        return scheduled

    async def _run(self, key: str, action: Action) -> None:
        self.executions[key] = self.executions.get(key, 0) + 1
        try:
            result = action()
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:  # noqa: BLE001
            log_error("One-shot action failed", e, context={"key": key})

    def has_fired(self, key: str = SESSION_EXPIRED_ACTION_KEY) -> bool:
        return key in self._tasks

    def reset(self, key: str | None = None) -> None:
        """Re-arm one key, or every key when ``key`` is None."""
        if key is None:
            self._tasks.clear()
        else:
            self._tasks.pop(key, None)

    async def drain(self) -> None:
        """Wait for every scheduled execution to finish."""
        pending = [t for t in self._tasks.values() if not t.done()]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
