"""
Unit tests for PostFailureActionQueue.
"""

import asyncio
from unittest.mock import patch

import pytest

from authcore.session.actions import PostFailureActionQueue


class TestPostFailureActionQueue:
    """Test class for one-shot action coalescing."""

    def setup_method(self):
        self.queue = PostFailureActionQueue()
        self.calls = []

    @pytest.mark.asyncio
    async def test_first_enqueue_runs_action(self):
        scheduled = await self.queue.enqueue_once(lambda: self.calls.append("run"))

        assert scheduled is True
        assert self.calls == ["run"]
        assert self.queue.has_fired()

    @pytest.mark.asyncio
    async def test_repeated_enqueue_is_coalesced(self):
        await self.queue.enqueue_once(lambda: self.calls.append("run"))

        scheduled = await self.queue.enqueue_once(lambda: self.calls.append("run"))

        assert scheduled is False
        assert self.calls == ["run"]
        assert self.queue.executions["session_expired"] == 1

    @pytest.mark.asyncio
    async def test_concurrent_enqueue_runs_once_and_all_wait(self):
        gate = asyncio.Event()

        async def action():
            await gate.wait()
            self.calls.append("run")

        waiters = [asyncio.create_task(self.queue.enqueue_once(action)) for _ in range(5)]
        await asyncio.sleep(0)
        assert not any(w.done() for w in waiters)

        gate.set()
        results = await asyncio.gather(*waiters)

        assert results.count(True) == 1
        assert self.calls == ["run"]

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        await self.queue.enqueue_once(lambda: self.calls.append("a"), key="a")
        await self.queue.enqueue_once(lambda: self.calls.append("b"), key="b")

        assert self.calls == ["a", "b"]

    @pytest.mark.asyncio
    async def test_reset_rearms_key(self):
        await self.queue.enqueue_once(lambda: self.calls.append("run"))

        self.queue.reset()
        await self.queue.enqueue_once(lambda: self.calls.append("run"))

        assert self.calls == ["run", "run"]

    @pytest.mark.asyncio
    async def test_failing_action_is_logged_not_raised(self):
        def broken():
            raise RuntimeError("navigation failed")

        with patch("authcore.errors.handling.log_structured_error") as mock_log:
            scheduled = await self.queue.enqueue_once(broken)

        assert scheduled is True
        mock_log.assert_called_once()
        assert self.queue.has_fired()

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_execution(self):
        gate = asyncio.Event()

        async def action():
            await gate.wait()
            self.calls.append("run")

        caller = asyncio.create_task(self.queue.enqueue_once(action))
        await asyncio.sleep(0)
        caller.cancel()
        with pytest.raises(asyncio.CancelledError):
            await caller

        gate.set()
        await self.queue.drain()

        assert self.calls == ["run"]
