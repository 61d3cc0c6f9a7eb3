"""
Tests for the asyncio-backed task scheduler used by the notification store.
"""

import asyncio
import logging
import pytest

from bizpulse.notifications.store import NotificationStore
from bizpulse.notifications.timers import LoopTaskScheduler, SystemClock


class TestLoopTaskScheduler:
    """Tests for LoopTaskScheduler on a real event loop."""

    @pytest.mark.asyncio
    async def test_callback_runs_after_delay(self):
        fired = asyncio.Event()

        LoopTaskScheduler().call_later(0.01, fired.set)

        await asyncio.wait_for(fired.wait(), timeout=1)
        assert fired.is_set()

    @pytest.mark.asyncio
    async def test_cancelled_callback_never_runs(self):
        calls = []

        handle = LoopTaskScheduler().call_later(0.01, lambda: calls.append(1))
        handle.cancel()
        await asyncio.sleep(0.05)

        assert calls == []

    @pytest.mark.asyncio
    async def test_callback_error_is_logged(self, caplog):
        def broken():
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR, logger="bizpulse.notifications.timers"):
            LoopTaskScheduler().call_later(0, broken)
            await asyncio.sleep(0.02)

        assert "Scheduled task failed: boom" in caplog.text

    def test_requires_running_loop(self):
        with pytest.raises(RuntimeError):
            LoopTaskScheduler().call_later(0.01, lambda: None)

    @pytest.mark.asyncio
    async def test_store_expires_on_loop(self):
        store = NotificationStore(auto_remove_delay=0.01, scheduler=LoopTaskScheduler(), clock=SystemClock())

        notification_id = store.add("Temporal")
        await asyncio.sleep(0.1)

        assert store.get(notification_id) is None
        assert store.pending_timers == 0
