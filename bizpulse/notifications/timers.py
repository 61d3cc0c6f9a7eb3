"""Clock and deferred-task abstractions.

The notification store never calls ``time`` or ``asyncio`` directly; it is
handed a :class:`Clock` and a :class:`TaskScheduler` so tests can drive expiry
with a virtual clock instead of waiting on the wall clock.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class Clock(Protocol):
    def now(self) -> datetime:
        """Current instant as a timezone-aware UTC datetime."""
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


class TaskScheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class LoopTaskScheduler:
    """
    Schedule callbacks on the running asyncio loop.

    Must be called from within the loop; raises ``RuntimeError`` otherwise.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, self._run, callback)

    @staticmethod
    def _run(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error(f"Scheduled task failed: {e}", exc_info=True)
