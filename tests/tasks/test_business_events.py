"""
Tests for the business event scheduler.

Tests the background job that feeds database snapshots to the watcher.
"""

import pytest
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

from bizpulse.notifications import BusinessSnapshot
from bizpulse.tasks import business_events
from bizpulse.tasks.business_events import (
    JOB_ID,
    check_business_events,
    get_scheduler,
    start_business_event_scheduler,
    stop_business_event_scheduler,
)


def session_maker_for(session):
    @asynccontextmanager
    async def session_maker():
        yield session

    return session_maker


class TestSchedulerSetup:
    """Tests for scheduler initialization."""

    @pytest.mark.asyncio
    async def test_get_scheduler_singleton(self):
        """Test that get_scheduler returns the same instance."""
        try:
            scheduler1 = get_scheduler()
            scheduler2 = get_scheduler()
            assert scheduler1 is scheduler2
        finally:
            stop_business_event_scheduler()

    @pytest.mark.asyncio
    async def test_start_registers_job(self, watcher):
        """Test the watcher job is registered with overlap protection."""
        stop_business_event_scheduler()
        try:
            scheduler = start_business_event_scheduler(watcher, 30)
            job = scheduler.get_job(JOB_ID)

            assert scheduler.running
            assert job is not None
            assert job.args == (watcher,)
            assert job.max_instances == 1
            assert job.coalesce is True
        finally:
            stop_business_event_scheduler()

        assert business_events.scheduler is None

    def test_stop_without_start(self):
        stop_business_event_scheduler()
        assert business_events.scheduler is None


class TestCheckBusinessEvents:
    """Tests for the check_business_events job."""

    @pytest.mark.asyncio
    async def test_snapshot_handed_to_watcher(self):
        snapshot = BusinessSnapshot(orders=[])
        watcher = MagicMock()
        watcher.process = AsyncMock(return_value=["n1"])
        session = MagicMock()

        with patch(
            "bizpulse.tasks.business_events.load_business_snapshot",
            AsyncMock(return_value=snapshot),
        ) as loader:
            emitted = await check_business_events(watcher, session_maker=session_maker_for(session))

        loader.assert_awaited_once_with(session)
        watcher.process.assert_awaited_once_with(snapshot)
        assert emitted == ["n1"]

    @pytest.mark.asyncio
    async def test_session_failure_skips_tick(self):
        watcher = MagicMock()
        watcher.process = AsyncMock()

        def broken_session_maker():
            raise ConnectionError("database unavailable")

        emitted = await check_business_events(watcher, session_maker=broken_session_maker)

        assert emitted == []
        watcher.process.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_against_database(self, test_db, watcher):
        emitted = await check_business_events(watcher, session_maker=session_maker_for(test_db))

        assert emitted == []
        assert watcher.has_order_baseline
        assert watcher.status()["last_failed_collections"] == []
