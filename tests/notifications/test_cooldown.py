"""
Tests for the alert cooldown registry and its storage backends.
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

from bizpulse.notifications.cooldown import (
    AlertKind,
    CircuitState,
    CooldownRegistry,
    CooldownStorageError,
    MemoryCooldownStorage,
    RedisCooldownStorage,
)


class TestCooldownRegistry:
    """Tests for should_notify / record_notified."""

    def test_make_key(self):
        assert CooldownRegistry.make_key(AlertKind.INVENTORY_ALERT, "inv-1") == "inventory_alert:inv-1"
        assert CooldownRegistry.make_key("overdue_invoice", 42) == "overdue_invoice:42"

    def test_default_windows(self, cooldowns):
        assert cooldowns.window_for(AlertKind.INVENTORY_ALERT) == timedelta(hours=12)
        assert cooldowns.window_for(AlertKind.OVERDUE_INVOICE) == timedelta(days=7)
        assert cooldowns.window_for(AlertKind.UPCOMING_MAINTENANCE) == timedelta(days=3)

    def test_window_override_by_string_kind(self, clock):
        registry = CooldownRegistry(
            MemoryCooldownStorage(), windows={"inventory_alert": timedelta(hours=1)}, clock=clock
        )
        assert registry.window_for(AlertKind.INVENTORY_ALERT) == timedelta(hours=1)
        assert registry.window_for(AlertKind.OVERDUE_INVOICE) == timedelta(days=7)

    @pytest.mark.asyncio
    async def test_never_notified_allows(self, cooldowns):
        assert await cooldowns.should_notify("inventory_alert:x", timedelta(hours=12)) is True

    @pytest.mark.asyncio
    async def test_suppressed_inside_window(self, cooldowns, clock):
        window = timedelta(hours=12)
        await cooldowns.record_notified("inventory_alert:x", window)

        clock.advance(hours=11, minutes=59)
        assert await cooldowns.should_notify("inventory_alert:x", window) is False

        clock.advance(minutes=1)
        assert await cooldowns.should_notify("inventory_alert:x", window) is True

    @pytest.mark.asyncio
    async def test_keys_are_independent(self, cooldowns):
        window = timedelta(days=7)
        await cooldowns.record_notified("overdue_invoice:a", window)

        assert await cooldowns.should_notify("overdue_invoice:a", window) is False
        assert await cooldowns.should_notify("overdue_invoice:b", window) is True

    @pytest.mark.asyncio
    async def test_read_failure_fails_open(self, clock):
        """A storage error never blocks an alert."""
        storage = MagicMock()
        storage.get = AsyncMock(side_effect=CooldownStorageError("down"))
        registry = CooldownRegistry(storage, clock=clock)

        assert await registry.should_notify("inventory_alert:x", timedelta(hours=12)) is True

    @pytest.mark.asyncio
    async def test_write_failure_is_swallowed(self, clock):
        storage = MagicMock()
        storage.set = AsyncMock(side_effect=ConnectionError("down"))
        registry = CooldownRegistry(storage, clock=clock)

        await registry.record_notified("inventory_alert:x", timedelta(hours=12))

        storage.set.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_malformed_timestamp_allows(self, clock):
        storage = MemoryCooldownStorage()
        await storage.set("inventory_alert:x", "not-a-number")
        registry = CooldownRegistry(storage, clock=clock)

        assert await registry.should_notify("inventory_alert:x", timedelta(hours=12)) is True

    @pytest.mark.asyncio
    async def test_record_uses_window_as_ttl(self, clock):
        storage = MagicMock()
        storage.set = AsyncMock()
        registry = CooldownRegistry(storage, clock=clock)

        await registry.record_notified("upcoming_maintenance:m1", timedelta(days=3))

        key, value, ttl = storage.set.await_args.args
        assert key == "upcoming_maintenance:m1"
        assert float(value) == clock.now().timestamp()
        assert ttl == 3 * 24 * 3600


class TestRedisCooldownStorage:
    """Tests for the Redis backend and its circuit breaker."""

    @pytest.mark.asyncio
    async def test_get_and_set_use_prefix(self):
        redis_client = MagicMock()
        redis_client.get = AsyncMock(return_value="1718452800.0")
        redis_client.set = AsyncMock()
        storage = RedisCooldownStorage("redis://localhost:6379", client=redis_client)

        await storage.set("inventory_alert:x", "1718452800.0", 43200)
        value = await storage.get("inventory_alert:x")

        redis_client.set.assert_awaited_once_with(
            "bizpulse:cooldown:inventory_alert:x", "1718452800.0", ex=43200
        )
        redis_client.get.assert_awaited_once_with("bizpulse:cooldown:inventory_alert:x")
        assert value == "1718452800.0"

    @pytest.mark.asyncio
    async def test_failure_raises_storage_error(self):
        redis_client = MagicMock()
        redis_client.get = AsyncMock(side_effect=ConnectionError("refused"))
        storage = RedisCooldownStorage("redis://localhost:6379", client=redis_client)

        with pytest.raises(CooldownStorageError):
            await storage.get("k")

    @pytest.mark.asyncio
    async def test_circuit_opens_after_threshold(self):
        redis_client = MagicMock()
        redis_client.get = AsyncMock(side_effect=ConnectionError("refused"))
        storage = RedisCooldownStorage(
            "redis://localhost:6379", failure_threshold=2, recovery_timeout=30, client=redis_client
        )

        for _ in range(2):
            with pytest.raises(CooldownStorageError):
                await storage.get("k")
        assert storage.circuit_state == CircuitState.OPEN

        # Open circuit short-circuits without touching Redis
        with pytest.raises(CooldownStorageError):
            await storage.get("k")
        assert redis_client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_circuit_recovers_after_timeout(self):
        redis_client = MagicMock()
        redis_client.get = AsyncMock(side_effect=[ConnectionError("refused"), "1.0"])
        storage = RedisCooldownStorage(
            "redis://localhost:6379", failure_threshold=1, recovery_timeout=30, client=redis_client
        )

        with patch("bizpulse.notifications.cooldown.time.time", return_value=1000.0):
            with pytest.raises(CooldownStorageError):
                await storage.get("k")
        assert storage.circuit_state == CircuitState.OPEN

        with patch("bizpulse.notifications.cooldown.time.time", return_value=1031.0):
            assert await storage.get("k") == "1.0"
        assert storage.circuit_state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_registry_fails_open_on_open_circuit(self, clock):
        redis_client = MagicMock()
        redis_client.get = AsyncMock(side_effect=ConnectionError("refused"))
        storage = RedisCooldownStorage("redis://localhost:6379", failure_threshold=1, client=redis_client)
        registry = CooldownRegistry(storage, clock=clock)

        assert await registry.should_notify("inventory_alert:x", timedelta(hours=12)) is True
        assert await registry.should_notify("inventory_alert:x", timedelta(hours=12)) is True

    @pytest.mark.asyncio
    async def test_close(self):
        redis_client = MagicMock()
        redis_client.aclose = AsyncMock()
        storage = RedisCooldownStorage("redis://localhost:6379", client=redis_client)

        await storage.close()

        redis_client.aclose.assert_awaited_once()
