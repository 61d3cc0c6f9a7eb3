"""
Cooldown registry for business alerts.

Remembers when an alert of a given kind was last raised for an entity and
suppresses repeats inside the kind's window. Timestamps live in Redis so the
windows (hours to days) survive restarts.

Storage failures never block an alert: reads fail open (treated as "never
notified") and writes are logged and skipped, so alerting is at-least-once.

Usage:
    registry = CooldownRegistry(RedisCooldownStorage("redis://localhost:6379"))
    key = registry.make_key(AlertKind.INVENTORY_ALERT, item_id)
    window = registry.window_for(AlertKind.INVENTORY_ALERT)
    if await registry.should_notify(key, window):
        ...
        await registry.record_notified(key, window)
"""

import logging
import time
from datetime import timedelta
from enum import Enum, IntEnum
from typing import Any, Dict, Mapping, Optional, Protocol

import redis.asyncio as redis

from bizpulse.notifications.timers import Clock, SystemClock

logger = logging.getLogger(__name__)


class AlertKind(str, Enum):
    INVENTORY_ALERT = "inventory_alert"
    OVERDUE_INVOICE = "overdue_invoice"
    UPCOMING_MAINTENANCE = "upcoming_maintenance"


DEFAULT_WINDOWS: Dict[AlertKind, timedelta] = {
    AlertKind.INVENTORY_ALERT: timedelta(hours=12),
    AlertKind.OVERDUE_INVOICE: timedelta(days=7),
    AlertKind.UPCOMING_MAINTENANCE: timedelta(days=3),
}


class CooldownStorageError(Exception):
    """Raised by a storage backend when a read or write cannot complete."""


class CooldownStorage(Protocol):
    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        ...


class MemoryCooldownStorage:
    """Process-local storage. Cooldowns are lost on restart."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        self._data[key] = value

    async def close(self) -> None:
        pass


class CircuitState(IntEnum):
    """Circuit breaker states."""

    CLOSED = 0  # Normal operation
    OPEN = 1  # Failing, reject requests
    HALF_OPEN = 2  # Testing recovery


class RedisCooldownStorage:
    """
    Redis-backed cooldown storage with circuit breaker.

    After ``failure_threshold`` consecutive errors the circuit opens and calls
    fail immediately until ``recovery_timeout`` seconds have passed.
    """

    def __init__(
        self,
        redis_url: str,
        key_prefix: str = "bizpulse:cooldown:",
        failure_threshold: int = 5,
        recovery_timeout: int = 30,
        client: Any = None,
    ):
        self._redis_url = redis_url
        self._key_prefix = key_prefix
        self._client = client
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout

        self._circuit_state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time = 0.0

    def _get_client(self):
        if self._client is None:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    def _check_circuit(self) -> bool:
        if self._circuit_state == CircuitState.CLOSED:
            return True

        if self._circuit_state == CircuitState.OPEN:
            if time.time() - self._last_failure_time >= self._recovery_timeout:
                self._circuit_state = CircuitState.HALF_OPEN
                logger.info("Cooldown storage circuit breaker entering half-open state")
                return True
            return False

        return True

    def _record_success(self):
        self._failure_count = 0
        if self._circuit_state == CircuitState.HALF_OPEN:
            self._circuit_state = CircuitState.CLOSED
            logger.info("Cooldown storage circuit breaker closed (recovered)")

    def _record_failure(self):
        self._failure_count += 1
        self._last_failure_time = time.time()

        if self._circuit_state == CircuitState.HALF_OPEN:
            self._circuit_state = CircuitState.OPEN
            logger.warning("Cooldown storage circuit breaker opened (failed recovery)")
        elif self._failure_count >= self._failure_threshold:
            self._circuit_state = CircuitState.OPEN
            logger.warning(
                f"Cooldown storage circuit breaker opened after {self._failure_count} failures"
            )

    @property
    def circuit_state(self) -> CircuitState:
        return self._circuit_state

    async def get(self, key: str) -> Optional[str]:
        if not self._check_circuit():
            raise CooldownStorageError("circuit open")
        try:
            value = await self._get_client().get(self._key_prefix + key)
        except Exception as e:
            self._record_failure()
            raise CooldownStorageError(f"get {key}: {e}") from e
        self._record_success()
        return value

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        if not self._check_circuit():
            raise CooldownStorageError("circuit open")
        try:
            await self._get_client().set(self._key_prefix + key, value, ex=ttl or None)
        except Exception as e:
            self._record_failure()
            raise CooldownStorageError(f"set {key}: {e}") from e
        self._record_success()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class CooldownRegistry:
    """Key -> last-notified timestamp map gating repeat alerts."""

    def __init__(
        self,
        storage: CooldownStorage,
        windows: Optional[Mapping[AlertKind | str, timedelta]] = None,
        clock: Optional[Clock] = None,
    ):
        self._storage = storage
        self._clock = clock or SystemClock()
        self._windows = dict(DEFAULT_WINDOWS)
        for kind, window in (windows or {}).items():
            self._windows[AlertKind(kind)] = window

    @property
    def storage(self) -> CooldownStorage:
        return self._storage

    @staticmethod
    def make_key(kind: AlertKind, entity_id: Any) -> str:
        return f"{AlertKind(kind).value}:{entity_id}"

    def window_for(self, kind: AlertKind) -> timedelta:
        return self._windows[AlertKind(kind)]

    async def should_notify(self, key: str, window: timedelta) -> bool:
        """
        Check whether an alert for ``key`` may be raised now.

        Returns:
            True when ``key`` was never recorded, its timestamp is unreadable,
            the storage failed, or at least ``window`` has elapsed
        """
        try:
            raw = await self._storage.get(key)
        except Exception as e:
            logger.warning(f"Cooldown read failed for {key}, allowing alert: {e}")
            return True

        if raw is None:
            return True

        try:
            last_notified = float(raw)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed cooldown timestamp for {key}: {raw!r}")
            return True

        elapsed = self._clock.now().timestamp() - last_notified
        return elapsed >= window.total_seconds()

    async def record_notified(self, key: str, window: Optional[timedelta] = None) -> None:
        """Store the current time for ``key``; ``window`` doubles as the entry TTL."""
        ttl = int(window.total_seconds()) if window else None
        try:
            await self._storage.set(key, str(self._clock.now().timestamp()), ttl)
        except Exception as e:
            logger.warning(f"Cooldown write failed for {key}: {e}")
