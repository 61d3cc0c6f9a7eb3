"""
Notification persistence.

Saves the store's collection after every change and restores it on startup,
so persistent alerts survive a restart alongside the cooldowns that suppress
their repeats.

The collection is kept as one JSON document (the list of ``to_dict``
records, newest first). Save and load failures are logged; the in-memory
store stays authoritative.

Usage:
    persister = NotificationPersister(store, RedisNotificationStorage(redis_url))
    await persister.restore()
    persister.attach()
    ...
    await persister.close()
"""

import asyncio
import json
import logging
from typing import Any, List, Optional, Protocol

import redis.asyncio as redis

from bizpulse.notifications.store import NotificationStore
from bizpulse.notifications.types import Notification

logger = logging.getLogger(__name__)

DEFAULT_NOTIFICATIONS_KEY = "bizpulse:notifications"


class NotificationStorageError(Exception):
    """Raised by storage backends when the saved collection is unreachable."""


class NotificationStorage(Protocol):
    async def load(self) -> Optional[str]:
        ...

    async def save(self, payload: str) -> None:
        ...

    async def close(self) -> None:
        ...


class MemoryNotificationStorage:
    """Process-local storage. Survives store rebuilds, not process restarts."""

    def __init__(self):
        self.payload: Optional[str] = None

    async def load(self) -> Optional[str]:
        return self.payload

    async def save(self, payload: str) -> None:
        self.payload = payload

    async def close(self) -> None:
        pass


class RedisNotificationStorage:
    """Keeps the collection under a single Redis key, without expiry."""

    def __init__(self, redis_url: str, key: str = DEFAULT_NOTIFICATIONS_KEY, client: Any = None):
        self._redis_url = redis_url
        self._key = key
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def load(self) -> Optional[str]:
        try:
            return await self._get_client().get(self._key)
        except Exception as e:
            raise NotificationStorageError(f"load {self._key}: {e}") from e

    async def save(self, payload: str) -> None:
        try:
            await self._get_client().set(self._key, payload)
        except Exception as e:
            raise NotificationStorageError(f"save {self._key}: {e}") from e

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def encode_notifications(notifications: List[Notification]) -> str:
    return json.dumps([n.to_dict() for n in notifications], default=str)


def decode_notifications(payload: str) -> List[Notification]:
    """
    Parse a saved collection.

    Records that cannot be rebuilt are skipped and logged.

    Raises:
        ValueError: payload is not a JSON list
    """
    data = json.loads(payload)
    if not isinstance(data, list):
        raise ValueError("Saved notifications must be a JSON list")

    notifications = []
    for item in data:
        try:
            notifications.append(Notification.from_dict(item))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping unreadable saved notification: {e}")
    return notifications


class NotificationPersister:
    """
    Mirrors a :class:`NotificationStore` into a :class:`NotificationStorage`.

    Store changes arrive synchronously through a subscriber; the latest
    collection is written by a background task on the running loop. Bursts of
    changes collapse into one write of the newest collection.
    """

    def __init__(self, store: NotificationStore, storage: NotificationStorage):
        self._store = store
        self._storage = storage
        self._pending: Optional[List[Notification]] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def storage(self) -> NotificationStorage:
        return self._storage

    async def restore(self) -> int:
        """Load the saved collection into the store. Returns the records restored."""
        try:
            payload = await self._storage.load()
        except NotificationStorageError as e:
            logger.warning(f"Could not load saved notifications: {e}")
            return 0
        if not payload:
            return 0

        try:
            notifications = decode_notifications(payload)
        except ValueError as e:
            logger.warning(f"Discarding unreadable saved notifications: {e}")
            return 0

        self._store.restore(notifications)
        return len(self._store.notifications)

    def attach(self) -> None:
        """Start saving after every store change."""
        self._store.subscribe(self._on_change)

    def detach(self) -> None:
        self._store.unsubscribe(self._on_change)

    async def flush(self) -> None:
        """Wait until the latest collection has been written."""
        if self._task is not None and not self._task.done():
            await self._task
        await self._write_pending()

    async def close(self) -> None:
        self.detach()
        await self.flush()
        await self._storage.close()

    def _on_change(self, notifications: List[Notification]) -> None:
        self._pending = notifications
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Written by the next flush
            return
        if self._task is None or self._task.done():
            self._task = loop.create_task(self._write_pending())

    async def _write_pending(self) -> None:
        while self._pending is not None:
            notifications, self._pending = self._pending, None
            try:
                await self._storage.save(encode_notifications(notifications))
            except NotificationStorageError as e:
                logger.warning(f"Could not save notifications: {e}")
