"""
Notification & business-event alerting.

Components:
    - NotificationStore: bounded in-memory notification collection
    - CooldownRegistry: durable per-entity alert throttling
    - NotificationPersister: saves the store after each change, restores it on startup
    - BusinessEventWatcher: snapshot diffing that raises business alerts
"""

from .types import ActionKind, Notification, NotificationAction, NotificationType
from .store import NotificationStore, Notifier
from .cooldown import (
    AlertKind,
    CooldownRegistry,
    MemoryCooldownStorage,
    RedisCooldownStorage,
)
from .persistence import (
    MemoryNotificationStorage,
    NotificationPersister,
    RedisNotificationStorage,
)
from .watcher import BusinessEventWatcher, BusinessSnapshot

__all__ = [
    "ActionKind",
    "Notification",
    "NotificationAction",
    "NotificationType",
    "NotificationStore",
    "Notifier",
    "AlertKind",
    "CooldownRegistry",
    "MemoryCooldownStorage",
    "RedisCooldownStorage",
    "MemoryNotificationStorage",
    "NotificationPersister",
    "RedisNotificationStorage",
    "BusinessEventWatcher",
    "BusinessSnapshot",
]
