"""
In-memory notification store.

Holds a bounded, newest-first collection of :class:`Notification` records.
Every mutation goes through :func:`reduce` under a single lock, so HTTP
requests, the business-event watcher and expiry timers never interleave a
read-modify-write on the collection.

Usage:
    store = NotificationStore(max_notifications=5, auto_remove_delay=5.0)
    notification_id = store.notify.warning("Stock bajo", title="Inventario")
    store.mark_as_read(notification_id)
"""

import logging
import threading
import uuid
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from bizpulse.notifications.timers import (
    Clock,
    LoopTaskScheduler,
    SystemClock,
    TaskScheduler,
    TimerHandle,
)
from bizpulse.notifications.types import Notification, NotificationAction, NotificationType

logger = logging.getLogger(__name__)

DEFAULT_MAX_NOTIFICATIONS = 5
DEFAULT_AUTO_REMOVE_DELAY = 5.0  # seconds


class StoreActionType(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    CLEAR_ALL = "clear_all"
    MARK_AS_READ = "mark_as_read"
    MARK_ALL_AS_READ = "mark_all_as_read"
    RESTORE = "restore"


@dataclass(frozen=True)
class StoreAction:
    type: StoreActionType
    payload: Any = None


@dataclass(frozen=True)
class StoreState:
    notifications: Tuple[Notification, ...] = ()
    max_notifications: int = DEFAULT_MAX_NOTIFICATIONS


def reduce(state: StoreState, action: StoreAction) -> StoreState:
    """
    Apply ``action`` to ``state`` and return the resulting state.

    Returns ``state`` itself when the action changes nothing (unknown id,
    already read, empty clear), which lets callers skip listener fan-out.
    """
    if action.type is StoreActionType.ADD:
        notifications = (action.payload,) + state.notifications
        return replace(state, notifications=notifications[: state.max_notifications])

    if action.type is StoreActionType.REMOVE:
        remaining = tuple(n for n in state.notifications if n.id != action.payload)
        if len(remaining) == len(state.notifications):
            return state
        return replace(state, notifications=remaining)

    if action.type is StoreActionType.CLEAR_ALL:
        if not state.notifications:
            return state
        return replace(state, notifications=())

    if action.type is StoreActionType.MARK_AS_READ:
        changed = False
        notifications = []
        for n in state.notifications:
            if n.id == action.payload and not n.read:
                n = replace(n, read=True)
                changed = True
            notifications.append(n)
        return replace(state, notifications=tuple(notifications)) if changed else state

    if action.type is StoreActionType.MARK_ALL_AS_READ:
        if all(n.read for n in state.notifications):
            return state
        return replace(
            state,
            notifications=tuple(n if n.read else replace(n, read=True) for n in state.notifications),
        )

    if action.type is StoreActionType.RESTORE:
        return replace(state, notifications=tuple(action.payload)[: state.max_notifications])

    return state


Listener = Callable[[List[Notification]], None]


class NotificationStore:
    """
    Bounded notification collection with timed auto-expiry.

    Non-persistent notifications are removed ``auto_remove_delay`` seconds
    after being added. A notification that leaves the collection early
    (removed, evicted, cleared) has its pending timer cancelled; a timer that
    fires anyway finds nothing to remove.
    """

    def __init__(
        self,
        max_notifications: int = DEFAULT_MAX_NOTIFICATIONS,
        auto_remove_delay: float = DEFAULT_AUTO_REMOVE_DELAY,
        scheduler: Optional[TaskScheduler] = None,
        clock: Optional[Clock] = None,
    ):
        if max_notifications < 1:
            raise ValueError("max_notifications must be at least 1")

        self.auto_remove_delay = auto_remove_delay
        self._scheduler = scheduler or LoopTaskScheduler()
        self._clock = clock or SystemClock()

        self._state = StoreState(max_notifications=max_notifications)
        self._timers: Dict[str, TimerHandle] = {}
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

        self.notify = Notifier(self)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def max_notifications(self) -> int:
        return self._state.max_notifications

    @property
    def notifications(self) -> List[Notification]:
        """Current records, newest first."""
        return list(self._state.notifications)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._state.notifications if not n.read)

    def get(self, notification_id: str) -> Optional[Notification]:
        for n in self._state.notifications:
            if n.id == notification_id:
                return n
        return None

    @property
    def pending_timers(self) -> int:
        with self._lock:
            return len(self._timers)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(
        self,
        message: str,
        type: NotificationType | str = NotificationType.INFO,
        *,
        title: Optional[str] = None,
        persistent: bool = False,
        actions: Iterable[NotificationAction] = (),
        metadata: Optional[Dict[str, Any]] = None,
        auto_remove_delay: Optional[float] = None,
    ) -> str:
        """
        Add a notification and return its id.

        Args:
            message: Human-readable body (required)
            type: Notification type, enum member or its string value
            title: Optional short label
            persistent: Keep until explicitly removed
            actions: Buttons offered with the notification
            metadata: Opaque domain context for consumers
            auto_remove_delay: Seconds before a non-persistent record expires;
                defaults to the store-wide delay

        Returns:
            The new notification id
        """
        if not message:
            raise ValueError("Notification message is required")

        notification = Notification(
            id=uuid.uuid4().hex,
            type=NotificationType(type),
            message=message,
            title=title,
            timestamp=self._clock.now(),
            persistent=persistent,
            actions=tuple(actions),
            metadata=dict(metadata or {}),
        )

        self._dispatch(StoreAction(StoreActionType.ADD, notification))
        if not persistent:
            with self._lock:
                if self.get(notification.id) is None:
                    return notification.id
                delay = self.auto_remove_delay if auto_remove_delay is None else auto_remove_delay
                self._timers[notification.id] = self._scheduler.call_later(
                    delay, lambda: self._expire(notification.id)
                )

        logger.debug(f"Notification added: {notification.type.value} {notification.id}")
        return notification.id

    def remove(self, notification_id: str) -> None:
        """Remove a notification; unknown ids are ignored."""
        self._dispatch(StoreAction(StoreActionType.REMOVE, notification_id))

    def mark_as_read(self, notification_id: str) -> None:
        self._dispatch(StoreAction(StoreActionType.MARK_AS_READ, notification_id))

    def mark_all_as_read(self) -> None:
        self._dispatch(StoreAction(StoreActionType.MARK_ALL_AS_READ))

    def clear_all(self) -> None:
        self._dispatch(StoreAction(StoreActionType.CLEAR_ALL))

    def restore(self, notifications: Iterable[Notification]) -> None:
        """
        Replace the collection with previously saved records, newest first.

        Non-persistent records get an expiry timer for whatever is left of
        the store-wide delay since their timestamp.
        """
        self._dispatch(StoreAction(StoreActionType.RESTORE, tuple(notifications)))
        now = self._clock.now()
        with self._lock:
            for n in self._state.notifications:
                if n.persistent or n.id in self._timers:
                    continue
                elapsed = (now - n.timestamp).total_seconds()
                self._timers[n.id] = self._scheduler.call_later(
                    max(0.0, self.auto_remove_delay - elapsed), lambda nid=n.id: self._expire(nid)
                )
        logger.info(f"Restored {len(self._state.notifications)} notifications")

    def shutdown(self) -> None:
        """Cancel every pending expiry timer."""
        with self._lock:
            for handle in self._timers.values():
                handle.cancel()
            self._timers.clear()

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        """Register a callback invoked with the new collection after each change."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _expire(self, notification_id: str) -> None:
        with self._lock:
            self._timers.pop(notification_id, None)
        self.remove(notification_id)

    def _dispatch(self, action: StoreAction) -> None:
        with self._lock:
            previous = self._state
            self._state = reduce(previous, action)
            if self._state is previous:
                return

            # Cancel timers of records that left the collection (removed, evicted, cleared)
            current_ids = {n.id for n in self._state.notifications}
            for n in previous.notifications:
                if n.id not in current_ids:
                    handle = self._timers.pop(n.id, None)
                    if handle is not None:
                        handle.cancel()

            snapshot = list(self._state.notifications)

        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Error in notification listener: {e}")


class Notifier:
    """Convenience producers with the notification type preset."""

    def __init__(self, store: NotificationStore):
        self._store = store

    def success(self, message: str, **options) -> str:
        return self._store.add(message, NotificationType.SUCCESS, **options)

    def error(self, message: str, **options) -> str:
        options.setdefault("persistent", True)
        return self._store.add(message, NotificationType.ERROR, **options)

    def warning(self, message: str, **options) -> str:
        return self._store.add(message, NotificationType.WARNING, **options)

    def info(self, message: str, **options) -> str:
        return self._store.add(message, NotificationType.INFO, **options)

    def system(self, message: str, **options) -> str:
        options.setdefault("persistent", True)
        return self._store.add(message, NotificationType.SYSTEM, **options)
