"""Notification record types."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from bizpulse.utils.dates import parse_datetime


class NotificationType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    SYSTEM = "system"


class ActionKind(str, Enum):
    """Action kinds resolved by the UI layer into real navigation handlers."""

    VIEW_ORDER = "view_order"
    VIEW_INVENTORY = "view_inventory"
    VIEW_INVOICE = "view_invoice"
    VIEW_MAINTENANCE = "view_maintenance"
    NAVIGATE = "navigate"


@dataclass(frozen=True)
class NotificationAction:
    """Button offered alongside a notification."""

    label: str
    kind: ActionKind
    payload: Dict[str, Any] = field(default_factory=dict)
    primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "kind": self.kind.value,
            "payload": dict(self.payload),
            "primary": self.primary,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NotificationAction":
        return cls(
            label=data["label"],
            kind=ActionKind(data["kind"]),
            payload=dict(data.get("payload") or {}),
            primary=bool(data.get("primary", False)),
        )


@dataclass(frozen=True)
class Notification:
    """
    A transient or persistent user-facing alert.

    Records are immutable; the store replaces them when their read state
    changes.
    """

    id: str
    type: NotificationType
    message: str
    timestamp: datetime
    title: Optional[str] = None
    read: bool = False
    persistent: bool = False
    actions: Tuple[NotificationAction, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "read": self.read,
            "persistent": self.persistent,
            "actions": [a.to_dict() for a in self.actions],
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Notification":
        """
        Rebuild a record from :meth:`to_dict` output.

        Raises:
            KeyError: a required field is missing
            ValueError: unknown type or action kind, or a bad timestamp
        """
        return cls(
            id=data["id"],
            type=NotificationType(data["type"]),
            message=data["message"],
            timestamp=parse_datetime(data["timestamp"]),
            title=data.get("title"),
            read=bool(data.get("read", False)),
            persistent=bool(data.get("persistent", False)),
            actions=tuple(NotificationAction.from_dict(a) for a in data.get("actions") or ()),
            metadata=dict(data.get("metadata") or {}),
        )
