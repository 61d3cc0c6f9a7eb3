from pydantic import BaseModel, Field
from typing import Any, Optional

from bizpulse.notifications.types import ActionKind, NotificationType


class NotificationActionSchema(BaseModel):
    """Button attached to a notification."""
    label: str = Field(..., min_length=1)
    kind: ActionKind = ActionKind.NAVIGATE
    payload: dict[str, Any] = {}
    primary: bool = False


class NotificationCreate(BaseModel):
    """Schema for adding a notification."""
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.INFO
    title: Optional[str] = None
    persistent: bool = False
    auto_remove_delay: Optional[float] = Field(None, ge=0)
    metadata: dict[str, Any] = {}
    actions: list[NotificationActionSchema] = []


class NotificationResponse(BaseModel):
    """Schema for notification response."""
    id: str
    type: NotificationType
    title: Optional[str] = None
    message: str
    timestamp: str
    read: bool = False
    persistent: bool = False
    actions: list[NotificationActionSchema] = []
    metadata: dict[str, Any] = {}


class NotificationListResponse(BaseModel):
    """Current notifications, newest first."""
    items: list[NotificationResponse]
    total: int
    unread_count: int


class NotificationStats(BaseModel):
    total: int = 0
    unread: int = 0


class NotificationCreated(BaseModel):
    id: str
