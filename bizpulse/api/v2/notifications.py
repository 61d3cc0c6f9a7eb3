"""Notifications API - in-app notification management.

Reads and mutates the shared in-memory notification store.
"""

from fastapi import APIRouter, Response, status

from bizpulse.api.deps import Store
from bizpulse.exceptions import NotFoundError
from bizpulse.notifications import NotificationAction
from bizpulse.schemas.notification import (
    NotificationCreate,
    NotificationCreated,
    NotificationListResponse,
    NotificationStats,
)

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def list_notifications(store: Store, unread_only: bool = False):
    """
    List current notifications, newest first.

    ``total`` counts the returned items, so it follows ``unread_only``.
    ``unread_count`` always covers the whole store.
    """
    items = [n.to_dict() for n in store.notifications if not (unread_only and n.read)]
    return {
        "items": items,
        "total": len(items),
        "unread_count": store.unread_count,
    }


@router.get("/stats", response_model=NotificationStats)
async def get_notification_stats(store: Store):
    """Get notification counts."""
    return NotificationStats(total=len(store.notifications), unread=store.unread_count)


@router.post("", response_model=NotificationCreated, status_code=status.HTTP_201_CREATED)
async def create_notification(notification_data: NotificationCreate, store: Store):
    """
    Add a notification.

    Non-persistent notifications expire after ``auto_remove_delay`` seconds
    (store default when omitted).
    """
    notification_id = store.add(
        notification_data.message,
        notification_data.type,
        title=notification_data.title,
        persistent=notification_data.persistent,
        auto_remove_delay=notification_data.auto_remove_delay,
        metadata=notification_data.metadata,
        actions=[
            NotificationAction(
                label=action.label,
                kind=action.kind,
                payload=action.payload,
                primary=action.primary,
            )
            for action in notification_data.actions
        ],
    )
    return NotificationCreated(id=notification_id)


@router.post("/read-all")
async def mark_all_notifications_read(store: Store):
    """Mark all notifications as read."""
    count = store.unread_count
    store.mark_all_as_read()
    return {"success": True, "count": count}


@router.get("/{notification_id}")
async def get_notification(notification_id: str, store: Store):
    """Get a single notification."""
    notification = store.get(notification_id)
    if notification is None:
        raise NotFoundError("Notification", notification_id)
    return notification.to_dict()


@router.post("/{notification_id}/read")
async def mark_notification_read(notification_id: str, store: Store):
    """Mark a notification as read. Unknown ids are ignored."""
    store.mark_as_read(notification_id)
    return {"success": True, "notification_id": notification_id}


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(notification_id: str, store: Store):
    """Delete a notification. Deleting an unknown id succeeds."""
    store.remove(notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("")
async def clear_notifications(store: Store):
    """Remove every notification."""
    count = len(store.notifications)
    store.clear_all()
    return {"success": True, "count": count}
