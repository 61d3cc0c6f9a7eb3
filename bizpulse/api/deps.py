"""
FastAPI Dependencies

Provides dependency injection for database sessions and the long-lived
notification components created in the application lifespan.
"""

from typing import Annotated
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bizpulse.database import get_db
from bizpulse.notifications import BusinessEventWatcher, NotificationStore


def get_notification_store(request: Request) -> NotificationStore:
    """Notification store shared by every request."""
    return request.app.state.notification_store


def get_event_watcher(request: Request) -> BusinessEventWatcher:
    """Business event watcher driven by the scheduler and the manual check route."""
    return request.app.state.event_watcher


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
Store = Annotated[NotificationStore, Depends(get_notification_store)]
Watcher = Annotated[BusinessEventWatcher, Depends(get_event_watcher)]
