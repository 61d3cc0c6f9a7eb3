"""
Tests for Notification API endpoints.

Tests notification creation, listing, mark-read and removal.
"""

import pytest
from httpx import AsyncClient

from factories import NotificationCreateFactory, PersistentNotificationFactory


class TestListNotifications:
    """Tests for GET /api/v2/notifications"""

    @pytest.mark.asyncio
    async def test_list_notifications_empty(self, client: AsyncClient):
        """Test listing notifications when none exist."""
        response = await client.get("/api/v2/notifications")
        assert response.status_code == 200
        assert response.json() == {"items": [], "total": 0, "unread_count": 0}

    @pytest.mark.asyncio
    async def test_list_newest_first(self, client: AsyncClient, store):
        """Test notifications are returned newest first."""
        store.add("Primera", persistent=True)
        store.add("Segunda", persistent=True)

        response = await client.get("/api/v2/notifications")
        data = response.json()
        assert [item["message"] for item in data["items"]] == ["Segunda", "Primera"]
        assert data["unread_count"] == 2

    @pytest.mark.asyncio
    async def test_list_filter_unread(self, client: AsyncClient, store):
        """Test unread_only hides read notifications and counts only what is returned."""
        read_id = store.add("Leída", persistent=True)
        store.add("Pendiente", persistent=True)
        store.mark_as_read(read_id)

        response = await client.get("/api/v2/notifications", params={"unread_only": True})
        data = response.json()
        assert [item["message"] for item in data["items"]] == ["Pendiente"]
        assert data["total"] == 1
        assert data["unread_count"] == 1

        unfiltered = (await client.get("/api/v2/notifications")).json()
        assert unfiltered["total"] == 2
        assert unfiltered["unread_count"] == 1

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, store):
        store.add("Uno", persistent=True)
        store.mark_as_read(store.add("Dos", persistent=True))

        response = await client.get("/api/v2/notifications/stats")
        assert response.json() == {"total": 2, "unread": 1}


class TestCreateNotification:
    """Tests for POST /api/v2/notifications"""

    @pytest.mark.asyncio
    async def test_create_notification(self, client: AsyncClient, store):
        body = PersistentNotificationFactory(type="warning", message="Revisar stock")
        body["actions"] = [
            {"label": "Ver Inventario", "kind": "view_inventory", "payload": {"inventoryId": "i1"}, "primary": True}
        ]

        response = await client.post("/api/v2/notifications", json=body)

        assert response.status_code == 201
        notification = store.get(response.json()["id"])
        assert notification.message == "Revisar stock"
        assert notification.type.value == "warning"
        assert notification.persistent is True
        assert notification.actions[0].payload == {"inventoryId": "i1"}

    @pytest.mark.asyncio
    async def test_transient_notification_expires(self, client: AsyncClient, store, clock):
        body = NotificationCreateFactory(auto_remove_delay=2)

        response = await client.post("/api/v2/notifications", json=body)
        notification_id = response.json()["id"]

        clock.advance(1.5)
        assert store.get(notification_id) is not None
        clock.advance(1)
        assert store.get(notification_id) is None

    @pytest.mark.asyncio
    async def test_create_requires_message(self, client: AsyncClient):
        response = await client.post("/api/v2/notifications", json={"message": ""})

        assert response.status_code == 422
        assert response.headers["content-type"].startswith("application/problem+json")
        assert response.json()["code"] == "VAL_001"

    @pytest.mark.asyncio
    async def test_create_rejects_unknown_type(self, client: AsyncClient):
        response = await client.post("/api/v2/notifications", json={"message": "x", "type": "urgent"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_capacity_enforced(self, client: AsyncClient):
        for i in range(7):
            await client.post("/api/v2/notifications", json=PersistentNotificationFactory(message=f"N{i}"))

        data = (await client.get("/api/v2/notifications")).json()
        assert data["total"] == 5
        assert data["items"][0]["message"] == "N6"


class TestMarkRead:
    """Tests for mark-read endpoints."""

    @pytest.mark.asyncio
    async def test_mark_notification_read(self, client: AsyncClient, store):
        notification_id = store.add("Leer", persistent=True)

        response = await client.post(f"/api/v2/notifications/{notification_id}/read")

        assert response.status_code == 200
        assert store.get(notification_id).read is True

    @pytest.mark.asyncio
    async def test_mark_unknown_notification_read(self, client: AsyncClient):
        """Unknown ids are ignored rather than rejected."""
        response = await client.post("/api/v2/notifications/missing/read")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_mark_all_read(self, client: AsyncClient, store):
        store.add("Uno", persistent=True)
        store.add("Dos", persistent=True)

        response = await client.post("/api/v2/notifications/read-all")

        assert response.json() == {"success": True, "count": 2}
        assert store.unread_count == 0


class TestGetAndDelete:
    """Tests for single-notification lookup and removal."""

    @pytest.mark.asyncio
    async def test_get_notification(self, client: AsyncClient, store):
        notification_id = store.add("Hola", persistent=True, title="Saludo")

        response = await client.get(f"/api/v2/notifications/{notification_id}")

        assert response.status_code == 200
        assert response.json()["title"] == "Saludo"

    @pytest.mark.asyncio
    async def test_get_missing_notification(self, client: AsyncClient):
        response = await client.get("/api/v2/notifications/missing")

        assert response.status_code == 404
        assert response.json()["code"] == "RES_001"

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, client: AsyncClient, store):
        notification_id = store.add("Borrar", persistent=True)

        first = await client.delete(f"/api/v2/notifications/{notification_id}")
        second = await client.delete(f"/api/v2/notifications/{notification_id}")

        assert first.status_code == 204
        assert second.status_code == 204
        assert store.notifications == []

    @pytest.mark.asyncio
    async def test_clear_all(self, client: AsyncClient, store):
        store.add("Uno", persistent=True)
        store.add("Dos")

        response = await client.delete("/api/v2/notifications")

        assert response.json() == {"success": True, "count": 2}
        assert store.notifications == []
        assert store.pending_timers == 0
