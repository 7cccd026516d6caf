import uuid

import pytest


@pytest.fixture()
async def notification(services, user):
    return await services.notifications.create(
        user.id,
        title="Test Notification",
        body="Something happened",
        event_type="link.expiring",
        entity_type="tracked_link",
        entity_id=str(uuid.uuid4()),
    )


@pytest.fixture()
async def notifications_batch(services, user):
    items = []
    for i in range(3):
        items.append(
            await services.notifications.create(
                user.id,
                title=f"Notification {i}",
                body=f"Body {i}",
                event_type="link.expiring",
                entity_type="tracked_link",
                entity_id=str(uuid.uuid4()),
            )
        )
    return items


class TestNotificationEndpoints:
    async def test_get(self, client, auth_headers, notification) -> None:
        resp = await client.get(f"/notifications/{notification.id}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["id"] == str(notification.id)

    async def test_get_not_found(self, client, auth_headers) -> None:
        resp = await client.get(f"/notifications/{uuid.uuid4()}", headers=auth_headers)
        assert resp.status_code == 404

    async def test_get_other_users(self, client, other_headers, notification) -> None:
        resp = await client.get(f"/notifications/{notification.id}", headers=other_headers)
        assert resp.status_code == 404

    async def test_list(self, client, auth_headers, notifications_batch) -> None:
        resp = await client.get("/notifications", headers=auth_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 3
        assert len(data["items"]) == 3

    async def test_unread_count_and_mark_read(
        self, client, auth_headers, notifications_batch
    ) -> None:
        resp = await client.get("/notifications/unread-count", headers=auth_headers)
        assert resp.json() == {"count": 3}

        resp = await client.post(
            "/notifications/mark-read",
            json={"notification_ids": [str(notifications_batch[0].id)]},
            headers=auth_headers,
        )
        assert resp.json() == {"marked": 1}

        resp = await client.post("/notifications/mark-all-read", headers=auth_headers)
        assert resp.json() == {"marked": 2}

        resp = await client.get("/notifications?is_read=false", headers=auth_headers)
        assert resp.json()["count"] == 0

    async def test_dismiss(self, client, auth_headers, notification) -> None:
        resp = await client.delete(
            f"/notifications/{notification.id}", headers=auth_headers
        )
        assert resp.status_code == 204
        resp = await client.get("/notifications", headers=auth_headers)
        assert resp.json()["count"] == 0
