import uuid
from datetime import datetime, timedelta, timezone

import jwt


def _payload(**overrides) -> dict:
    data = {
        "file_name": "budget.xlsx",
        "file_path": "/finance/budget.xlsx",
        "visibility": "restricted",
        "recipients": [{"recipient": "guest@example.com", "permission": "view"}],
    }
    data.update(overrides)
    return data


async def _create(client, headers, **overrides) -> dict:
    resp = await client.post("/links", json=_payload(**overrides), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestAuthentication:
    async def test_missing_token(self, client) -> None:
        resp = await client.get("/links")
        assert resp.status_code == 401
        assert resp.json()["message"] == "Unauthorized"

    async def test_invalid_token(self, client, user) -> None:
        token = jwt.encode(
            {"email": user.email}, "another-secret-0123456789abcdefghij", algorithm="HS256"
        )
        resp = await client.get("/links", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    async def test_unknown_user(self, client, settings) -> None:
        token = jwt.encode(
            {"email": "ghost@example.com"}, settings.jwt_secret, algorithm="HS256"
        )
        resp = await client.get("/links", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 404
        assert resp.json()["message"] == "User not found"


class TestLinkEndpoints:
    async def test_create(self, client, auth_headers, user) -> None:
        data = await _create(client, auth_headers)
        assert data["owner_id"] == str(user.id)
        assert data["link_url"].startswith("https://links.test/share/")
        assert data["recipients"] == [{"recipient": "guest@example.com", "permission": "view"}]
        expires = datetime.fromisoformat(data["expires_at"])
        delta = expires - datetime.now(timezone.utc)
        assert timedelta(days=89) < delta <= timedelta(days=90)

    async def test_create_policy_violation(self, client, auth_headers) -> None:
        too_late = (datetime.now(timezone.utc) + timedelta(days=45)).isoformat()
        resp = await client.post(
            "/links",
            json=_payload(visibility="public", expires_at=too_late),
            headers=auth_headers,
        )
        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == "policy_violation"
        assert body["message"] == "exceeds allowed limit"

    async def test_create_validation_error(self, client, auth_headers) -> None:
        resp = await client.post("/links", json={"file_name": ""}, headers=auth_headers)
        assert resp.status_code == 422
        assert resp.json()["code"] == "validation_error"

    async def test_get(self, client, auth_headers) -> None:
        created = await _create(client, auth_headers)
        resp = await client.get(f"/links/{created['id']}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["id"] == created["id"]

    async def test_get_foreign_link_is_not_found(
        self, client, auth_headers, other_headers
    ) -> None:
        created = await _create(client, auth_headers)
        resp = await client.get(f"/links/{created['id']}", headers=other_headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == "Link not found or access denied"

    async def test_get_not_found(self, client, auth_headers) -> None:
        resp = await client.get(f"/links/{uuid.uuid4()}", headers=auth_headers)
        assert resp.status_code == 404

    async def test_list_is_scoped_and_paged(
        self, client, auth_headers, other_headers, admin_headers
    ) -> None:
        for i in range(3):
            await _create(client, auth_headers, file_path=f"/finance/{i}.xlsx")
        await _create(client, other_headers)

        resp = await client.get("/links?page=1&limit=2", headers=auth_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 3
        assert data["pages"] == 2
        assert len(data["items"]) == 2

        resp = await client.get("/api/v1/links", headers=admin_headers)
        assert resp.json()["total"] == 4

    async def test_patch_recipients(self, client, auth_headers) -> None:
        created = await _create(client, auth_headers)
        resp = await client.patch(
            f"/links/{created['id']}",
            json={"recipients": [{"recipient": "new@example.com", "permission": "edit"}]},
            headers=auth_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["recipients"] == [
            {"recipient": "new@example.com", "permission": "edit"}
        ]

    async def test_put_by_other_user(self, client, auth_headers, other_headers) -> None:
        created = await _create(client, auth_headers)
        resp = await client.put(
            f"/links/{created['id']}", json={"recipients": []}, headers=other_headers
        )
        assert resp.status_code == 404

    async def test_delete(self, client, auth_headers) -> None:
        created = await _create(client, auth_headers)
        resp = await client.delete(f"/links/{created['id']}", headers=auth_headers)
        assert resp.status_code == 204
        resp = await client.get(f"/links/{created['id']}", headers=auth_headers)
        assert resp.status_code == 404


class TestHealth:
    async def test_health(self, client) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    async def test_metrics(self, client) -> None:
        resp = await client.get("/metrics")
        assert resp.status_code == 200
        assert "sharelinks_sync_runs" in resp.text
