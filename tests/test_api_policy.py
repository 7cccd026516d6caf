class TestPolicyEndpoints:
    async def test_get(self, client, auth_headers) -> None:
        resp = await client.get("/policy", headers=auth_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["max_duration_internal"] == 90
        assert data["max_duration_external"] == 30
        assert data["allow_public_sharing"] is True

    async def test_admin_update(self, client, admin_headers, services) -> None:
        resp = await client.put(
            "/policy", json={"allow_public_sharing": False}, headers=admin_headers
        )
        assert resp.status_code == 200
        assert resp.json()["allow_public_sharing"] is False
        _, total = await services.audit_repo.list("policy.update", None, 0, 10)
        assert total == 1

    async def test_update_blocks_public_links(
        self, client, admin_headers, auth_headers
    ) -> None:
        await client.put("/policy", json={"allow_public_sharing": False}, headers=admin_headers)
        resp = await client.post(
            "/links",
            json={"file_name": "a.pdf", "file_path": "/a.pdf", "visibility": "public"},
            headers=auth_headers,
        )
        assert resp.status_code == 422
        assert resp.json()["message"] == "public sharing disabled"

    async def test_non_admin_update_forbidden(self, client, auth_headers) -> None:
        resp = await client.put(
            "/policy", json={"max_duration_internal": 1}, headers=auth_headers
        )
        assert resp.status_code == 403

    async def test_negative_duration_rejected(self, client, admin_headers) -> None:
        resp = await client.put(
            "/policy", json={"max_duration_external": -1}, headers=admin_headers
        )
        assert resp.status_code == 422


class TestAuditEndpoint:
    async def test_admin_lists_audit(self, client, admin_headers, auth_headers) -> None:
        await client.post(
            "/links",
            json={"file_name": "a.pdf", "file_path": "/a.pdf"},
            headers=auth_headers,
        )
        resp = await client.get("/audit?action=link.create", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json()
        assert data["count"] == 1
        assert data["items"][0]["action"] == "link.create"

    async def test_non_admin_forbidden(self, client, auth_headers) -> None:
        resp = await client.get("/audit", headers=auth_headers)
        assert resp.status_code == 403
