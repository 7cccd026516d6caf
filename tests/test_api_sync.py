from sharelinks.models.links import VisibilityClass
from sharelinks.services.remote import RemoteLink


class TestSyncEndpoint:
    async def test_admin_triggers_sync(self, client, admin_headers, services, source) -> None:
        source.links = [
            RemoteLink(
                file_name="plan.docx",
                file_path="/plan.docx",
                link_url="https://tenant.sharepoint.com/plan",
                owner_email="owner@example.com",
                visibility=VisibilityClass.restricted,
            )
        ]
        resp = await client.post("/sync", headers=admin_headers)
        assert resp.status_code == 202
        assert resp.json() == {"message": "Synchronization started"}
        assert source.calls == 1
        links = await services.links_repo.list_all()
        assert [link.link_url for link in links] == ["https://tenant.sharepoint.com/plan"]

    async def test_failed_sync_still_accepted(self, client, admin_headers, source) -> None:
        source.error = RuntimeError("graph down")
        resp = await client.post("/api/v1/sync", headers=admin_headers)
        assert resp.status_code == 202

    async def test_non_admin_forbidden(self, client, auth_headers, source) -> None:
        resp = await client.post("/sync", headers=auth_headers)
        assert resp.status_code == 403
        assert resp.json()["message"] == "Forbidden"
        assert source.calls == 0
