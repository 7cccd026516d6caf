from datetime import datetime, timezone

import httpx
import pytest

from sharelinks.models.links import RecipientPermission, VisibilityClass
from sharelinks.services.remote import (
    ClientCredentialsToken,
    GraphLinkSource,
    RemoteSourceError,
    permission_to_remote_link,
)

BASE = "https://graph.test/v1.0"

ITEM = {
    "id": "item-1",
    "name": "plan.xlsx",
    "file": {},
    "shared": {"scope": "users"},
    "parentReference": {"path": "/drive/root:/Projects/2024"},
    "createdBy": {"user": {"email": "owner@example.com"}},
}


def _permission(scope="organization", link_type="edit", **extra) -> dict:
    permission = {
        "id": "perm-1",
        "link": {"scope": scope, "type": link_type, "webUrl": "https://t.sp/x/1"},
        "grantedToIdentitiesV2": [
            {"user": {"email": "a@example.com"}},
            {"user": {"email": "b@example.com"}},
        ],
    }
    permission.update(extra)
    return permission


class TestPermissionMapping:
    def test_maps_restricted_link(self) -> None:
        remote = permission_to_remote_link(
            ITEM, _permission(expirationDateTime="2024-02-01T00:00:00Z")
        )
        assert remote.file_path == "/Projects/2024/plan.xlsx"
        assert remote.visibility == VisibilityClass.restricted
        assert remote.owner_email == "owner@example.com"
        assert remote.expires_at == datetime(2024, 2, 1, tzinfo=timezone.utc)
        assert remote.recipients == (
            ("a@example.com", RecipientPermission.edit),
            ("b@example.com", RecipientPermission.edit),
        )

    def test_anonymous_scope_is_public(self) -> None:
        remote = permission_to_remote_link(
            ITEM, _permission(scope="anonymous", link_type="blocksDownload")
        )
        assert remote.visibility == VisibilityClass.public
        assert remote.recipients[0][1] == RecipientPermission.block_download
        assert remote.expires_at is None

    def test_non_link_permission_ignored(self) -> None:
        assert permission_to_remote_link(ITEM, {"id": "p", "roles": ["owner"]}) is None

    def test_missing_owner_ignored(self) -> None:
        item = dict(ITEM, createdBy={})
        assert permission_to_remote_link(item, _permission()) is None


def _graph_handler(pages: dict, calls: list):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        if request.url.host == "login.microsoftonline.com":
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        assert request.headers["Authorization"] == "Bearer tok"
        body = pages.get(str(request.url))
        if body is None:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json=body)

    return handler


def _source(pages: dict, calls: list) -> GraphLinkSource:
    http = httpx.AsyncClient(transport=httpx.MockTransport(_graph_handler(pages, calls)))
    token = ClientCredentialsToken(http, "tenant", "client", "secret")
    return GraphLinkSource(http, token, "drive-1", BASE)


class TestGraphLinkSource:
    async def test_fetch_follows_paging(self) -> None:
        second_item = dict(ITEM, id="item-2", name="notes.docx")
        pages = {
            f"{BASE}/drives/drive-1/root/delta": {
                "value": [ITEM, {"id": "folder", "name": "Projects", "folder": {}}],
                "@odata.nextLink": f"{BASE}/drives/drive-1/root/delta?page=2",
            },
            f"{BASE}/drives/drive-1/root/delta?page=2": {"value": [second_item]},
            f"{BASE}/drives/drive-1/items/item-1/permissions": {
                "value": [_permission(), {"id": "owner", "roles": ["owner"]}]
            },
            f"{BASE}/drives/drive-1/items/item-2/permissions": {
                "value": [
                    _permission(
                        scope="anonymous",
                        link={"scope": "anonymous", "type": "view", "webUrl": "https://t.sp/x/2"},
                    )
                ]
            },
        }
        calls: list = []
        links = await _source(pages, calls).fetch_links()

        assert [link.link_url for link in links] == ["https://t.sp/x/1", "https://t.sp/x/2"]
        assert links[1].visibility == VisibilityClass.public
        token_calls = [c for c in calls if "login.microsoftonline.com" in c]
        assert len(token_calls) == 1

    async def test_http_failure_raises(self) -> None:
        calls: list = []
        with pytest.raises(RemoteSourceError):
            await _source({}, calls).fetch_links()

    async def test_requires_drive_id(self) -> None:
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        source = GraphLinkSource(
            http, ClientCredentialsToken(http, "t", "c", "s"), "", BASE
        )
        with pytest.raises(RemoteSourceError):
            await source.fetch_links()
