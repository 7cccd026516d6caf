"""Remote link source: the sharing platform's view of every shared link.

``GraphLinkSource`` walks a Microsoft Graph drive and turns each sharing
permission that carries a ``link`` facet into a ``RemoteLink``. Paging is
handled here; callers always get the complete set or an exception.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

import httpx

from sharelinks.models.links import RecipientPermission, VisibilityClass
from sharelinks.services.common import file_identity

logger = logging.getLogger(__name__)

_LINK_TYPE_PERMISSIONS = {
    "view": RecipientPermission.view,
    "edit": RecipientPermission.edit,
    "blocksDownload": RecipientPermission.block_download,
}


@dataclass(frozen=True)
class RemoteLink:
    file_name: str
    file_path: str
    link_url: str
    owner_email: str
    visibility: VisibilityClass
    expires_at: datetime | None = None
    recipients: tuple[tuple[str, RecipientPermission], ...] = field(default=())

    @property
    def file_id(self) -> str:
        return file_identity(self.file_path)


class RemoteLinkSource(Protocol):
    async def fetch_links(self) -> list[RemoteLink]: ...


class RemoteSourceError(Exception):
    """The remote platform could not produce a complete link listing."""


class ClientCredentialsToken:
    """OAuth2 client-credentials access token, cached until near expiry."""

    REFRESH_MARGIN_SECONDS = 60

    def __init__(
        self,
        http: httpx.AsyncClient,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        scope: str = "https://graph.microsoft.com/.default",
    ):
        self._http = http
        self._token_url = (
            f"https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"
        )
        self._client_id = client_id
        self._client_secret = client_secret
        self._scope = scope
        self._token: str | None = None
        self._expires_at = 0.0

    async def get(self) -> str:
        if self._token and time.monotonic() < self._expires_at:
            return self._token
        resp = await self._http.post(
            self._token_url,
            data={
                "grant_type": "client_credentials",
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "scope": self._scope,
            },
        )
        resp.raise_for_status()
        body = resp.json()
        self._token = body["access_token"]
        self._expires_at = (
            time.monotonic()
            + int(body.get("expires_in", 3600))
            - self.REFRESH_MARGIN_SECONDS
        )
        return self._token


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _item_path(item: dict) -> str:
    parent = (item.get("parentReference") or {}).get("path") or ""
    # Graph reports parents as "/drive/root:/Folder/Sub"
    if ":" in parent:
        parent = parent.split(":", 1)[1]
    return f"{parent.rstrip('/')}/{item['name']}"


def _identity_emails(permission: dict) -> list[str]:
    emails = []
    for key in ("grantedToIdentitiesV2", "grantedToIdentities"):
        for identity in permission.get(key) or []:
            user = identity.get("user") or {}
            email = user.get("email")
            if email and email not in emails:
                emails.append(email)
        if emails:
            break
    return emails


def permission_to_remote_link(item: dict, permission: dict) -> RemoteLink | None:
    """Normalize one Graph permission; None when it is not a sharing link."""
    link = permission.get("link")
    if not link or not link.get("webUrl"):
        return None
    owner = ((item.get("createdBy") or {}).get("user") or {}).get("email")
    if not owner:
        logger.warning("Skipping shared link on %s: no owner email", item.get("id"))
        return None
    visibility = (
        VisibilityClass.public
        if link.get("scope") == "anonymous"
        else VisibilityClass.restricted
    )
    level = _LINK_TYPE_PERMISSIONS.get(link.get("type"), RecipientPermission.view)
    return RemoteLink(
        file_name=item["name"],
        file_path=_item_path(item),
        link_url=link["webUrl"],
        owner_email=owner,
        visibility=visibility,
        expires_at=_parse_datetime(permission.get("expirationDateTime")),
        recipients=tuple((email, level) for email in _identity_emails(permission)),
    )


class GraphLinkSource:
    def __init__(
        self,
        http: httpx.AsyncClient,
        token: ClientCredentialsToken,
        drive_id: str,
        base_url: str = "https://graph.microsoft.com/v1.0",
    ):
        self._http = http
        self._token = token
        self._drive_id = drive_id
        self._base_url = base_url.rstrip("/")

    async def _get(self, url: str) -> dict:
        token = await self._token.get()
        resp = await self._http.get(url, headers={"Authorization": f"Bearer {token}"})
        resp.raise_for_status()
        return resp.json()

    async def _iter_pages(self, url: str):
        next_url: str | None = url
        while next_url:
            page = await self._get(next_url)
            for value in page.get("value", []):
                yield value
            next_url = page.get("@odata.nextLink")

    async def fetch_links(self) -> list[RemoteLink]:
        if not self._drive_id:
            raise RemoteSourceError("GRAPH_DRIVE_ID is not configured")
        drive_url = f"{self._base_url}/drives/{self._drive_id}"
        links: list[RemoteLink] = []
        try:
            async for item in self._iter_pages(f"{drive_url}/root/delta"):
                if "file" not in item or "deleted" in item:
                    continue
                if not item.get("shared"):
                    continue
                async for permission in self._iter_pages(
                    f"{drive_url}/items/{item['id']}/permissions"
                ):
                    remote = permission_to_remote_link(item, permission)
                    if remote is not None:
                        links.append(remote)
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise RemoteSourceError(f"Graph link listing failed: {e}") from e
        logger.info("Fetched %d shared links from drive %s", len(links), self._drive_id)
        return links
