import logging
import uuid
from collections.abc import Callable
from datetime import datetime

from sharelinks.db import utcnow
from sharelinks.errors import NotFoundOrForbidden
from sharelinks.models.links import TrackedLink
from sharelinks.models.user import User
from sharelinks.repositories.links import LinkRepository
from sharelinks.schemas.links import TrackedLinkCreate, TrackedLinkUpdate
from sharelinks.services.access import can_access, can_mutate
from sharelinks.services.audit import AuditRecorder
from sharelinks.services.common import file_identity, page_to_offset
from sharelinks.services.policy import PolicyService, evaluate_expiration

logger = logging.getLogger(__name__)


def _recipient_pairs(recipients) -> list[tuple]:
    return [(r.recipient, r.permission) for r in recipients]


class LinkService:
    """Tracked-link lifecycle with access control, policy, and audit."""

    def __init__(
        self,
        links: LinkRepository,
        policies: PolicyService,
        audit: AuditRecorder,
        link_base_url: str,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._links = links
        self._policies = policies
        self._audit = audit
        self._link_base_url = link_base_url.rstrip("/")
        self._clock = clock

    def generate_link_url(self) -> str:
        return f"{self._link_base_url}/share/{uuid.uuid4().hex[:8]}"

    async def create_link(self, user: User, payload: TrackedLinkCreate) -> TrackedLink:
        policy = await self._policies.current()
        expires_at = evaluate_expiration(
            payload.visibility, payload.expires_at, policy, self._clock()
        )
        data = {
            "file_id": file_identity(payload.file_path),
            "file_name": payload.file_name,
            "file_path": payload.file_path,
            "visibility": payload.visibility,
            "link_url": payload.link_url or self.generate_link_url(),
            "owner_id": user.id,
            "expires_at": expires_at,
        }
        link = await self._links.create(data, _recipient_pairs(payload.recipients))
        await self._audit.record(
            "link.create",
            user.id,
            {
                "link_id": link.id,
                "file_name": link.file_name,
                "visibility": link.visibility,
                "recipients": _recipient_pairs(link.recipients),
            },
        )
        logger.info("Created tracked link %s", link.id)
        return link

    async def get_link(self, user: User, link_id: str) -> TrackedLink:
        link = await self._links.get(link_id)
        if link is None:
            raise NotFoundOrForbidden()
        if not can_access(user, link):
            logger.warning(
                "Unauthorized access attempt to tracked link %s by user %s (owner %s)",
                link.id,
                user.id,
                link.owner_id,
            )
            raise NotFoundOrForbidden()
        return link

    async def list_links(
        self, user: User, page: int = 1, limit: int = 10
    ) -> tuple[list[TrackedLink], int]:
        return await self._links.list_for(user, page_to_offset(page, limit), limit)

    async def update_link(
        self, user: User, link_id: str, payload: TrackedLinkUpdate
    ) -> TrackedLink:
        link = await self.get_link(user, link_id)
        if not can_mutate(user, link):
            raise NotFoundOrForbidden()

        changes = payload.model_dump(exclude_unset=True)
        fields: dict = {}
        if "visibility" in changes and payload.visibility is None:
            changes.pop("visibility")
        if "visibility" in changes or "expires_at" in changes:
            visibility = payload.visibility or link.visibility
            requested = (
                payload.expires_at if "expires_at" in changes else link.expires_at
            )
            policy = await self._policies.current()
            fields["visibility"] = visibility
            fields["expires_at"] = evaluate_expiration(
                visibility, requested, policy, self._clock()
            )
        recipients = None
        if payload.recipients is not None:
            recipients = _recipient_pairs(payload.recipients)

        updated = await self._links.update(link.id, fields, recipients)
        if updated is None:
            # deleted between the read and the write
            raise NotFoundOrForbidden()
        await self._audit.record(
            "link.update",
            user.id,
            {"link_id": link.id, "updates": payload.model_dump(exclude_unset=True)},
        )
        logger.info("Updated tracked link %s", link.id)
        return updated

    async def delete_link(self, user: User, link_id: str) -> None:
        link = await self.get_link(user, link_id)
        if not can_mutate(user, link):
            raise NotFoundOrForbidden()
        if not await self._links.delete(link.id):
            raise NotFoundOrForbidden()
        await self._audit.record(
            "link.delete", user.id, {"link_id": link.id, "file_name": link.file_name}
        )
        logger.info("Deleted tracked link %s", link.id)
