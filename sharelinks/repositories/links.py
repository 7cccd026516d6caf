import logging
import uuid
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from sharelinks.models.links import LinkRecipient, RecipientPermission, TrackedLink
from sharelinks.models.user import User, UserRole
from sharelinks.repositories.base import storage_error
from sharelinks.services.common import parse_uuid

logger = logging.getLogger(__name__)

Recipients = Iterable[tuple[str, RecipientPermission]]

_LOAD = (selectinload(TrackedLink.recipients), selectinload(TrackedLink.owner))


def _build_recipients(recipients: Recipients) -> list[LinkRecipient]:
    # last entry wins when a recipient is listed twice
    unique: dict[str, RecipientPermission] = {}
    for recipient, permission in recipients:
        unique[recipient] = RecipientPermission(permission)
    return [
        LinkRecipient(recipient=recipient, permission=permission)
        for recipient, permission in unique.items()
    ]


class LinkRepository:
    """Persistence for tracked links and their recipients.

    Every public method runs in its own session and transaction, so a
    single call is atomic for the record it touches.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(self, data: dict, recipients: Recipients = ()) -> TrackedLink:
        try:
            async with self._session_factory() as db:
                link = TrackedLink(**data)
                link.recipients = _build_recipients(recipients)
                db.add(link)
                await db.commit()
                return await self._reload(db, link.id)
        except SQLAlchemyError as exc:
            raise storage_error(
                "link.create", exc, link_url=data.get("link_url")
            ) from exc

    async def get(self, link_id) -> TrackedLink | None:
        lid = parse_uuid(link_id)
        if lid is None:
            return None
        try:
            async with self._session_factory() as db:
                return await self._reload(db, lid)
        except SQLAlchemyError as exc:
            raise storage_error("link.get", exc, link_id=link_id) from exc

    async def list_for(
        self, user: User, offset: int, limit: int
    ) -> tuple[list[TrackedLink], int]:
        """List links visible to ``user``, most recent first.

        Non-admin callers only ever see their own links; the filter is
        applied here rather than trusted to callers.
        """
        stmt = select(TrackedLink)
        count_stmt = select(func.count()).select_from(TrackedLink)
        if user.role != UserRole.admin:
            stmt = stmt.where(TrackedLink.owner_id == user.id)
            count_stmt = count_stmt.where(TrackedLink.owner_id == user.id)
        stmt = (
            stmt.options(*_LOAD)
            .order_by(TrackedLink.created_at.desc(), TrackedLink.id.desc())
            .offset(offset)
            .limit(limit)
        )
        try:
            async with self._session_factory() as db:
                items = list((await db.scalars(stmt)).all())
                total = await db.scalar(count_stmt)
                return items, int(total or 0)
        except SQLAlchemyError as exc:
            raise storage_error(
                "link.list", exc, user_id=user.id, offset=offset, limit=limit
            ) from exc

    async def list_all(self) -> list[TrackedLink]:
        try:
            async with self._session_factory() as db:
                stmt = select(TrackedLink).options(*_LOAD)
                return list((await db.scalars(stmt)).all())
        except SQLAlchemyError as exc:
            raise storage_error("link.list_all", exc) from exc

    async def update(
        self, link_id, fields: dict, recipients: Recipients | None = None
    ) -> TrackedLink | None:
        """Apply ``fields`` and, when given, replace the recipient set.

        Recipients are never merged: the supplied list becomes the whole
        set. Fields and recipients commit together.
        """
        lid = parse_uuid(link_id)
        if lid is None:
            return None
        try:
            async with self._session_factory() as db:
                link = await db.scalar(
                    select(TrackedLink).options(*_LOAD).where(TrackedLink.id == lid)
                )
                if link is None:
                    return None
                for key, value in fields.items():
                    setattr(link, key, value)
                if recipients is not None:
                    link.recipients.clear()
                    await db.flush()
                    link.recipients.extend(_build_recipients(recipients))
                await db.commit()
                return await self._reload(db, lid)
        except SQLAlchemyError as exc:
            raise storage_error("link.update", exc, link_id=link_id) from exc

    async def delete(self, link_id) -> bool:
        lid = parse_uuid(link_id)
        if lid is None:
            return False
        try:
            async with self._session_factory() as db:
                link = await db.scalar(
                    select(TrackedLink)
                    .options(selectinload(TrackedLink.recipients))
                    .where(TrackedLink.id == lid)
                )
                if link is None:
                    return False
                await db.delete(link)
                await db.commit()
                return True
        except SQLAlchemyError as exc:
            raise storage_error("link.delete", exc, link_id=link_id) from exc

    async def find_expiring(
        self, after: datetime, until: datetime
    ) -> list[TrackedLink]:
        """Links expiring in the half-open window ``(after, until]``."""
        stmt = (
            select(TrackedLink)
            .options(*_LOAD)
            .where(
                TrackedLink.expires_at.is_not(None),
                TrackedLink.expires_at > after,
                TrackedLink.expires_at <= until,
            )
            .order_by(TrackedLink.expires_at.asc(), TrackedLink.id.asc())
        )
        try:
            async with self._session_factory() as db:
                return list((await db.scalars(stmt)).all())
        except SQLAlchemyError as exc:
            raise storage_error(
                "link.find_expiring", exc, after=after, until=until
            ) from exc

    @staticmethod
    async def _reload(db: AsyncSession, link_id: uuid.UUID) -> TrackedLink | None:
        return await db.scalar(
            select(TrackedLink)
            .options(*_LOAD)
            .where(TrackedLink.id == link_id)
            .execution_options(populate_existing=True)
        )
