from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sharelinks.errors import NotFoundOrForbidden
from sharelinks.models.links import TrackedLink
from sharelinks.models.notification import Notification
from sharelinks.models.user import User
from sharelinks.repositories.base import storage_error
from sharelinks.services.common import coerce_uuid, parse_uuid

logger = logging.getLogger(__name__)

EXPIRING_EVENT = "link.expiring"


class Notifications:
    """In-app notifications, always scoped to the owning user."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create(
        self,
        user_id,
        title: str,
        body: str,
        event_type: str,
        entity_type: str,
        entity_id: str,
        metadata: dict | None = None,
    ) -> Notification:
        try:
            async with self._session_factory() as db:
                notification = Notification(
                    user_id=coerce_uuid(user_id),
                    title=title,
                    body=body,
                    event_type=event_type,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    metadata_=metadata,
                )
                db.add(notification)
                await db.commit()
                return notification
        except SQLAlchemyError as exc:
            raise storage_error("notification.create", exc, user_id=user_id) from exc

    async def get(self, user: User, notification_id: str) -> Notification:
        nid = parse_uuid(notification_id)
        if nid is None:
            raise NotFoundOrForbidden("Notification not found")
        try:
            async with self._session_factory() as db:
                notification = await db.get(Notification, nid)
        except SQLAlchemyError as exc:
            raise storage_error(
                "notification.get", exc, notification_id=notification_id
            ) from exc
        if notification is None or notification.user_id != user.id:
            raise NotFoundOrForbidden("Notification not found")
        return notification

    async def list(
        self,
        user: User,
        is_read: bool | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Notification], int]:
        filters = [Notification.user_id == user.id, Notification.is_active.is_(True)]
        if is_read is not None:
            filters.append(Notification.is_read == is_read)
        stmt = (
            select(Notification)
            .where(*filters)
            .order_by(Notification.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        try:
            async with self._session_factory() as db:
                items = list((await db.scalars(stmt)).all())
                total = await db.scalar(
                    select(func.count()).select_from(Notification).where(*filters)
                )
        except SQLAlchemyError as exc:
            raise storage_error("notification.list", exc, user_id=user.id) from exc
        return items, int(total or 0)

    async def mark_read(self, user: User, notification_ids: list[str]) -> int:
        ids = [nid for nid in (parse_uuid(i) for i in notification_ids) if nid]
        if not ids:
            return 0
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    update(Notification)
                    .where(
                        Notification.id.in_(ids),
                        Notification.user_id == user.id,
                        Notification.is_read.is_(False),
                    )
                    .values(is_read=True, read_at=datetime.now(timezone.utc))
                )
                await db.commit()
        except SQLAlchemyError as exc:
            raise storage_error("notification.mark_read", exc, user_id=user.id) from exc
        logger.info("Marked %d notifications as read", result.rowcount)
        return result.rowcount

    async def mark_all_read(self, user: User) -> int:
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    update(Notification)
                    .where(
                        Notification.user_id == user.id,
                        Notification.is_read.is_(False),
                        Notification.is_active.is_(True),
                    )
                    .values(is_read=True, read_at=datetime.now(timezone.utc))
                )
                await db.commit()
        except SQLAlchemyError as exc:
            raise storage_error(
                "notification.mark_all_read", exc, user_id=user.id
            ) from exc
        logger.info(
            "Marked all %d notifications as read for user %s", result.rowcount, user.id
        )
        return result.rowcount

    async def unread_count(self, user: User) -> int:
        try:
            async with self._session_factory() as db:
                count = await db.scalar(
                    select(func.count())
                    .select_from(Notification)
                    .where(
                        Notification.user_id == user.id,
                        Notification.is_read.is_(False),
                        Notification.is_active.is_(True),
                    )
                )
        except SQLAlchemyError as exc:
            raise storage_error(
                "notification.unread_count", exc, user_id=user.id
            ) from exc
        return int(count or 0)

    async def dismiss(self, user: User, notification_id: str) -> None:
        notification = await self.get(user, notification_id)
        try:
            async with self._session_factory() as db:
                await db.execute(
                    update(Notification)
                    .where(Notification.id == notification.id)
                    .values(is_active=False)
                )
                await db.commit()
        except SQLAlchemyError as exc:
            raise storage_error(
                "notification.dismiss", exc, notification_id=notification_id
            ) from exc
        logger.info("Dismissed notification %s", notification_id)


def expiring_links_message(
    owner: User, links: list[TrackedLink], link_base_url: str
) -> tuple[str, str]:
    title = f"You have {len(links)} shared link(s) expiring soon"
    lines = [f"Hello {owner.name or owner.email},", ""]
    lines.append("The following shared links are about to expire:")
    for link in links:
        expires = link.expires_at.strftime("%Y-%m-%d") if link.expires_at else "N/A"
        shared_with = ", ".join(r.recipient for r in link.recipients) or "-"
        lines.append(
            f"- {link.file_name} (shared with: {shared_with}) expires {expires}: "
            f"{link_base_url.rstrip('/')}/links/{link.id}"
        )
    lines.extend(["", "Visit the dashboard to extend these links."])
    return title, "\n".join(lines)


class InAppNotificationDispatcher:
    """Stores an in-app notification and queues the matching e-mail."""

    def __init__(self, notifications: Notifications, link_base_url: str):
        self._notifications = notifications
        self._link_base_url = link_base_url

    async def dispatch(self, owner: User, links: list[TrackedLink]) -> None:
        title, body = expiring_links_message(owner, links, self._link_base_url)
        await self._notifications.create(
            owner.id,
            title=title,
            body=body,
            event_type=EXPIRING_EVENT,
            entity_type="tracked_link",
            entity_id=str(links[0].id) if len(links) == 1 else "multiple",
            metadata={"link_ids": [str(link.id) for link in links]},
        )
        from sharelinks.tasks.notifications import send_notification_email

        send_notification_email.delay(to=owner.email, subject=title, body=body)
        logger.info(
            "Sent expiration notification to user %s for %d links",
            owner.id,
            len(links),
        )
