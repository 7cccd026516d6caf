from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sharelinks.models.audit import AuditLog
from sharelinks.repositories.base import storage_error


class AuditRepository:
    """Append-only store; there is deliberately no update or delete."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def add(self, action: str, actor_id: str | None, details: dict) -> AuditLog:
        try:
            async with self._session_factory() as db:
                entry = AuditLog(action=action, actor_id=actor_id, details=details)
                db.add(entry)
                await db.commit()
                return entry
        except SQLAlchemyError as exc:
            raise storage_error("audit.add", exc, action=action) from exc

    async def list(
        self, action: str | None, actor_id: str | None, offset: int, limit: int
    ) -> tuple[list[AuditLog], int]:
        stmt = select(AuditLog)
        count_stmt = select(func.count()).select_from(AuditLog)
        if action is not None:
            stmt = stmt.where(AuditLog.action == action)
            count_stmt = count_stmt.where(AuditLog.action == action)
        if actor_id is not None:
            stmt = stmt.where(AuditLog.actor_id == actor_id)
            count_stmt = count_stmt.where(AuditLog.actor_id == actor_id)
        stmt = (
            stmt.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset(offset)
            .limit(limit)
        )
        try:
            async with self._session_factory() as db:
                items = list((await db.scalars(stmt)).all())
                total = await db.scalar(count_stmt)
                return items, int(total or 0)
        except SQLAlchemyError as exc:
            raise storage_error("audit.list", exc) from exc
