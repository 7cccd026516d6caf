import logging
from datetime import datetime, timedelta

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sharelinks.db import utcnow
from sharelinks.models.sync_lock import SyncLock
from sharelinks.repositories.base import storage_error

logger = logging.getLogger(__name__)


class LockRepository:
    """Named leases stored in the database.

    A lease is taken by a single conditional UPDATE, so at most one holder
    wins across every process sharing the store. An expired lease can be
    taken over, which bounds how long a crashed holder blocks others.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def _ensure_row(self, db: AsyncSession, name: str) -> None:
        if await db.get(SyncLock, name) is not None:
            return
        db.add(SyncLock(name=name))
        try:
            await db.commit()
        except IntegrityError:
            # created concurrently by another process
            await db.rollback()

    async def acquire(
        self,
        name: str,
        holder: str,
        ttl_seconds: int,
        now: datetime | None = None,
    ) -> bool:
        now = now or utcnow()
        try:
            async with self._session_factory() as db:
                await self._ensure_row(db, name)
                result = await db.execute(
                    update(SyncLock)
                    .where(
                        SyncLock.name == name,
                        or_(SyncLock.holder.is_(None), SyncLock.expires_at <= now),
                    )
                    .values(
                        holder=holder,
                        acquired_at=now,
                        expires_at=now + timedelta(seconds=ttl_seconds),
                    )
                    .execution_options(synchronize_session=False)
                )
                await db.commit()
        except SQLAlchemyError as exc:
            raise storage_error("lock.acquire", exc, lock=name) from exc
        acquired = result.rowcount == 1
        if acquired:
            logger.debug("Acquired lock %s as %s", name, holder)
        return acquired

    async def release(self, name: str, holder: str) -> bool:
        """Free the lease if ``holder`` still owns it."""
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    update(SyncLock)
                    .where(SyncLock.name == name, SyncLock.holder == holder)
                    .values(holder=None, acquired_at=None, expires_at=None)
                    .execution_options(synchronize_session=False)
                )
                await db.commit()
        except SQLAlchemyError as exc:
            raise storage_error("lock.release", exc, lock=name) from exc
        return result.rowcount == 1
