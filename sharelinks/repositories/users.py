import logging
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sharelinks.models.user import User, UserRole
from sharelinks.repositories.base import storage_error
from sharelinks.services.common import parse_uuid

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, user_id) -> User | None:
        uid = parse_uuid(user_id)
        if uid is None:
            return None
        try:
            async with self._session_factory() as db:
                return await db.get(User, uid)
        except SQLAlchemyError as exc:
            raise storage_error("user.get", exc, user_id=user_id) from exc

    async def get_by_email(self, email: str) -> User | None:
        try:
            async with self._session_factory() as db:
                return await db.scalar(
                    select(User).where(User.email == normalize_email(email))
                )
        except SQLAlchemyError as exc:
            raise storage_error("user.get_by_email", exc, email=email) from exc

    async def create(
        self, email: str, name: str | None = None, role: UserRole = UserRole.user
    ) -> User:
        try:
            async with self._session_factory() as db:
                user = User(email=normalize_email(email), name=name, role=role)
                db.add(user)
                await db.commit()
                logger.info("Created user %s", user.id)
                return user
        except SQLAlchemyError as exc:
            raise storage_error("user.create", exc, email=email) from exc

    async def ensure_by_email(self, emails: Iterable[str]) -> dict[str, User]:
        """Map e-mails to users, creating plain users for unknown addresses."""
        wanted = {normalize_email(email) for email in emails if email}
        if not wanted:
            return {}
        try:
            async with self._session_factory() as db:
                existing = (
                    await db.scalars(select(User).where(User.email.in_(wanted)))
                ).all()
                users = {user.email: user for user in existing}
                missing = sorted(wanted - users.keys())
                for email in missing:
                    user = User(email=email, role=UserRole.user)
                    db.add(user)
                    users[email] = user
                if missing:
                    await db.commit()
                    logger.info("Provisioned %d users from remote owners", len(missing))
                return users
        except SQLAlchemyError as exc:
            raise storage_error("user.ensure_by_email", exc, count=len(wanted)) from exc
