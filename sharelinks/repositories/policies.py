import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from sharelinks.models.policy import DEFAULT_POLICY_NAME, Policy
from sharelinks.repositories.base import storage_error

logger = logging.getLogger(__name__)


class PolicyRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get(self, name: str = DEFAULT_POLICY_NAME) -> Policy | None:
        try:
            async with self._session_factory() as db:
                return await db.scalar(select(Policy).where(Policy.name == name))
        except SQLAlchemyError as exc:
            raise storage_error("policy.get", exc, policy_name=name) from exc

    async def ensure_default(
        self,
        max_duration_internal: int,
        max_duration_external: int,
        allow_public_sharing: bool,
    ) -> Policy:
        """Create the default policy unless one already exists."""
        try:
            async with self._session_factory() as db:
                policy = await db.scalar(
                    select(Policy).where(Policy.name == DEFAULT_POLICY_NAME)
                )
                if policy is not None:
                    return policy
                policy = Policy(
                    name=DEFAULT_POLICY_NAME,
                    max_duration_internal=max_duration_internal,
                    max_duration_external=max_duration_external,
                    allow_public_sharing=allow_public_sharing,
                )
                db.add(policy)
                await db.commit()
                logger.info("Seeded default sharing policy")
                return policy
        except SQLAlchemyError as exc:
            raise storage_error("policy.ensure_default", exc) from exc

    async def save(self, fields: dict, name: str = DEFAULT_POLICY_NAME) -> Policy:
        try:
            async with self._session_factory() as db:
                policy = await db.scalar(select(Policy).where(Policy.name == name))
                if policy is None:
                    policy = Policy(name=name)
                    db.add(policy)
                for key, value in fields.items():
                    setattr(policy, key, value)
                await db.commit()
                await db.refresh(policy)
                logger.info("Saved sharing policy %s", name)
                return policy
        except SQLAlchemyError as exc:
            raise storage_error("policy.save", exc, policy_name=name) from exc
