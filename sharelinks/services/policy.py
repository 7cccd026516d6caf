"""Expiration policy evaluation.

Every link written through the service layer gets its expiration from
``evaluate_expiration``: either the requested date, if it fits within the
policy window for the link's visibility, or the end of that window.
"""

import logging
from datetime import datetime, timedelta, timezone

from sharelinks.errors import PolicyViolation
from sharelinks.models.links import VisibilityClass
from sharelinks.models.policy import Policy
from sharelinks.repositories.policies import PolicyRepository

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def max_duration_days(visibility: VisibilityClass, policy: Policy) -> int:
    if visibility == VisibilityClass.public:
        return policy.max_duration_external
    return policy.max_duration_internal


def evaluate_expiration(
    visibility: VisibilityClass,
    requested_expires_at: datetime | None,
    policy: Policy,
    now: datetime,
) -> datetime:
    """Return the effective expiration or raise PolicyViolation."""
    if visibility == VisibilityClass.public and not policy.allow_public_sharing:
        raise PolicyViolation("public sharing disabled")

    max_date = _as_utc(now) + timedelta(days=max_duration_days(visibility, policy))
    if requested_expires_at is None:
        return max_date

    requested = _as_utc(requested_expires_at)
    if requested > max_date:
        raise PolicyViolation(
            "exceeds allowed limit",
            details={
                "requested": requested.isoformat(),
                "max_allowed": max_date.isoformat(),
            },
        )
    return requested


class PolicyService:
    """Reads the active policy and applies administrator changes."""

    def __init__(self, repository: PolicyRepository, defaults: dict):
        self._repository = repository
        self._defaults = defaults

    async def init(self) -> Policy:
        return await self._repository.ensure_default(**self._defaults)

    async def current(self) -> Policy:
        policy = await self._repository.get()
        if policy is None:
            policy = await self.init()
        return policy

    async def update(self, fields: dict) -> Policy:
        for key in ("max_duration_internal", "max_duration_external"):
            if key in fields and fields[key] is not None and fields[key] < 0:
                raise PolicyViolation(f"{key} must not be negative")
        current = await self.current()
        merged = {
            "max_duration_internal": current.max_duration_internal,
            "max_duration_external": current.max_duration_external,
            "allow_public_sharing": current.allow_public_sharing,
        }
        merged.update({k: v for k, v in fields.items() if v is not None})
        policy = await self._repository.save(merged)
        logger.info(
            "Policy updated: internal=%d external=%d public=%s",
            policy.max_duration_internal,
            policy.max_duration_external,
            policy.allow_public_sharing,
        )
        return policy
