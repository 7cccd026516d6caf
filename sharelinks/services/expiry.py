import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

from prometheus_client import Counter

from sharelinks.db import utcnow
from sharelinks.models.links import TrackedLink
from sharelinks.models.user import User
from sharelinks.repositories.links import LinkRepository

logger = logging.getLogger(__name__)

EXPIRY_NOTIFICATIONS = Counter(
    "sharelinks_expiry_notifications_total",
    "Owner notifications about expiring links by outcome",
    ["outcome"],
)


@dataclass
class OwnerExpiringLinks:
    owner: User
    links: list[TrackedLink] = field(default_factory=list)


class NotificationDispatcher(Protocol):
    async def dispatch(self, owner: User, links: list[TrackedLink]) -> None: ...


class ExpirationScanner:
    def __init__(self, links: LinkRepository, clock: Callable[[], datetime] = utcnow):
        self._links = links
        self._clock = clock

    async def find_expiring_links(self, days_threshold: int) -> list[OwnerExpiringLinks]:
        """Links that have not expired yet but will within ``days_threshold``.

        Returned grouped by owner, one group per owner, links soonest first.
        """
        now = self._clock()
        until = now + timedelta(days=days_threshold)
        links = await self._links.find_expiring(now, until)

        groups: dict = {}
        for link in links:
            group = groups.get(link.owner_id)
            if group is None:
                group = groups[link.owner_id] = OwnerExpiringLinks(owner=link.owner)
            group.links.append(link)
        return list(groups.values())


class ExpiringLinksNotifier:
    """Scheduled job: one consolidated notification per owner."""

    def __init__(
        self,
        scanner: ExpirationScanner,
        dispatcher: NotificationDispatcher,
        days_threshold: int = 7,
    ):
        self._scanner = scanner
        self._dispatcher = dispatcher
        self.days_threshold = days_threshold

    async def check_and_notify(self) -> int:
        logger.info("Checking for expiring links (threshold %d days)", self.days_threshold)
        groups = await self._scanner.find_expiring_links(self.days_threshold)
        if not groups:
            logger.info("No expiring links found")
            return 0

        notified = 0
        for group in groups:
            try:
                await self._dispatcher.dispatch(group.owner, group.links)
                notified += 1
                EXPIRY_NOTIFICATIONS.labels(outcome="sent").inc()
            except Exception as e:
                EXPIRY_NOTIFICATIONS.labels(outcome="failed").inc()
                logger.error(
                    "Failed to notify user %s about %d expiring links: %s",
                    group.owner.id,
                    len(group.links),
                    e,
                )
        logger.info(
            "Expiring links notification finished: %d of %d owners notified",
            notified,
            len(groups),
        )
        return notified
