"""Explicit wiring of every long-lived component.

The API lifespan and each Celery task build one ``Services`` instance,
call ``init()`` before use and ``shutdown()`` afterwards. Nothing here is
created at import time.
"""

from __future__ import annotations

import logging

import httpx
from sqlalchemy.ext.asyncio import AsyncEngine

from sharelinks.config import Settings
from sharelinks.db import get_engine, get_sessionmaker
from sharelinks.repositories import (
    AuditRepository,
    LinkRepository,
    LockRepository,
    PolicyRepository,
    UserRepository,
)
from sharelinks.services.audit import AuditRecorder
from sharelinks.services.expiry import (
    ExpirationScanner,
    ExpiringLinksNotifier,
    NotificationDispatcher,
)
from sharelinks.services.links import LinkService
from sharelinks.services.notification import InAppNotificationDispatcher, Notifications
from sharelinks.services.policy import PolicyService
from sharelinks.services.remote import (
    ClientCredentialsToken,
    GraphLinkSource,
    RemoteLinkSource,
)
from sharelinks.services.sync import LinkReconciler

logger = logging.getLogger(__name__)


class Services:
    def __init__(
        self,
        settings: Settings,
        engine: AsyncEngine | None = None,
        source: RemoteLinkSource | None = None,
        dispatcher: NotificationDispatcher | None = None,
    ):
        self.settings = settings
        self._engine = engine
        self._owns_engine = engine is None
        self._source = source
        self._dispatcher = dispatcher
        self._http: httpx.AsyncClient | None = None
        self._initialized = False

    async def init(self) -> "Services":
        if self._initialized:
            return self
        settings = self.settings
        if self._engine is None:
            self._engine = get_engine(settings)
        self.session_factory = get_sessionmaker(self._engine)

        self.users = UserRepository(self.session_factory)
        self.links_repo = LinkRepository(self.session_factory)
        self.audit_repo = AuditRepository(self.session_factory)
        self.audit = AuditRecorder(self.audit_repo)
        self.policies = PolicyService(
            PolicyRepository(self.session_factory),
            defaults={
                "max_duration_internal": settings.policy_max_days_internal,
                "max_duration_external": settings.policy_max_days_external,
                "allow_public_sharing": settings.policy_allow_public_sharing,
            },
        )
        self.links = LinkService(
            self.links_repo, self.policies, self.audit, settings.link_base_url
        )

        if self._source is None:
            self._http = httpx.AsyncClient(timeout=settings.graph_timeout)
            token = ClientCredentialsToken(
                self._http,
                settings.graph_tenant_id,
                settings.graph_client_id,
                settings.graph_client_secret,
            )
            self._source = GraphLinkSource(
                self._http, token, settings.graph_drive_id, settings.graph_base_url
            )
        self.locks = LockRepository(self.session_factory)
        self.reconciler = LinkReconciler(
            self._source,
            self.links_repo,
            self.users,
            self.audit,
            self.locks,
            lock_ttl=settings.sync_lock_ttl,
        )

        self.notifications = Notifications(self.session_factory)
        if self._dispatcher is None:
            self._dispatcher = InAppNotificationDispatcher(
                self.notifications, settings.link_base_url
            )
        self.scanner = ExpirationScanner(self.links_repo)
        self.notifier = ExpiringLinksNotifier(
            self.scanner, self._dispatcher, settings.expiration_notification_days
        )

        await self.policies.init()
        self._initialized = True
        logger.info("Services initialized")
        return self

    async def shutdown(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None
        if self._owns_engine and self._engine is not None:
            await self._engine.dispose()
            self._engine = None
        self._initialized = False
        logger.info("Services shut down")
