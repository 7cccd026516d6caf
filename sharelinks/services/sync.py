"""Reconciliation of tracked links against the sharing platform.

The remote listing is the source of truth. A pass fetches it completely,
then converges local state with a two-way diff keyed on ``link_url``:

* remote and local → local is overwritten with the remote fields and its
  recipient set is replaced wholesale;
* remote only → inserted;
* local only → deleted.

There is no base snapshot, so edits made locally between passes are
overwritten or removed by the next pass. Mutations are applied one record
at a time; a pass that dies halfway leaves valid, partially converged state
that the next pass completes.

Passes are serialized at two levels. Callers sharing a reconciler join the
pass already running in that process. Across processes (API, Celery
workers) a pass first takes the ``link-sync`` lease in the database; a pass
that cannot take it raises ``SyncInProgress`` without fetching or writing.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass

from prometheus_client import Counter, Histogram

from sharelinks.errors import RepositoryError, SyncError, SyncInProgress
from sharelinks.models.links import TrackedLink
from sharelinks.repositories.links import LinkRepository
from sharelinks.repositories.locks import LockRepository
from sharelinks.repositories.users import UserRepository, normalize_email
from sharelinks.services.audit import AuditRecorder
from sharelinks.services.remote import RemoteLink, RemoteLinkSource

logger = logging.getLogger(__name__)

SYNC_LOCK_NAME = "link-sync"

SYNC_RUNS = Counter(
    "sharelinks_sync_runs_total", "Reconciliation passes by outcome", ["outcome"]
)
SYNC_CHANGES = Counter(
    "sharelinks_sync_changes_total", "Links changed by reconciliation", ["action"]
)
SYNC_DURATION = Histogram(
    "sharelinks_sync_duration_seconds", "Duration of reconciliation passes"
)


@dataclass
class SyncResult:
    created: int = 0
    updated: int = 0
    deleted: int = 0
    unchanged: int = 0

    def as_dict(self) -> dict:
        return {
            "created": self.created,
            "updated": self.updated,
            "deleted": self.deleted,
            "unchanged": self.unchanged,
        }


def _recipient_set(recipients) -> set[tuple[str, str]]:
    return {(r[0], r[1].value) for r in recipients}


def _local_recipient_set(link: TrackedLink) -> set[tuple[str, str]]:
    return {(r.recipient, r.permission.value) for r in link.recipients}


def _fields_for(remote: RemoteLink, owner_id) -> dict:
    return {
        "file_id": remote.file_id,
        "file_name": remote.file_name,
        "file_path": remote.file_path,
        "visibility": remote.visibility,
        "link_url": remote.link_url,
        "owner_id": owner_id,
        "expires_at": remote.expires_at,
    }


def _matches(local: TrackedLink, fields: dict, remote: RemoteLink) -> bool:
    for key, value in fields.items():
        if getattr(local, key) != value:
            return False
    return _local_recipient_set(local) == _recipient_set(remote.recipients)


def dedupe_remote(remote_links: list[RemoteLink]) -> list[RemoteLink]:
    """Collapse duplicate ``link_url`` entries; the last one wins."""
    by_url: dict[str, RemoteLink] = {}
    for remote in remote_links:
        if remote.link_url in by_url:
            logger.warning(
                "Remote listing contains duplicate link_url %s; keeping the later entry",
                remote.link_url,
            )
        by_url[remote.link_url] = remote
    return list(by_url.values())


class LinkReconciler:
    """Converges local tracked links to the remote listing.

    At most one pass runs per instance. Callers that arrive while a pass
    is running wait for it and share its outcome instead of starting a
    second, overlapping diff. Instances in other processes are kept out by
    the database lease taken at the start of each pass.
    """

    def __init__(
        self,
        source: RemoteLinkSource,
        links: LinkRepository,
        users: UserRepository,
        audit: AuditRecorder,
        locks: LockRepository,
        lock_ttl: int = 1800,
    ):
        self._source = source
        self._links = links
        self._users = users
        self._audit = audit
        self._locks = locks
        self._lock_ttl = lock_ttl
        self._inflight: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def synchronize(self, actor_id=None) -> SyncResult:
        if not self.running:
            self._inflight = asyncio.ensure_future(self._run(actor_id))
            self._inflight.add_done_callback(self._on_done)
        else:
            logger.info("Link synchronization already running; joining it")
        # shielded: a caller that stops waiting does not cancel the pass
        return await asyncio.shield(self._inflight)

    def _on_done(self, task: asyncio.Task) -> None:
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled():
            # mark the exception retrieved when every waiter has gone away
            task.exception()

    async def _run(self, actor_id) -> SyncResult:
        holder = uuid.uuid4().hex
        with SYNC_DURATION.time():
            try:
                if not await self._locks.acquire(
                    SYNC_LOCK_NAME, holder, self._lock_ttl
                ):
                    raise SyncInProgress("link synchronization already running")
                try:
                    logger.info("Starting link synchronization")
                    result = await self._reconcile()
                finally:
                    await self._release(holder)
            except SyncInProgress:
                SYNC_RUNS.labels(outcome="skipped").inc()
                logger.info("Link synchronization already running elsewhere; skipped")
                raise
            except SyncError:
                SYNC_RUNS.labels(outcome="failed").inc()
                raise
            except RepositoryError as e:
                # logged with its operation context where it was raised
                SYNC_RUNS.labels(outcome="failed").inc()
                raise SyncError("link synchronization failed") from e
            except Exception as e:
                SYNC_RUNS.labels(outcome="failed").inc()
                logger.exception("Failed to synchronize links: %s", e)
                raise SyncError("link synchronization failed") from e
        SYNC_RUNS.labels(outcome="success").inc()
        for action, count in result.as_dict().items():
            if count and action != "unchanged":
                SYNC_CHANGES.labels(action=action).inc(count)
        await self._audit.record("link.sync", actor_id, result.as_dict())
        logger.info(
            "Link synchronization complete",
            extra={"sync": result.as_dict()},
        )
        return result

    async def _release(self, holder: str) -> None:
        try:
            await self._locks.release(SYNC_LOCK_NAME, holder)
        except RepositoryError:
            # the lease still lapses after lock_ttl
            logger.warning(
                "Sync lock %s not released by %s; it frees at lease expiry",
                SYNC_LOCK_NAME,
                holder,
            )

    async def _reconcile(self) -> SyncResult:
        # the remote snapshot must be complete before anything local changes
        try:
            remote_links = await self._source.fetch_links()
        except Exception as e:
            logger.error("Remote link fetch failed; nothing was changed: %s", e)
            raise SyncError("remote link fetch failed") from e

        remote_links = dedupe_remote(remote_links)
        owners = await self._users.ensure_by_email(r.owner_email for r in remote_links)
        local_by_url = {link.link_url: link for link in await self._links.list_all()}

        result = SyncResult()
        for remote in remote_links:
            owner = owners[normalize_email(remote.owner_email)]
            fields = _fields_for(remote, owner.id)
            local = local_by_url.get(remote.link_url)
            if local is None:
                await self._links.create(fields, remote.recipients)
                result.created += 1
            elif _matches(local, fields, remote):
                result.unchanged += 1
            else:
                await self._links.update(local.id, fields, remote.recipients)
                result.updated += 1

        remote_urls = {remote.link_url for remote in remote_links}
        for url, local in local_by_url.items():
            if url not in remote_urls:
                await self._links.delete(local.id)
                result.deleted += 1
        return result
