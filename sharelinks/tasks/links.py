import asyncio
import logging

from sharelinks.celery_app import celery_app

logger = logging.getLogger(__name__)


async def _with_services(action):
    from sharelinks.config import settings
    from sharelinks.container import Services

    services = Services(settings)
    await services.init()
    try:
        return await action(services)
    finally:
        await services.shutdown()


async def _synchronize(services) -> dict:
    result = await services.reconciler.synchronize()
    return result.as_dict()


async def _notify(services) -> int:
    return await services.notifier.check_and_notify()


@celery_app.task(name="sharelinks.tasks.links.synchronize_links", ignore_result=True)
def synchronize_links() -> None:
    """Scheduled reconciliation pass against the sharing platform.

    A failed pass is logged; the next scheduled run retries from whatever
    state this one left behind.
    """
    from sharelinks.errors import SyncError, SyncInProgress

    try:
        counts = asyncio.run(_with_services(_synchronize))
        logger.info("Scheduled link synchronization finished: %s", counts)
    except SyncInProgress:
        logger.info("Skipped scheduled link synchronization: another pass holds the lock")
    except SyncError as e:
        logger.error("Scheduled link synchronization failed: %s", e)


@celery_app.task(name="sharelinks.tasks.links.notify_expiring_links", ignore_result=True)
def notify_expiring_links() -> None:
    """Notify owners whose links expire within the configured window."""
    try:
        notified = asyncio.run(_with_services(_notify))
        logger.info("Expiring link notifications sent to %d owners", notified)
    except Exception as e:
        logger.exception("Error in expiring links notification job: %s", e)
