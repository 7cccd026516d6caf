import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status

from sharelinks.api.deps import get_services, require_admin
from sharelinks.container import Services
from sharelinks.errors import SyncError, SyncInProgress
from sharelinks.models.user import User
from sharelinks.schemas.sync import SyncAccepted

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


async def _run_sync(services: Services, actor_id: str) -> None:
    try:
        await services.reconciler.synchronize(actor_id=actor_id)
    except SyncInProgress:
        logger.info("Manual link synchronization skipped: a pass is already running")
    except SyncError as e:
        # already logged with its cause by the reconciler
        logger.warning("Manual link synchronization failed: %s", e)


@router.post("", response_model=SyncAccepted, status_code=status.HTTP_202_ACCEPTED)
async def trigger_sync(
    background: BackgroundTasks,
    user: User = Depends(require_admin),
    services: Services = Depends(get_services),
):
    background.add_task(_run_sync, services, str(user.id))
    logger.info("Triggered manual link synchronization by user %s", user.id)
    return SyncAccepted()
