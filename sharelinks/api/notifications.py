from fastapi import APIRouter, Depends, Query, Response, status

from sharelinks.api.deps import get_current_user, get_services
from sharelinks.container import Services
from sharelinks.models.user import User
from sharelinks.schemas.common import ListResponse
from sharelinks.schemas.notification import (
    MarkReadRequest,
    NotificationRead,
    UnreadCountResponse,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return {"count": await services.notifications.unread_count(user)}


@router.get("", response_model=ListResponse[NotificationRead])
async def list_notifications(
    is_read: bool | None = None,
    limit: int = Query(default=25, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    items, total = await services.notifications.list(user, is_read, limit, offset)
    return {"items": items, "count": total, "limit": limit, "offset": offset}


@router.post("/mark-read")
async def mark_read(
    payload: MarkReadRequest,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    count = await services.notifications.mark_read(
        user, [str(nid) for nid in payload.notification_ids]
    )
    return {"marked": count}


@router.post("/mark-all-read")
async def mark_all_read(
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return {"marked": await services.notifications.mark_all_read(user)}


@router.get("/{notification_id}", response_model=NotificationRead)
async def get_notification(
    notification_id: str,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return await services.notifications.get(user, notification_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def dismiss_notification(
    notification_id: str,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    await services.notifications.dismiss(user, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
