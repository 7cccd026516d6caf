from fastapi import APIRouter, Depends, Query, Response, status

from sharelinks.api.deps import get_current_user, get_services
from sharelinks.container import Services
from sharelinks.models.user import User
from sharelinks.schemas.common import PageResponse
from sharelinks.schemas.links import TrackedLinkCreate, TrackedLinkRead, TrackedLinkUpdate
from sharelinks.services.common import page_count

router = APIRouter(prefix="/links", tags=["links"])


@router.get("", response_model=PageResponse[TrackedLinkRead])
async def list_links(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    items, total = await services.links.list_links(user, page, limit)
    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "pages": page_count(total, limit),
    }


@router.post("", response_model=TrackedLinkRead, status_code=status.HTTP_201_CREATED)
async def create_link(
    payload: TrackedLinkCreate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return await services.links.create_link(user, payload)


@router.get("/{link_id}", response_model=TrackedLinkRead)
async def get_link(
    link_id: str,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return await services.links.get_link(user, link_id)


@router.api_route("/{link_id}", methods=["PATCH", "PUT"], response_model=TrackedLinkRead)
async def update_link(
    link_id: str,
    payload: TrackedLinkUpdate,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return await services.links.update_link(user, link_id, payload)


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_link(
    link_id: str,
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    await services.links.delete_link(user, link_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
