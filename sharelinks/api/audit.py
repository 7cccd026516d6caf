from fastapi import APIRouter, Depends, Query

from sharelinks.api.deps import get_services, require_admin
from sharelinks.container import Services
from sharelinks.models.user import User
from sharelinks.schemas.audit import AuditLogRead
from sharelinks.schemas.common import ListResponse

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=ListResponse[AuditLogRead])
async def list_audit_logs(
    action: str | None = None,
    actor_id: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(require_admin),
    services: Services = Depends(get_services),
):
    items, total = await services.audit_repo.list(action, actor_id, offset, limit)
    return {"items": items, "count": total, "limit": limit, "offset": offset}
