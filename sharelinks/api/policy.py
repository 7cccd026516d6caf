from fastapi import APIRouter, Depends

from sharelinks.api.deps import get_current_user, get_services, require_admin
from sharelinks.container import Services
from sharelinks.models.user import User
from sharelinks.schemas.policy import PolicyRead, PolicyUpdate

router = APIRouter(prefix="/policy", tags=["policy"])


@router.get("", response_model=PolicyRead)
async def get_policy(
    user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return await services.policies.current()


@router.put("", response_model=PolicyRead)
async def update_policy(
    payload: PolicyUpdate,
    user: User = Depends(require_admin),
    services: Services = Depends(get_services),
):
    policy = await services.policies.update(payload.model_dump(exclude_unset=True))
    await services.audit.record(
        "policy.update", user.id, payload.model_dump(exclude_unset=True)
    )
    return policy
