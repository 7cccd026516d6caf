from sharelinks.models.links import TrackedLink
from sharelinks.models.user import User, UserRole


def can_access(user: User, link: TrackedLink) -> bool:
    return user.role == UserRole.admin or link.owner_id == user.id


def can_mutate(user: User, link: TrackedLink) -> bool:
    # same rule as reads: owners and admins only
    return user.role == UserRole.admin or link.owner_id == user.id
