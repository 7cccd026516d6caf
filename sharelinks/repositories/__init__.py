from sharelinks.repositories.audit import AuditRepository
from sharelinks.repositories.links import LinkRepository
from sharelinks.repositories.locks import LockRepository
from sharelinks.repositories.policies import PolicyRepository
from sharelinks.repositories.users import UserRepository

__all__ = [
    "AuditRepository",
    "LinkRepository",
    "LockRepository",
    "PolicyRepository",
    "UserRepository",
]
