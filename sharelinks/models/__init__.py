from sharelinks.models.audit import AuditLog  # noqa: F401
from sharelinks.models.links import (  # noqa: F401
    LinkRecipient,
    RecipientPermission,
    TrackedLink,
    VisibilityClass,
)
from sharelinks.models.notification import Notification  # noqa: F401
from sharelinks.models.policy import DEFAULT_POLICY_NAME, Policy  # noqa: F401
from sharelinks.models.sync_lock import SyncLock  # noqa: F401
from sharelinks.models.user import User, UserRole  # noqa: F401
