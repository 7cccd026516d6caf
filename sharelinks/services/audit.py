import logging
import uuid

from sharelinks.repositories.audit import AuditRepository

logger = logging.getLogger(__name__)


def _jsonable(value):
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if hasattr(value, "value") and not isinstance(value, uuid.UUID):
        return _jsonable(value.value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


class AuditRecorder:
    """Fire-and-forget audit trail.

    A failed write is logged and swallowed; auditing never fails the
    action being audited.
    """

    def __init__(self, repository: AuditRepository):
        self._repository = repository

    async def record(self, action: str, actor_id, details: dict | None = None) -> None:
        actor = str(actor_id) if actor_id is not None else None
        payload = _jsonable(details or {})
        logger.info(
            "AUDIT: %s",
            action,
            extra={"audit": True, "action": action, "actor_id": actor},
        )
        try:
            await self._repository.add(action, actor, payload)
        except Exception as e:
            logger.warning("Failed to persist audit event %s: %s", action, e)
