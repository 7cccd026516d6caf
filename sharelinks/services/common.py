import hashlib
import math
import uuid


def coerce_uuid(value):
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def parse_uuid(value) -> uuid.UUID | None:
    """Like coerce_uuid, but malformed ids become None instead of raising."""
    try:
        return coerce_uuid(value)
    except (TypeError, ValueError):
        return None


def file_identity(file_path: str) -> str:
    """SHA-256 hex digest of a file's path.

    Path based on purpose: a moved file gets a new identity, a renamed
    link does not.
    """
    return hashlib.sha256(file_path.encode("utf-8")).hexdigest()


def page_to_offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit


def page_count(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(total / limit)
