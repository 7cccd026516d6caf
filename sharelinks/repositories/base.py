import logging

from sharelinks.errors import RepositoryError

logger = logging.getLogger(__name__)


def storage_error(operation: str, exc: Exception, **context) -> RepositoryError:
    """Log a storage failure once, with context, and wrap it for the caller."""
    logger.error(
        "Storage operation %s failed: %s",
        operation,
        exc,
        extra={"operation": operation, **{k: str(v) for k, v in context.items()}},
    )
    return RepositoryError(f"{operation} failed", details={"operation": operation})
