import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ShareLinksError(Exception):
    """Base class for errors raised by the link core."""

    code = "sharelinks_error"
    status_code = 500

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class PolicyViolation(ShareLinksError):
    """Requested link settings are not allowed by the organization policy."""

    code = "policy_violation"
    status_code = 422


class NotFoundOrForbidden(ShareLinksError):
    """The record does not exist or the caller may not see it.

    Both cases share one error so callers cannot tell whether a link exists.
    """

    code = "not_found"
    status_code = 404

    def __init__(self, message: str = "Link not found or access denied", details=None):
        super().__init__(message, details)


class SyncError(ShareLinksError):
    code = "sync_failed"
    status_code = 502


class SyncInProgress(SyncError):
    """Another process holds the synchronization lease."""

    code = "sync_in_progress"
    status_code = 409


class RepositoryError(ShareLinksError):
    code = "repository_error"
    status_code = 500


def _error_payload(code: str, message: str, details):
    return {"code": code, "message": message, "details": details}


def register_error_handlers(app) -> None:
    @app.exception_handler(ShareLinksError)
    async def sharelinks_exception_handler(request: Request, exc: ShareLinksError):
        message = exc.message
        if isinstance(exc, RepositoryError):
            # storage details stay in the logs
            message = "Internal server error"
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(exc.code, message, exc.details),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        detail = exc.detail
        code = f"http_{exc.status_code}"
        message = "Request failed"
        details = None
        if isinstance(detail, dict):
            code = detail.get("code", code)
            message = detail.get("message", message)
            details = detail.get("details")
        elif isinstance(detail, str):
            message = detail
        else:
            details = detail
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_payload(code, message, details),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        # exc.errors() ctx may contain raw Exception objects (not JSON-serialisable).
        errors = [
            {k: str(v) if k == "ctx" else v for k, v in err.items()}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=_error_payload("validation_error", "Validation error", errors),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=_error_payload("internal_error", "Internal server error", None),
        )
