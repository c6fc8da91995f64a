import logging
from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("symptomlog")


class SymptomLogError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    public_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Optional[Any] = None) -> None:
        self.message = message or self.public_message
        self.details = details
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return status_to_code(self.status_code)


class ValidationError(SymptomLogError):
    status_code = status.HTTP_400_BAD_REQUEST
    public_message = "Invalid request"


class Unauthorized(SymptomLogError):
    status_code = status.HTTP_401_UNAUTHORIZED
    public_message = "Unauthorized"


class StorageError(SymptomLogError):
    public_message = "Storage is unavailable"


class KeyConflictError(StorageError):
    """A write-once key already holds a value."""


class UnknownError(SymptomLogError):
    pass


def status_to_code(status_code: int) -> str:
    mapping = {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        415: "UNSUPPORTED_MEDIA_TYPE",
        500: "INTERNAL_SERVER_ERROR",
    }
    return mapping.get(status_code, f"HTTP_{status_code}")


def _envelope(request: Request, status_code: int, message: str, details: Optional[Any] = None, headers: Optional[Dict[str, str]] = None):
    body: Dict[str, Any] = {
        "code": status_to_code(status_code),
        "message": message,
        "trace_id": getattr(request.state, "trace_id", ""),
    }
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body, headers=headers)


async def handle_symptomlog_error(request: Request, exc: SymptomLogError):
    if exc.status_code >= 500:
        # Backing-service detail stays in the log, never in the response
        logger.error(
            {"path": str(request.url.path), "error": type(exc).__name__, "detail": str(exc), "context": exc.details},
            exc_info=exc,
        )
        return _envelope(request, exc.status_code, exc.public_message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return _envelope(request, exc.status_code, exc.message, exc.details, headers=headers)


def validation_details(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    details = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        details.append({"field": ".".join(loc) or "body", "message": err.get("msg", "invalid value")})
    return details


async def handle_request_validation(request: Request, exc: RequestValidationError):
    return _envelope(request, status.HTTP_400_BAD_REQUEST, "Invalid request body", validation_details(exc.errors()))


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    detail: Any = exc.detail
    message = detail if isinstance(detail, str) else "HTTP error"
    return _envelope(request, exc.status_code, message, headers=getattr(exc, "headers", None))


async def handle_unhandled_exception(request: Request, exc: Exception):
    wrapped = UnknownError()
    logger.error(
        {"path": str(request.url.path), "error": type(exc).__name__, "detail": str(exc)},
        exc_info=exc,
    )
    return _envelope(request, wrapped.status_code, wrapped.public_message)
