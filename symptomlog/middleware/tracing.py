import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from symptomlog.utils.exceptions import handle_unhandled_exception

TRACE_ID_CTX_VAR: ContextVar[str] = ContextVar("trace_id", default="")

logger = logging.getLogger("symptomlog.http")


class TracingMiddleware(BaseHTTPMiddleware):
    """
    Assign a trace_id to every request, echo it back in `x-trace-id`,
    and write one access log line per request.

    Exceptions no handler claimed are turned into the 500 envelope here so
    the response still carries the trace id.
    """
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace_id = uuid.uuid4().hex
        token = TRACE_ID_CTX_VAR.set(trace_id)
        request.state.trace_id = trace_id
        started = time.perf_counter()
        try:
            try:
                response = await call_next(request)
            except Exception as exc:
                response = await handle_unhandled_exception(request, exc)
            response.headers["x-trace-id"] = trace_id
            logger.info({
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            })
            return response
        finally:
            TRACE_ID_CTX_VAR.reset(token)
