from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from fourkeys.core.logging import extract_trace_id

TRACE_HEADER = "X-Cloud-Trace-Context"


class TraceContextMiddleware(BaseHTTPMiddleware):
    """Expose the Cloud Trace id of the request as ``request.state.trace_id``."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.trace_id = extract_trace_id(request.headers.get(TRACE_HEADER))
        return await call_next(request)
