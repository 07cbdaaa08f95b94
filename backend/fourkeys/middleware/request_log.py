import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from fourkeys.shared.headers import redacted


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Log every inbound request, with credentials redacted."""

    def __init__(self, app, logger: logging.Logger):
        super().__init__(app)
        self.logger = logger

    async def dispatch(self, request: Request, call_next) -> Response:
        self.logger.info(
            "request received",
            extra={
                "method": request.method,
                "url": str(request.url),
                "header": redacted(dict(request.headers)),
            },
        )
        return await call_next(request)
