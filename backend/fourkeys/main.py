import logging

from fastapi import FastAPI, Request, Response, status

from fourkeys import consumer, ingress
from fourkeys.core.config import ConsumerSettings, IngressSettings, Settings
from fourkeys.core.errors import TransportError
from fourkeys.db.crud import SqlEventSink
from fourkeys.db.session import create_session_factory
from fourkeys.middleware.body_size import BodySizeLimitMiddleware
from fourkeys.middleware.request_log import RequestLogMiddleware
from fourkeys.middleware.trace_context import TraceContextMiddleware
from fourkeys.services.normalizer import EventNormalizer


def _base_app(name: str, settings: Settings, logger: logging.Logger) -> FastAPI:
    app = FastAPI(
        title=f"Four Keys {name}",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.logger = logger

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_payload_bytes)
    app.add_middleware(TraceContextMiddleware)

    @app.get("/health", include_in_schema=False)
    async def health():
        return {"status": "ok", "service": name}

    return app


def create_ingress_app(
    settings: IngressSettings,
    publisher=None,
    logger: logging.Logger | None = None,
) -> FastAPI:
    """Webhook receiver. ``publisher`` defaults to the Celery relay."""
    logger = logger or logging.getLogger("fourkeys.ingress")
    if publisher is None:
        from fourkeys.services.publisher import CeleryPublisher

        publisher = CeleryPublisher(project_id=settings.project_id)

    app = _base_app("event-handler", settings, logger)
    app.state.publisher = publisher
    app.add_middleware(RequestLogMiddleware, logger=logger)
    app.include_router(ingress.router)
    return app


def create_consumer_app(
    settings: ConsumerSettings,
    sink=None,
    normalizer: EventNormalizer | None = None,
    logger: logging.Logger | None = None,
) -> FastAPI:
    """Push endpoint. ``sink`` defaults to the SQL table at ``database_url``."""
    logger = logger or logging.getLogger("fourkeys.consumer")
    if sink is None:
        sink = SqlEventSink(create_session_factory(settings.database_url))

    app = _base_app("github-parser", settings, logger)
    app.state.sink = sink
    app.state.normalizer = normalizer or EventNormalizer()
    app.include_router(consumer.router)

    @app.exception_handler(TransportError)
    async def transport_error(request: Request, exc: TransportError):
        logger.error(str(exc))
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return app
