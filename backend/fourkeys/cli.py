"""
Four Keys event pipeline.

Usage:
    fourkeys ingress     Start the webhook receiver
    fourkeys consumer    Start the push endpoint that normalizes and stores events
    fourkeys worker      Start the queue worker that pushes to the consumer
    fourkeys init-db     Create the events_raw table
"""

import sys

import structlog
from pydantic import ValidationError

from fourkeys.core.config import get_consumer_settings, get_ingress_settings, get_settings
from fourkeys.core.logging import setup_logging

log = structlog.get_logger("fourkeys")


def cmd_ingress():
    import uvicorn

    from fourkeys.main import create_ingress_app

    settings = get_ingress_settings()
    setup_logging(settings.log_level)
    log.info("listening", port=settings.port)
    uvicorn.run(create_ingress_app(settings), host="0.0.0.0", port=settings.port)


def cmd_consumer():
    import uvicorn

    from fourkeys.main import create_consumer_app

    settings = get_consumer_settings()
    setup_logging(settings.log_level)
    log.info("listening", port=settings.port)
    uvicorn.run(create_consumer_app(settings), host="0.0.0.0", port=settings.port)


def cmd_worker():
    from fourkeys.celery_app import celery

    setup_logging(get_settings().log_level)
    celery.worker_main(["worker", "--loglevel", get_settings().log_level, "-Q", "github"])


def cmd_init_db():
    from fourkeys.db.crud import SqlEventSink
    from fourkeys.db.session import create_session_factory

    settings = get_settings()
    setup_logging(settings.log_level)
    SqlEventSink(create_session_factory(settings.database_url)).create_schema()
    log.info("events_raw ready", database_url=settings.database_url)


COMMANDS = {
    "ingress": cmd_ingress,
    "consumer": cmd_consumer,
    "worker": cmd_worker,
    "init-db": cmd_init_db,
}


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if not argv or argv[0] not in COMMANDS:
        print(__doc__.strip())
        return 1

    try:
        COMMANDS[argv[0]]()
    except ValidationError as e:
        # Missing required configuration is the only fatal error.
        print(f"invalid configuration:\n{e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
