import logging
import re
import sys

import structlog

TRACE_KEY = "logging.googleapis.com/trace"

_TRACE_RE = re.compile(r"([a-f\d]+)/([a-f\d]+)")


def _add_severity(
    _logger: structlog.types.WrappedLogger,
    _method: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Cloud Logging reads the level from ``severity``."""
    event_dict["severity"] = event_dict.pop("level", _method).upper()
    return event_dict


_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    _add_severity,
    structlog.processors.TimeStamper(fmt="iso", utc=True, key="time"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


def json_formatter() -> structlog.stdlib.ProcessorFormatter:
    """One JSON object per line for both structlog and stdlib records.

    Stdlib records pass their ``extra`` fields through, which is how the
    request-bound trace and path reach the output.
    """
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[*_SHARED_PROCESSORS, structlog.stdlib.ExtraAdder()],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(),
        ],
    )


def setup_logging(level: str = "INFO") -> None:
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(json_formatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    # Quiet noisy libraries
    for name in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def extract_trace_id(raw: str | None) -> str | None:
    """Return the trace id from an ``X-Cloud-Trace-Context`` header.

    The header looks like ``TRACE_ID/SPAN_ID;o=TRACE_TRUE``. Anything other
    than exactly one ``hex/hex`` pair is treated as absent.
    """
    if not raw:
        return None
    matches = _TRACE_RE.findall(raw)
    if len(matches) != 1:
        return None
    return matches[0][0]


def trace_resource(project_id: str, trace_id: str | None) -> str:
    return f"projects/{project_id}/traces/{trace_id or ''}"


class RequestLogger(logging.LoggerAdapter):
    """Merges the request-bound context into each record's ``extra``."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def bind_request_logger(
    logger: logging.Logger, project_id: str, trace_id: str | None, path: str
) -> RequestLogger:
    return RequestLogger(
        logger,
        {TRACE_KEY: trace_resource(project_id, trace_id), "path": path},
    )
