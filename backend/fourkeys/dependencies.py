from fastapi import Request

from fourkeys.core.logging import RequestLogger, bind_request_logger


def request_logger(request: Request) -> RequestLogger:
    """The app's logger bound to this request's trace and path."""
    state = request.app.state
    return bind_request_logger(
        state.logger,
        state.settings.project_id,
        getattr(request.state, "trace_id", None),
        request.url.path,
    )


def get_settings(request: Request):
    return request.app.state.settings


def get_publisher(request: Request):
    return request.app.state.publisher


def get_normalizer(request: Request):
    return request.app.state.normalizer


def get_sink(request: Request):
    return request.app.state.sink
