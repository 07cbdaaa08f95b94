"""Webhook receiver: verify, classify, republish.

Only sources listed in ``AUTHORIZED_SOURCES`` are accepted. Their signature
is checked over the exact request bytes, then the body is queued together
with the original headers (minus ``Authorization``) for the consumer.
"""

from collections.abc import Mapping
from dataclasses import dataclass

from fastapi import APIRouter, Depends, Request, Response, status
from starlette.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect

from fourkeys.core.config import IngressSettings
from fourkeys.core.errors import AuthenticationFailure, TransportError
from fourkeys.core.logging import RequestLogger
from fourkeys.dependencies import get_publisher, get_settings, request_logger
from fourkeys.services import signature, sources
from fourkeys.services.signature import SCHEMES, SignatureScheme
from fourkeys.shared import headers as header_utils

router = APIRouter()


@dataclass(frozen=True)
class EventSource:
    name: str
    schemes: tuple[SignatureScheme, ...]

    def find_signature(
        self, query: Mapping[str, str], headers: header_utils.HeaderMap
    ) -> tuple[SignatureScheme, str] | None:
        """First signature present, strongest scheme first.

        A query parameter named after the header overrides the header.
        """
        for scheme in self.schemes:
            value = query.get(scheme.header) or header_utils.first(headers, scheme.header)
            if value:
                return scheme, value
        return None


AUTHORIZED_SOURCES: dict[str, EventSource] = {
    "github": EventSource(name="github", schemes=SCHEMES),
}


def authenticate(
    secret: str,
    query: Mapping[str, str],
    headers: header_utils.HeaderMap,
    body: bytes,
) -> EventSource:
    source = sources.classify(headers)
    auth_source = AUTHORIZED_SOURCES.get(source)
    if auth_source is None:
        raise AuthenticationFailure(f"source {source!r} is not authorized")

    found = auth_source.find_signature(query, headers)
    if found is None:
        raise AuthenticationFailure(f"no signature for source {source}")

    scheme, value = found
    if not signature.verify(secret, value, body, scheme):
        raise AuthenticationFailure(f"{scheme.header} does not match for source {source}")
    return auth_source


@router.post("/", status_code=status.HTTP_204_NO_CONTENT)
async def receive_webhook(
    request: Request,
    settings: IngressSettings = Depends(get_settings),
    publisher=Depends(get_publisher),
    log: RequestLogger = Depends(request_logger),
):
    headers = header_utils.collect(request.headers.items())

    try:
        body = await request.body()
    except ClientDisconnect:
        log.warning("error reading request body")
        return Response(status_code=status.HTTP_400_BAD_REQUEST)

    try:
        auth_source = authenticate(
            settings.github_webhook_secret, request.query_params, headers, body
        )
    except AuthenticationFailure as e:
        log.warning(f"Rejected webhook: {e}")
        return Response(status_code=status.HTTP_403_FORBIDDEN)

    forwarded = header_utils.without(headers, "Authorization")
    try:
        message_id = await run_in_threadpool(
            publisher.publish, auth_source.name, forwarded, body
        )
    except TransportError as e:
        log.error(f"error publishing to queue: {e}")
    else:
        log.info("published to queue", extra={"message_id": message_id})

    return Response(status_code=status.HTTP_204_NO_CONTENT)
