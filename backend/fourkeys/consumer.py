"""Push endpoint: decode the queued webhook, normalize it, persist it.

Status codes tell the queue whether to redeliver. Only envelope decoding
problems answer 500. Everything else is acknowledged with 200, including
payloads that can never be normalized and sink errors.
"""

from fastapi import APIRouter, Depends, Request, Response, status
from starlette.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect

from fourkeys.core.errors import (
    ExtractionFailure,
    SinkFailure,
    TransportError,
    UnsupportedEventType,
)
from fourkeys.core.logging import RequestLogger
from fourkeys.dependencies import get_normalizer, get_sink, request_logger
from fourkeys.schemas.envelope import decode_envelope
from fourkeys.schemas.events import Skip
from fourkeys.shared.headers import redacted

router = APIRouter()


@router.api_route("/", methods=["GET", "POST"])
async def receive_push(
    request: Request,
    normalizer=Depends(get_normalizer),
    sink=Depends(get_sink),
    log: RequestLogger = Depends(request_logger),
):
    try:
        body = await request.body()
    except ClientDisconnect as e:
        raise TransportError("error reading request body") from e

    envelope = decode_envelope(body)
    log.info(
        "parsed",
        extra={
            "message_id": envelope.message_id,
            "attr": redacted(envelope.headers),
            "metadata": envelope.payload,
        },
    )

    try:
        outcome = normalizer.normalize(envelope)
    except UnsupportedEventType as e:
        log.error(f"error processing github event: {e}")
        return Response(status_code=status.HTTP_200_OK)
    except ExtractionFailure as e:
        log.warning(
            f"error processing github event: {e}",
            extra={"event_type": e.event_type, "message_id": envelope.message_id},
        )
        return Response(status_code=status.HTTP_200_OK)

    if isinstance(outcome, Skip):
        log.info(outcome.reason)
        return Response(status_code=status.HTTP_200_OK)

    try:
        stored = await run_in_threadpool(sink.insert, outcome)
    except SinkFailure as e:
        log.error(str(e), extra={"message_id": envelope.message_id})
        return Response(status_code=status.HTTP_200_OK)

    if stored:
        log.info(
            f"stored {outcome.event_type} event {outcome.id}",
            extra={"message_id": outcome.msg_id, "source": outcome.source},
        )
    else:
        log.info(f"message {outcome.msg_id} already stored")
    return Response(status_code=status.HTTP_200_OK)
