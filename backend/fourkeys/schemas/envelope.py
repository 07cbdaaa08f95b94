import base64
import binascii
import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fourkeys.core.errors import TransportError


class MessageAttributes(BaseModel):
    headers: str = Field(..., description="JSON map of header name to values")


class PushMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id: str = Field(..., alias="messageId")
    publish_time: datetime | None = Field(None, alias="publishTime")
    data: str = Field(..., description="Base64 of the original webhook body")
    attributes: MessageAttributes


class PushRequest(BaseModel):
    message: PushMessage
    subscription: str = ""


class WebhookEnvelope(BaseModel):
    """A push delivery with its headers and body decoded."""

    model_config = ConfigDict(frozen=True)

    message_id: str
    headers: dict[str, list[str]]
    raw_body: bytes
    payload: Any


def decode_envelope(raw: bytes) -> WebhookEnvelope:
    """Unwrap a push delivery. Any decoding problem is a TransportError."""
    try:
        request = PushRequest.model_validate_json(raw)
    except ValidationError as e:
        raise TransportError(f"error unmarshalling request: {e}") from e

    message = request.message
    try:
        headers = json.loads(message.attributes.headers)
    except json.JSONDecodeError as e:
        raise TransportError(f"error unmarshalling headers: {e}") from e
    if not isinstance(headers, dict) or not all(
        isinstance(v, list) and all(isinstance(i, str) for i in v)
        for v in headers.values()
    ):
        raise TransportError("error unmarshalling headers: not a map of string lists")

    try:
        body = base64.b64decode(message.data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise TransportError(f"error decoding data: {e}") from e

    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TransportError(f"error unmarshalling data: {e}") from e

    return WebhookEnvelope(
        message_id=message.message_id,
        headers=headers,
        raw_body=body,
        payload=payload,
    )


def encode_push_request(
    message_id: str,
    headers: dict[str, list[str]],
    body: bytes,
    subscription: str = "",
    publish_time: datetime | None = None,
) -> dict[str, Any]:
    """Build the JSON body a push subscription POSTs to the consumer."""
    message: dict[str, Any] = {
        "messageId": message_id,
        "data": base64.b64encode(body).decode("ascii"),
        "attributes": {"headers": json.dumps(headers)},
    }
    if publish_time is not None:
        message["publishTime"] = publish_time.isoformat()
    return {"message": message, "subscription": subscription}
