import json
import logging
import uuid
from datetime import UTC, datetime

from kombu.exceptions import KombuError

from fourkeys.core.errors import TransportError
from fourkeys.schemas.envelope import encode_push_request
from fourkeys.shared.headers import HeaderMap
from fourkeys.tasks import deliver_envelope

logger = logging.getLogger(__name__)


class CeleryPublisher:
    """Queues verified webhooks for push delivery to the consumer."""

    def __init__(self, project_id: str = ""):
        self.project_id = project_id

    def subscription(self, source: str) -> str:
        return f"projects/{self.project_id}/subscriptions/{source}"

    def publish(self, source: str, headers: HeaderMap, body: bytes) -> str:
        try:
            json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportError(f"error unmarshalling request: {e}") from e

        message_id = uuid.uuid4().hex
        push_request = encode_push_request(
            message_id,
            {k: list(v) for k, v in headers.items()},
            body,
            subscription=self.subscription(source),
            publish_time=datetime.now(UTC),
        )
        logger.info(
            f"Publishing to queue {source}",
            extra={"header_names": sorted(headers), "message_id": message_id},
        )
        try:
            deliver_envelope.apply_async(
                args=[push_request, source], queue=source, task_id=message_id
            )
        except KombuError as e:
            raise TransportError(f"error publishing to queue {source}: {e}") from e

        logger.info(f"Published message {message_id} to queue {source}")
        return message_id
