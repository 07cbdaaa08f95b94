import logging
from datetime import UTC, datetime, timedelta

import httpx

from fourkeys.celery_app import celery
from fourkeys.core.config import get_settings

logger = logging.getLogger(__name__)

# Redelivery schedule for pushes the consumer did not acknowledge
BASE_DELAY = 30  # seconds
MAX_ATTEMPTS = 5


@celery.task(bind=True)
def deliver_envelope(self, push_request: dict, source: str, attempt: int = 1):
    """Push one queued webhook to the consumer endpoint.

    Any 2xx acknowledges the message. Everything else is redelivered with
    exponential backoff under the same message id until MAX_ATTEMPTS.
    """
    settings = get_settings()
    message_id = push_request["message"]["messageId"]
    logger.info(
        f"Delivering message {message_id} to {settings.consumer_url}, attempt={attempt}"
    )

    try:
        r = httpx.post(settings.consumer_url, json=push_request, timeout=10)
        status = r.status_code
        success = 200 <= status < 300
    except httpx.HTTPError as exc:
        logger.warning(f"Delivery of message {message_id} failed: {exc}")
        status = 0
        success = False

    next_run = None
    if not success and attempt < MAX_ATTEMPTS:
        backoff = BASE_DELAY * (2 ** (attempt - 1))  # 30s, 60s, 120s, ...
        next_run = datetime.now(UTC) + timedelta(seconds=backoff)
        deliver_envelope.apply_async(
            args=[push_request, source, attempt + 1], eta=next_run, queue=source
        )
        logger.info(f"Message {message_id} redelivery scheduled at {next_run.isoformat()}")
    elif not success:
        logger.error(f"Giving up on message {message_id} after {attempt} attempts")

    return {
        "status": status,
        "next_run": next_run.isoformat() if next_run else None,
    }
