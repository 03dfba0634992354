"""
salon_booking/services/events.py

Event emitter: pushes booking events to a Redis list for the notification
service (confirmation emails/SMS, waitlist offers).

Delivery is best effort: a failed push is logged and never fails the booking.
"""

import json
import time
import logging

from ..redis_client import redis_client

logger = logging.getLogger(__name__)

EVENTS_QUEUE = "events:notifications"


def emit_event(event_type: str, payload: dict) -> None:
    """
    Emit a notification event.

    Pushed to Redis list `events:notifications` for the consumer loop.
    """
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis_client.rpush(EVENTS_QUEUE, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {EVENTS_QUEUE}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
