"""In-process pub/sub — event broadcasting from services to WebSockets.

Learn: Publishing is fire-and-forget. Each frame is serialized once and
offered to every connection registered at the moment of the call.
Delivery is at-most-once: closed or overflowing connections are skipped,
never retried, and never make publish() fail. Clients that miss events
catch up from the snapshot they get on reconnect.
"""

import json
from typing import Any

import structlog

from orderboard.realtime.connections import ConnectionRegistry

logger = structlog.get_logger()


def build_frame(event_type: str, data: Any) -> str:
    """Serialize a push-channel frame: {"type": ..., "data": ...}."""
    return json.dumps({"type": event_type, "data": data})


class BroadcastHub:
    """Fans events out to every connection in a ConnectionRegistry."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    def publish(self, event_type: str, data: Any) -> int:
        """Offer an event to all live connections.

        Returns the number of connections that accepted the frame.
        """
        frame = build_frame(event_type, data)
        delivered = 0
        for connection in self.registry.active_connections():
            if connection.offer(frame):
                delivered += 1
            else:
                logger.debug(
                    "broadcast.skipped",
                    connection_id=connection.id,
                    event_type=event_type,
                )
        logger.debug("broadcast.published", event_type=event_type, delivered=delivered)
        return delivered
