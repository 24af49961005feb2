"""Event broadcast service for real-time admin updates.

Provides Server-Sent Events (SSE) support for pushing updates to clients.
Events are broadcast for:
- Setting changes (saves, uploads, reverts, imports, resets)
- Maintenance mode toggles and schedules
"""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Any, AsyncGenerator

from pydantic import BaseModel

from app.core.logging import get_logger

logger = get_logger(__name__)

MASKED_VALUE = "********"


class EventType(str, Enum):
    """Types of events that can be broadcast."""

    # Settings events
    SETTING_CHANGED = "setting_changed"
    MAINTENANCE_TOGGLED = "maintenance_toggled"

    # System events
    HEARTBEAT = "heartbeat"


class Event(BaseModel):
    """Event payload for SSE."""

    type: EventType
    payload: dict[str, Any]
    timestamp: datetime = None

    def __init__(self, **data):
        if "timestamp" not in data or data["timestamp"] is None:
            data["timestamp"] = datetime.now(timezone.utc)
        super().__init__(**data)

    def to_sse(self) -> str:
        """Format event for SSE transmission."""
        data = {
            "type": self.type.value,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }
        return f"data: {json.dumps(data, default=str)}\n\n"


class EventBroadcaster:
    """Manages SSE connections and broadcasts events.

    This is a singleton that maintains a list of connected clients
    and broadcasts events to all of them.
    """

    _instance: "EventBroadcaster | None" = None

    def __new__(cls) -> "EventBroadcaster":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._initialized = True
        self._clients: list[asyncio.Queue[Event]] = []
        self._lock = asyncio.Lock()
        logger.info("event_broadcaster_initialized")

    @asynccontextmanager
    async def subscribe(self) -> AsyncGenerator[asyncio.Queue[Event], None]:
        """Subscribe to events.

        Returns an async queue that will receive events.
        The subscription is automatically cleaned up when the context exits.

        Usage:
            async with broadcaster.subscribe() as queue:
                while True:
                    event = await queue.get()
                    yield event.to_sse()
        """
        queue: asyncio.Queue[Event] = asyncio.Queue()
        async with self._lock:
            self._clients.append(queue)
            client_count = len(self._clients)

        logger.info("sse_client_connected", client_count=client_count)

        try:
            yield queue
        finally:
            async with self._lock:
                self._clients.remove(queue)
                client_count = len(self._clients)
            logger.info("sse_client_disconnected", client_count=client_count)

    async def broadcast(self, event: Event) -> None:
        """Broadcast an event to all connected clients.

        Args:
            event: The event to broadcast.
        """
        async with self._lock:
            clients = list(self._clients)

        if not clients:
            return

        for queue in clients:
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("sse_client_queue_full")

        logger.debug(
            "event_broadcast",
            event_type=event.type.value,
            client_count=len(clients),
        )

    async def broadcast_setting_changed(
        self,
        key: str,
        group: str,
        old_value: Any,
        new_value: Any,
        changed_by: str | None = None,
        reason: str | None = None,
        is_encrypted: bool = False,
    ) -> None:
        """Broadcast a setting change. Encrypted values are masked."""
        if is_encrypted:
            old_value = MASKED_VALUE if old_value is not None else None
            new_value = MASKED_VALUE if new_value is not None else None
        await self.broadcast(Event(
            type=EventType.SETTING_CHANGED,
            payload={
                "key": key,
                "group": group,
                "old_value": old_value,
                "new_value": new_value,
                "changed_by": changed_by,
                "reason": reason,
            },
        ))

    async def broadcast_maintenance_toggled(
        self,
        enabled: bool,
        message: str | None = None,
        changed_by: str | None = None,
        start_at: str | None = None,
        end_at: str | None = None,
    ) -> None:
        """Broadcast a maintenance mode change."""
        await self.broadcast(Event(
            type=EventType.MAINTENANCE_TOGGLED,
            payload={
                "enabled": enabled,
                "message": message,
                "changed_by": changed_by,
                "start_at": start_at,
                "end_at": end_at,
            },
        ))

    @property
    def client_count(self) -> int:
        """Get the number of connected clients."""
        return len(self._clients)


# Global singleton instance
event_broadcaster = EventBroadcaster()


def get_event_broadcaster() -> EventBroadcaster:
    """Get the global event broadcaster instance."""
    return event_broadcaster
