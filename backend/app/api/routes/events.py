"""Server-Sent Events (SSE) endpoint for real-time admin updates.

Lets open admin panels learn about setting and maintenance changes made
elsewhere.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from app.core.logging import get_logger
from app.services.events import Event, EventType, get_event_broadcaster

logger = get_logger(__name__)

router = APIRouter(prefix="/events", tags=["events"])

HEARTBEAT_INTERVAL = 30  # seconds


@router.get("/")
async def sse_events():
    """Subscribe to Server-Sent Events stream.

    Returns a streaming response that sends events as they occur.
    The connection stays open until the client disconnects.

    Events are JSON-formatted with the following structure:
    ```json
    {
        "type": "setting_changed",
        "payload": {
            "key": "site_name",
            "group": "general",
            "old_value": "MDR",
            "new_value": "MDR Construcciones",
            "changed_by": "ana",
            "reason": "Updated via admin panel"
        },
        "timestamp": "2025-01-05T12:00:00Z"
    }
    ```

    Event types:
    - setting_changed: A setting value was stored (values of encrypted settings are masked)
    - maintenance_toggled: Maintenance mode was toggled or scheduled
    - heartbeat: Keep-alive ping (every 30s)
    """
    broadcaster = get_event_broadcaster()

    async def event_generator():
        """Generate SSE events from the broadcaster queue."""
        async with broadcaster.subscribe() as queue:
            # Send initial connection event
            yield Event(
                type=EventType.HEARTBEAT,
                payload={"message": "connected", "client_count": broadcaster.client_count},
            ).to_sse()

            while True:
                try:
                    # Wait for event with timeout for heartbeat
                    event = await asyncio.wait_for(
                        queue.get(),
                        timeout=HEARTBEAT_INTERVAL,
                    )
                    yield event.to_sse()

                except asyncio.TimeoutError:
                    yield Event(
                        type=EventType.HEARTBEAT,
                        payload={"message": "ping"},
                    ).to_sse()

                except asyncio.CancelledError:
                    # Client disconnected
                    logger.info("sse_client_cancelled")
                    break

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )


@router.get("/status")
async def get_events_status():
    """Get status of the event broadcaster.

    Returns the number of connected clients and broadcaster status.
    """
    broadcaster = get_event_broadcaster()
    return {
        "connected_clients": broadcaster.client_count,
        "status": "active",
    }
