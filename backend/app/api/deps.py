"""Shared route dependencies."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Header, Request

from app.core.logging import bind_request_context, clear_request_context
from app.services.settings import Actor

DEFAULT_ACTOR_NAME = "System"


async def get_actor(
    request: Request,
    x_admin_user: str | None = Header(default=None),
) -> AsyncGenerator[Actor, None]:
    """Actor metadata recorded on setting history entries.

    The admin name comes from the ``X-Admin-User`` header and is bound to
    every log line emitted while the request is handled.
    """
    actor = Actor(
        name=(x_admin_user or "").strip() or DEFAULT_ACTOR_NAME,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    bind_request_context(actor=actor.name)
    try:
        yield actor
    finally:
        clear_request_context()
