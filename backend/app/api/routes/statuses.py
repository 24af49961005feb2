"""Status vocabularies used by views and API responses."""

from __future__ import annotations

from fastapi import APIRouter

from app.db.models import (
    CommentStatus,
    ContactRequestStatus,
    PostStatus,
    StatusEnum,
    UserStatus,
)
from app.schemas.statuses import StatusOption, StatusVocabularies

router = APIRouter(prefix="/statuses", tags=["statuses"])


def _options(enum_cls: type[StatusEnum]) -> list[StatusOption]:
    return [
        StatusOption(
            value=member.value,
            label=member.label(),
            badge_color=member.badge_color(),
            flags=member.flags(),
        )
        for member in enum_cls
    ]


@router.get("/", response_model=StatusVocabularies)
async def list_statuses() -> StatusVocabularies:
    """Get every status vocabulary with labels, badge colors and flags."""
    return StatusVocabularies(
        comment=_options(CommentStatus),
        contact_request=_options(ContactRequestStatus),
        post=_options(PostStatus),
        user=_options(UserStatus),
    )
