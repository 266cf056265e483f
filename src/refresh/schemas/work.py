"""Work schemas.

A work is a submitted piece tied to an artist and one or more theme weeks.
The same model is used for validating submissions, for documents stored in
the key-value store and for API responses.
"""

from datetime import datetime
from enum import Enum

from pydantic import Field, ValidationInfo, field_validator

from refresh.schemas.artist import Artist
from refresh.schemas.common import AbsoluteUri, BaseSchema, OptionalUri, Snowflake

# Sent by the web client for works that have not been stored yet.
NOOP_ID = "noop"


def is_placeholder_id(work_id: str | None) -> bool:
    """True when ``work_id`` cannot name a stored work."""
    return not work_id or work_id == NOOP_ID


class UrlItem(BaseSchema):
    """A URL making up the content of a work.

    Order within a work matters and is preserved on the frontend.
    """

    url: AbsoluteUri
    meta: AbsoluteUri | None = Field(
        None, description="Meta image, if the original URL is just a link"
    )
    small_thumbnail: AbsoluteUri | None = Field(
        None, description="Thumbnail for non hi-DPI screens"
    )
    hi_dpi_thumbnail: AbsoluteUri | None = Field(
        None, description="Thumbnail for hi-DPI screens"
    )


class Work(BaseSchema):
    """A work as submitted, stored and returned.

    ``isApproved``, ``isSoftDeleted`` and ``discordId`` are only ever set by
    the backend; whatever a client sends for them is discarded.
    """

    id: str = Field(NOOP_ID, min_length=4, max_length=12)
    year: int = Field(..., ge=2022, le=2077)
    week_numbers: list[int] = Field(..., min_length=1, max_length=6)
    artist_id: Snowflake = Field(..., min_length=1)
    first_seen_artist_info: Artist | None = None
    title: str = Field(..., min_length=1, max_length=128)
    medium: str | None = Field(None, max_length=128)
    description: str = Field(..., min_length=3, max_length=1920)
    items: list[UrlItem] = Field(..., min_length=1)
    small_thumbnail_url: OptionalUri = None
    thumbnail_url: OptionalUri = None
    is_approved: bool = False
    is_soft_deleted: bool = False
    discord_id: Snowflake | None = None
    submitted_timestamp: str | None = Field(
        None, description="ISO-8601; set by the backend on first creation"
    )

    @field_validator("week_numbers")
    @classmethod
    def check_week_numbers(cls, v: list[int], info: ValidationInfo) -> list[int]:
        """Weeks must fall within the weeks opened so far."""
        last_week = (info.context or {}).get("last_active_week", 53)
        for week in v:
            if week < 1 or week > last_week:
                raise ValueError(f"week numbers must be between 1 and {last_week}")
        return v

    @field_validator("submitted_timestamp")
    @classmethod
    def check_iso_timestamp(cls, v: str | None) -> str | None:
        if v is not None:
            try:
                datetime.fromisoformat(v)
            except ValueError as e:
                raise ValueError("must be an ISO-8601 date") from e
        return v

    @property
    def has_placeholder_id(self) -> bool:
        return is_placeholder_id(self.id)

    def items_signature(self) -> list[dict]:
        """Serialized items, used to detect item changes between revisions."""
        return [item.to_store() for item in self.items]


class ModerationTransition(str, Enum):
    """Privileged single-field state changes applied by moderation."""

    APPROVE = "approve"
    UN_APPROVE = "unapprove"
    DELETE = "delete"

    def apply(self, work: Work) -> Work:
        """Return a copy of ``work`` with this transition applied."""
        if self is ModerationTransition.APPROVE:
            return work.model_copy(update={"is_approved": True})
        if self is ModerationTransition.UN_APPROVE:
            return work.model_copy(update={"is_approved": False})
        return work.model_copy(update={"is_soft_deleted": True})


# =============================================================================
# Request/Response
# =============================================================================


class ModerationRequest(BaseSchema):
    """Request body for the moderation endpoints."""

    ids: list[str] = Field(..., min_length=1, max_length=500)


class WorkResponse(BaseSchema):
    data: Work


class WorkMapResponse(BaseSchema):
    """Works keyed by ID."""

    data: dict[str, Work]
