"""Artist schema.

Artists are maintained by a separate service; this API only reads them and
bumps ``worksCount`` when a new work is placed.
"""

from pydantic import ConfigDict, Field

from refresh.schemas.common import AbsoluteUri, BaseSchema, OptionalUri, Snowflake


class Artist(BaseSchema):
    """An artist taking part in an event year."""

    model_config = ConfigDict(extra="allow")

    id: Snowflake = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=128)
    thumbnail_url: OptionalUri = None
    socials: list[AbsoluteUri] = Field(default_factory=list, max_length=8)
    works_count: int = Field(0, ge=0)
