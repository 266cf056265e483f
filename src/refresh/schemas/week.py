"""Week schema.

A week is a theme period. Whether it is published gates what non-staff
callers get to see.
"""

from pydantic import Field, RootModel

from refresh.schemas.common import BaseSchema, Snowflake


class Week(BaseSchema):
    year: int = Field(..., ge=2022, le=2077)
    week: int = Field(..., ge=1, le=53)
    theme: str | None = Field(None, max_length=256)
    information: str | None = Field(None, max_length=16384, description="Trusted HTML")
    is_published: bool
    discord_id: Snowflake | None = None
    is_updating: bool | None = Field(
        None,
        description="Frontend flag marking a week being edited; never stored",
        exclude=True,
    )


class WeekMap(RootModel[dict[str, Week]]):
    """All weeks of a year keyed by week number."""

    def to_store(self) -> dict:
        return {key: week.to_store() for key, week in self.root.items()}


class WeekMapResponse(BaseSchema):
    data: dict[str, Week]
