"""Week service.

Weeks are read by everyone, with unpublished weeks hidden from non-staff,
and overwritten wholesale by staff.
"""

from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from refresh.config import Settings, get_settings
from refresh.core.exceptions import ForbiddenError, RequestValidationFailedError
from refresh.schemas.week import Week, WeekMap
from refresh.services.kv import KeyValueStore

logger = structlog.get_logger(__name__)


class WeekService:
    def __init__(self, store: KeyValueStore, settings: Settings | None = None) -> None:
        self.store = store
        self._settings = settings or get_settings()

    async def get_weeks(self, identity: str | None) -> dict[str, Week]:
        """Return the weeks of the active year.

        Non-staff callers only see published weeks. Not necessarily sorted.
        """
        raw = await self.store.get_json(
            KeyValueStore.weeks_key(self._settings.active_year), {}
        )
        weeks = {key: Week.model_validate(value) for key, value in raw.items()}

        if self._settings.is_staff(identity):
            return weeks
        return {key: week for key, week in weeks.items() if week.is_published}

    async def is_unpublished(self, year: int, week: int) -> bool:
        """True when the week exists and is still hidden from non-staff."""
        raw = await self.store.get_json(KeyValueStore.weeks_key(year), {})
        entry = raw.get(str(week))
        return entry is not None and not entry.get("isPublished", False)

    async def put_weeks(self, identity: str | None, payload: Any) -> dict[str, Week]:
        """Replace every week of the active year.

        Raises:
            ForbiddenError: Caller is not staff
            RequestValidationFailedError: A week fails validation
        """
        if not self._settings.is_staff(identity):
            raise ForbiddenError()

        try:
            weeks = WeekMap.model_validate(payload)
        except PydanticValidationError as e:
            raise RequestValidationFailedError.from_pydantic(e.errors()) from e

        errors = [
            {"field": f"{key}.week", "message": "does not match its key"}
            for key, week in weeks.root.items()
            if str(week.week) != key
        ]
        if errors:
            raise RequestValidationFailedError(errors)

        await self.store.put_json(
            KeyValueStore.weeks_key(self._settings.active_year), weeks.to_store()
        )
        logger.info("weeks_replaced", count=len(weeks.root), year=self._settings.active_year)
        return weeks.root
