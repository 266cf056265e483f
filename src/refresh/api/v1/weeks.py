"""Week endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends

from refresh.dependencies import IdentityDep, get_week_service
from refresh.schemas.common import ErrorResponse
from refresh.schemas.week import WeekMapResponse
from refresh.services.weeks import WeekService

router = APIRouter()

WeekServiceDep = Annotated[WeekService, Depends(get_week_service)]


@router.get(
    "",
    response_model=WeekMapResponse,
    response_model_exclude_none=True,
    summary="List weeks",
    description="Weeks of the active year. Unpublished weeks are only shown to staff.",
)
async def list_weeks(weeks: WeekServiceDep, identity: IdentityDep) -> WeekMapResponse:
    return WeekMapResponse(data=await weeks.get_weeks(identity))


@router.put(
    "",
    response_model=WeekMapResponse,
    response_model_exclude_none=True,
    summary="Replace weeks",
    description="Overwrites every week of the active year. Staff only.",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid weeks"},
        403: {"model": ErrorResponse, "description": "Staff only"},
    },
)
async def put_weeks(
    payload: Annotated[dict[str, Any], Body()],
    weeks: WeekServiceDep,
    identity: IdentityDep,
) -> WeekMapResponse:
    return WeekMapResponse(data=await weeks.put_weeks(identity, payload))
