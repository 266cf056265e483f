"""Work endpoints.

Provides retrieval of works, create-or-update submission and the staff
moderation endpoints.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Query, status

from refresh.core.logging import get_logger
from refresh.dependencies import IdentityDep, get_work_service
from refresh.schemas.common import ErrorResponse
from refresh.schemas.work import (
    ModerationRequest,
    ModerationTransition,
    WorkMapResponse,
    WorkResponse,
)
from refresh.services.works import WorkService

logger = get_logger(__name__)

router = APIRouter()

WorkServiceDep = Annotated[WorkService, Depends(get_work_service)]


# =============================================================================
# Retrieval Endpoints
# =============================================================================


@router.get(
    "",
    response_model=WorkMapResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="List works",
    description=(
        "List works by artist, by week, or all of them. The artist filter wins "
        "over the week filter. Unapproved works are only shown to staff and "
        "their own artist."
    ),
)
async def list_works(
    works: WorkServiceDep,
    identity: IdentityDep,
    year: Annotated[int | None, Query(ge=2022, le=2077)] = None,
    week: Annotated[int | None, Query(ge=1, le=53)] = None,
    artist_id: Annotated[str | None, Query(alias="artistId", max_length=64)] = None,
    is_unapproved: Annotated[bool, Query(alias="isUnapproved")] = False,
) -> WorkMapResponse:
    """List works matching the most selective filter given."""
    results = await works.get_works(
        identity,
        year=year,
        week=week,
        artist_id=artist_id,
        is_unapproved=is_unapproved,
    )
    return WorkMapResponse(data=results)


@router.get(
    "/{work_id}",
    response_model=WorkResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Get a work",
    responses={
        404: {"model": ErrorResponse, "description": "Work not found"},
    },
)
async def get_work(work_id: str, works: WorkServiceDep) -> WorkResponse:
    """Get a single work by ID. Soft-deleted works are not found."""
    return WorkResponse(data=await works.get_work(work_id))


# =============================================================================
# Submission Endpoints
# =============================================================================


@router.put(
    "",
    response_model=WorkResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
    summary="Create or update a work",
    description=(
        "Stores a work. The ID selects an existing work to edit; for new works "
        "it is ignored and derived by the backend. Every edit resets approval."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Invalid work"},
        403: {"model": ErrorResponse, "description": "Not allowed"},
    },
)
async def put_work(
    payload: Annotated[dict[str, Any], Body()],
    works: WorkServiceDep,
    identity: IdentityDep,
) -> WorkResponse:
    """Create or update a work."""
    logger.info("put_work_request", presented_id=payload.get("id"))
    return WorkResponse(data=await works.put_work(payload, identity))


# =============================================================================
# Moderation Endpoints
# =============================================================================


async def _moderate(
    transition: ModerationTransition,
    request: ModerationRequest,
    works: WorkService,
    identity: str | None,
) -> WorkMapResponse:
    logger.info("moderation_request", transition=transition.value, count=len(request.ids))
    mutated = await works.make_privileged_state_change(request.ids, transition, identity)
    return WorkMapResponse(data=mutated)


_MODERATION_RESPONSES: dict[int | str, dict[str, Any]] = {
    403: {"model": ErrorResponse, "description": "Staff only"},
    500: {"model": ErrorResponse, "description": "A work in the batch does not exist"},
}


@router.put(
    "/approve",
    response_model=WorkMapResponse,
    response_model_exclude_none=True,
    summary="Approve works",
    responses=_MODERATION_RESPONSES,
)
async def approve_works(
    request: ModerationRequest, works: WorkServiceDep, identity: IdentityDep
) -> WorkMapResponse:
    return await _moderate(ModerationTransition.APPROVE, request, works, identity)


@router.put(
    "/unapprove",
    response_model=WorkMapResponse,
    response_model_exclude_none=True,
    summary="Withdraw approval of works",
    responses=_MODERATION_RESPONSES,
)
async def unapprove_works(
    request: ModerationRequest, works: WorkServiceDep, identity: IdentityDep
) -> WorkMapResponse:
    return await _moderate(ModerationTransition.UN_APPROVE, request, works, identity)


@router.put(
    "/delete",
    response_model=WorkMapResponse,
    response_model_exclude_none=True,
    summary="Soft-delete works",
    responses=_MODERATION_RESPONSES,
)
async def delete_works(
    request: ModerationRequest, works: WorkServiceDep, identity: IdentityDep
) -> WorkMapResponse:
    return await _moderate(ModerationTransition.DELETE, request, works, identity)
