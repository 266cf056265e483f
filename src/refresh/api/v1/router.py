"""API v1 main router.

Aggregates all v1 API routers into a single router for inclusion in the app.
"""

from fastapi import APIRouter

from refresh.api.v1.uploads import router as uploads_router
from refresh.api.v1.weeks import router as weeks_router
from refresh.api.v1.works import router as works_router

router = APIRouter()

router.include_router(works_router, prefix="/works", tags=["Works"])
router.include_router(weeks_router, prefix="/weeks", tags=["Weeks"])
router.include_router(uploads_router, prefix="/uploads", tags=["Uploads"])
