"""V1 API router — aggregates all v1 endpoint routers."""

from fastapi import APIRouter

from craftmatch.presentation.api.v1.endpoints.health import router as health_router
from craftmatch.presentation.api.v1.match_controller import router as match_router
from craftmatch.presentation.api.v1.analytics_controller import router as analytics_router

router = APIRouter(prefix="/v1")
router.include_router(health_router)
router.include_router(match_router)
router.include_router(analytics_router)
