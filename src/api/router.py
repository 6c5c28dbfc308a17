from __future__ import annotations

from fastapi import APIRouter

from src.api.calendar import router as calendar_router
from src.api.health import router as health_router
from src.api.performance import router as performance_router
from src.api.targets import router as targets_router


api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(calendar_router)
api_router.include_router(targets_router)
api_router.include_router(performance_router)
