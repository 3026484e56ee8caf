"""API v1 module."""

from fastapi import APIRouter

from apiforge.api.v1.projects import router as projects_router
from apiforge.api.v1.queue import router as queue_router

router = APIRouter()

router.include_router(projects_router, prefix="/projects", tags=["Projects"])
router.include_router(queue_router, tags=["Queue"])
