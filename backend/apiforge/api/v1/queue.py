"""Generation queue introspection and maintenance endpoints."""

from typing import Any

from fastapi import APIRouter, Depends

from apiforge.api.deps import get_generation_queue, get_project_service
from apiforge.core.generation.queue import GenerationQueue
from apiforge.schemas.queue import (
    OrphanSweepResponse,
    QueueClearedResponse,
    QueueDetailsResponse,
    QueueStatusResponse,
)
from apiforge.services.projects import ProjectService

router = APIRouter()


@router.get("/queue", response_model=QueueStatusResponse)
async def get_queue_status(
    queue: GenerationQueue = Depends(get_generation_queue),
) -> dict[str, Any]:
    """Pending item count and in-flight projects."""
    return queue.get_queue_status()


@router.get("/queue/details", response_model=QueueDetailsResponse)
async def get_queue_details(
    queue: GenerationQueue = Depends(get_generation_queue),
) -> dict[str, Any]:
    """Pending items in scheduling order."""
    return queue.get_queue_details()


@router.delete("/queue", response_model=QueueClearedResponse)
async def clear_queue(
    queue: GenerationQueue = Depends(get_generation_queue),
) -> dict[str, int]:
    """Drop pending items; running attempts continue."""
    return {"dropped": queue.clear_queue()}


@router.post("/maintenance/orphans", response_model=OrphanSweepResponse)
async def sweep_orphaned_projects(
    service: ProjectService = Depends(get_project_service),
) -> dict[str, list[str]]:
    """Fail and clean up projects stuck in pending past the threshold."""
    swept = await service.sweep_orphans()
    return {"swept": [str(project.id) for project in swept]}
