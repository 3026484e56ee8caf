"""Project API endpoints."""

from fastapi import APIRouter, Depends, status

from apiforge.api.deps import get_project_service
from apiforge.models.project import Project
from apiforge.schemas.project import (
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    RegenerateRequest,
)
from apiforge.services.projects import ProjectService

router = APIRouter()


@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    skip: int = 0,
    limit: int = 100,
    service: ProjectService = Depends(get_project_service),
) -> list[Project]:
    """List all projects."""
    return await service.list_projects(skip=skip, limit=limit)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_in: ProjectCreate,
    service: ProjectService = Depends(get_project_service),
) -> Project:
    """Create a project; generation continues in the background queue."""
    return await service.create_project(project_in)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
) -> Project:
    """Get a specific project by ID."""
    return await service.get_project(project_id)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    project_in: ProjectUpdate,
    service: ProjectService = Depends(get_project_service),
) -> Project:
    """Update a project."""
    return await service.update_project(project_id, project_in)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
) -> None:
    """Delete a project and its workspace (409 RESOURCE_BUSY if files are locked)."""
    await service.delete_project(project_id)


@router.post(
    "/{project_id}/regenerate",
    response_model=ProjectResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def regenerate_project(
    project_id: str,
    request_in: RegenerateRequest | None = None,
    service: ProjectService = Depends(get_project_service),
) -> Project:
    """Put an existing project back on the generation queue."""
    priority = request_in.priority if request_in else 1
    return await service.regenerate_project(project_id, priority)
