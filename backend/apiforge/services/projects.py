"""Project lifecycle: workspace provisioning, queueing and deletion."""

from __future__ import annotations

import logging
from typing import Any

from apiforge.core.generation.cleanup import CleanupService
from apiforge.core.generation.queue import GenerationQueue
from apiforge.core.generation.validation import (
    validate_base_url,
    validate_metadata,
    validate_project_configuration,
    validate_workspace_path,
)
from apiforge.core.workspace import WorkspaceStore
from apiforge.db.repository import ProjectRepository
from apiforge.exceptions import AlreadyExists, ProjectNotFound
from apiforge.models.project import Project, ProjectStatus
from apiforge.schemas.project import ProjectCreate, ProjectUpdate

logger = logging.getLogger(__name__)


class ProjectService:
    """Caller-facing operations around the generation core."""

    def __init__(
        self,
        repository: ProjectRepository,
        store: WorkspaceStore,
        queue: GenerationQueue,
        cleanup: CleanupService,
    ) -> None:
        self.repository = repository
        self.store = store
        self.queue = queue
        self.cleanup = cleanup

    async def create_project(self, data: ProjectCreate) -> Project:
        """Validate, provision the workspace, persist as pending and enqueue."""
        validate_project_configuration(data.name, data.base_url, data.metadata)

        if await self.repository.get_by_name(data.name) is not None:
            raise AlreadyExists("Project name already exists")

        validate_workspace_path(str(self.store.workspace_path(data.name)))
        workspace = await self.store.create_workspace(data.name)

        try:
            project = await self.repository.create(
                name=data.name,
                display_name=data.display_name or data.name,
                description=data.description,
                base_url=data.base_url,
                base_path=data.base_path or "/v1/api",
                project_type=data.project_type,
                extra_metadata=data.metadata,
                status=ProjectStatus.PENDING,
                path=str(workspace),
            )
        except Exception:
            logger.error("projects: could not persist %s, removing its workspace", data.name)
            await self.store.delete_workspace(data.name)
            raise
        logger.info("projects: created %s at %s", project.name, workspace)

        try:
            self.queue.enqueue(project, data.priority)
        except Exception:
            logger.exception("projects: error adding %s to the generation queue", project.name)

        return project

    async def list_projects(self, *, skip: int = 0, limit: int = 100) -> list[Project]:
        return await self.repository.list(skip=skip, limit=limit)

    async def get_project(self, project_id: str) -> Project:
        project = await self.repository.get(project_id)
        if project is None:
            raise ProjectNotFound()
        return project

    async def update_project(self, project_id: str, data: ProjectUpdate) -> Project:
        await self.get_project(project_id)

        fields: dict[str, Any] = data.model_dump(exclude_unset=True, exclude={"metadata"})
        if "base_url" in fields and fields["base_url"] is not None:
            validate_base_url(fields["base_url"])
        if "metadata" in data.model_fields_set:
            if data.metadata is not None:
                validate_metadata(data.metadata)
            fields["extra_metadata"] = data.metadata

        if not fields:
            return await self.get_project(project_id)
        updated = await self.repository.update(project_id, **fields)
        if updated is None:
            raise ProjectNotFound()
        return updated

    async def delete_project(self, project_id: str) -> None:
        """Delete the workspace first; the record only goes once the disk is clean."""
        project = await self.get_project(project_id)
        if project.path:
            await self.store.delete_workspace(project.name)
        await self.repository.delete(project_id)
        logger.info("projects: deleted %s", project.name)

    async def regenerate_project(self, project_id: str, priority: int = 1) -> Project:
        project = await self.get_project(project_id)
        # Emergency cleanup may have removed the directory; the recorded path stays.
        if not await self.store.workspace_exists(project.name):
            await self.store.create_workspace(project.name)
        self.queue.enqueue(project, priority)
        return project

    async def sweep_orphans(self) -> list[Project]:
        pending = await self.repository.list_by_status(ProjectStatus.PENDING)
        candidates = [
            p for p in pending if not (self.queue.is_in_flight(p.id) or self.queue.is_queued(p.id))
        ]
        return await self.cleanup.cleanup_orphaned_projects(candidates)
