"""Generation pipeline: pending -> ready, or failed plus compensation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from apiforge.core.generation.layout import PROJECT_STRUCTURE, create_directory_structure
from apiforge.core.generation.templates import PROJECT_FILES, TemplateRenderer, template_variables
from apiforge.exceptions import HealthCheckFailed
from apiforge.models.project import ProjectStatus

if TYPE_CHECKING:
    from apiforge.core.generation.cleanup import CleanupService
    from apiforge.core.runners.playwright import PlaywrightScaffolder

logger = logging.getLogger(__name__)


class StatusWriter(Protocol):
    async def update(self, project_id: str, **fields: Any) -> Any: ...


class GenerationPipeline:
    """Runs the ordered generation steps for one project.

    Steps are not resumable: every attempt starts from scaffolding. Any
    exception marks the project failed, runs the compensator and is
    re-raised so the queue can decide on a retry.
    """

    def __init__(
        self,
        repository: StatusWriter,
        scaffolder: PlaywrightScaffolder,
        renderer: TemplateRenderer,
        cleanup: CleanupService,
    ) -> None:
        self.repository = repository
        self.scaffolder = scaffolder
        self.renderer = renderer
        self.cleanup = cleanup

    async def generate(self, project: Any) -> None:
        try:
            await self._set_status(project, ProjectStatus.PENDING)

            await self.scaffolder.initialize_project(project)
            await create_directory_structure(Path(project.path), PROJECT_STRUCTURE)
            await self.generate_project_files(project)

            if not await self.scaffolder.run_health_check(project):
                raise HealthCheckFailed(project.name)

            await self._set_status(project, ProjectStatus.READY)
            logger.info("pipeline: project %s is ready", project.name)
        except Exception as exc:
            logger.error("pipeline: error generating project %s: %s", project.name, exc)
            await self.compensate(project, exc)
            raise

    async def generate_project_files(self, project: Any) -> None:
        workspace = Path(project.path)
        variables = template_variables(project)
        for rendered in PROJECT_FILES:
            await self.renderer.write_file(rendered, workspace, variables)
            logger.debug("pipeline: wrote %s for %s", rendered.target, project.name)

    async def compensate(self, project: Any, error: BaseException) -> None:
        """Mark the project failed and revert partial changes; never raises."""
        try:
            await self._set_status(project, ProjectStatus.FAILED)
        except Exception:
            logger.exception("pipeline: could not mark project %s as failed", project.name)
        await self.cleanup.cleanup_failed_project(project, error)

    async def _set_status(self, project: Any, status: ProjectStatus) -> None:
        await self.repository.update(project.id, status=status)
        project.status = status
