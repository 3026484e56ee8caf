"""Compensation for failed generation attempts."""

from __future__ import annotations

import asyncio
import logging
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable

from apiforge.core import fs
from apiforge.core.generation.templates import (
    BASELINE_PACKAGE_JSON,
    BASELINE_RUNNER_CONFIG,
    TemplateRenderer,
    template_variables,
)
from apiforge.core.workspace import WorkspaceStore
from apiforge.exceptions import OrphanedProject
from apiforge.models.project import ProjectStatus

logger = logging.getLogger(__name__)

GENERATED_FILES: tuple[str, ...] = (
    "src/api/api.config.ts",
    "src/steps/hooks.ts",
    "src/steps/world.ts",
    "cucumber.cjs",
    "src/tests/health.spec.ts",
)
DEPENDENCY_DIR = "node_modules"
DEPENDENCY_LOCK_FILE = "package-lock.json"
TEMP_DIRS: tuple[str, ...] = ("test-results", "playwright-report", "blob-report", ".playwright")


class CleanupService:
    """Reverts the side effects of a failed pipeline.

    Each sub-step is best-effort. Anything escaping them escalates to an
    emergency deletion of the whole workspace, whose own failure is only
    logged.
    """

    def __init__(
        self,
        store: WorkspaceStore,
        renderer: TemplateRenderer,
        *,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        orphan_threshold: timedelta = timedelta(minutes=30),
        repository: Any = None,
    ) -> None:
        self.store = store
        self.renderer = renderer
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.orphan_threshold = orphan_threshold
        self.repository = repository

    async def cleanup_failed_project(self, project: Any, error: BaseException) -> None:
        logger.warning("cleanup: starting cleanup for failed project %s", project.name)
        logger.warning("cleanup: error that triggered cleanup: %s", error)

        try:
            workspace = self._workspace_of(project)
            if not await asyncio.to_thread(workspace.is_dir):
                logger.info("cleanup: workspace for %s is absent, nothing to clean", project.name)
                return

            await self.cleanup_generated_files(workspace)
            await self.cleanup_dependencies(workspace)
            await self.cleanup_temp_files(workspace)
            await self.restore_project_state(project, workspace)

            logger.info("cleanup: completed for project %s", project.name)
        except Exception as cleanup_error:
            logger.error("cleanup: error during cleanup of %s: %s", project.name, cleanup_error)
            await self.emergency_cleanup(project)

    async def cleanup_generated_files(self, workspace: Path) -> None:
        for rel in GENERATED_FILES:
            await fs.remove_with_lock_retry(
                workspace / rel,
                attempts=self.max_retries,
                delay=self.retry_delay,
            )

    async def cleanup_dependencies(self, workspace: Path) -> None:
        try:
            await asyncio.to_thread(shutil.rmtree, workspace / DEPENDENCY_DIR)
            logger.debug("cleanup: %s deleted", DEPENDENCY_DIR)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("cleanup: error deleting %s: %s", DEPENDENCY_DIR, exc)

        try:
            await asyncio.to_thread((workspace / DEPENDENCY_LOCK_FILE).unlink)
            logger.debug("cleanup: %s deleted", DEPENDENCY_LOCK_FILE)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("cleanup: error deleting %s: %s", DEPENDENCY_LOCK_FILE, exc)

    async def cleanup_temp_files(self, workspace: Path) -> None:
        for rel in TEMP_DIRS:
            try:
                await asyncio.to_thread(shutil.rmtree, workspace / rel)
                logger.debug("cleanup: temporary directory %s deleted", rel)
            except FileNotFoundError:
                pass
            except OSError as exc:
                logger.warning("cleanup: error deleting temporary directory %s: %s", rel, exc)

    async def restore_project_state(self, project: Any, workspace: Path) -> None:
        """Overwrite package.json and playwright.config.ts with minimal baselines."""
        variables = template_variables(project)
        for baseline in (BASELINE_PACKAGE_JSON, BASELINE_RUNNER_CONFIG):
            try:
                await self.renderer.write_file(baseline, workspace, variables)
                logger.debug("cleanup: %s restored", baseline.target)
            except OSError as exc:
                logger.warning("cleanup: error restoring %s: %s", baseline.target, exc)

    async def emergency_cleanup(self, project: Any) -> None:
        logger.error("cleanup: executing emergency cleanup for %s", project.name)
        try:
            await self.store.delete_workspace(project.name)
            logger.info("cleanup: workspace deleted in emergency cleanup: %s", project.name)
        except Exception as exc:
            logger.error("cleanup: error in emergency cleanup of %s: %s", project.name, exc)

    def find_orphaned_projects(
        self,
        projects: Iterable[Any],
        *,
        now: datetime | None = None,
    ) -> list[Any]:
        now = now or datetime.now(timezone.utc)
        return [
            project
            for project in projects
            if project.status == ProjectStatus.PENDING
            and now - _as_aware(project.created_at) > self.orphan_threshold
        ]

    async def cleanup_orphaned_projects(
        self,
        projects: Iterable[Any],
        *,
        now: datetime | None = None,
    ) -> list[Any]:
        """Sweep projects stuck in ``pending`` past the threshold through cleanup."""
        orphaned = self.find_orphaned_projects(projects, now=now)
        for project in orphaned:
            logger.warning("cleanup: cleaning orphaned project %s", project.name)
            if self.repository is not None:
                try:
                    await self.repository.update(project.id, status=ProjectStatus.FAILED)
                    project.status = ProjectStatus.FAILED
                except Exception:
                    logger.exception("cleanup: could not mark orphan %s as failed", project.name)
            await self.cleanup_failed_project(project, OrphanedProject(project.name))
        return orphaned

    def _workspace_of(self, project: Any) -> Path:
        if project.path:
            return Path(project.path)
        return self.store.workspace_path(project.name)


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
