"""Playwright + Cucumber scaffolding for a workspace."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from apiforge.core import fs
from apiforge.core.generation.templates import (
    HEALTH_CHECK_FILE,
    TemplateRenderer,
    template_variables,
)
from apiforge.core.runners.base import ExternalRunner
from apiforge.exceptions import ExternalCommandFailed

logger = logging.getLogger(__name__)

# Files created by `npm init playwright` that the generated project replaces.
EXAMPLE_FILES: tuple[str, ...] = (
    "tests/example.spec.ts",
    "tests-examples/demo-todo-app.spec.ts",
    "tests-examples",
)

SCAFFOLD_LABEL = "Playwright initialization"
INSTALL_LABEL = "BDD dependencies installation"
HEALTH_CHECK_LABEL = "Health check test"


class PlaywrightScaffolder:
    """Drives the external toolchain that turns an empty workspace into a Playwright project."""

    def __init__(
        self,
        runner: ExternalRunner,
        renderer: TemplateRenderer,
        *,
        scaffold_command: list[str],
        install_command: list[str],
        health_check_command: list[str],
        lock_attempts: int = 3,
        lock_delay: float = 1.0,
    ) -> None:
        self.runner = runner
        self.renderer = renderer
        self.scaffold_command = scaffold_command
        self.install_command = install_command
        self.health_check_command = health_check_command
        self.lock_attempts = lock_attempts
        self.lock_delay = lock_delay

    async def initialize_project(self, project: Any) -> None:
        workspace = Path(project.path)
        logger.info("playwright: initializing %s", project.name)

        await self.runner.run(
            self.scaffold_command,
            workspace,
            label=SCAFFOLD_LABEL,
            env={"NODE_ENV": "development", "PLAYWRIGHT_SKIP_BROWSER_DOWNLOAD": "1"},
        )
        await self.runner.run(
            self.install_command,
            workspace,
            label=INSTALL_LABEL,
            env={"NODE_ENV": "development"},
        )
        await self.clean_example_files(workspace)

        logger.info("playwright: initialization completed for %s", project.name)

    async def clean_example_files(self, workspace: Path) -> None:
        """Best-effort removal of the scaffold's demo files; never fails the step."""
        for rel in EXAMPLE_FILES:
            removed = await fs.remove_with_lock_retry(
                workspace / rel,
                attempts=self.lock_attempts,
                delay=self.lock_delay,
            )
            if not removed:
                logger.warning("playwright: could not delete example file %s", rel)

    async def run_health_check(self, project: Any) -> bool:
        """Write the health check test and run it; False on any command failure."""
        workspace = Path(project.path)
        logger.info("playwright: running health check for %s", project.name)

        await self.renderer.write_file(HEALTH_CHECK_FILE, workspace, template_variables(project))
        env = {"NODE_ENV": "development", **await _load_workspace_env(workspace)}

        try:
            await self.runner.run(
                self.health_check_command,
                workspace,
                label=HEALTH_CHECK_LABEL,
                env=env,
            )
        except ExternalCommandFailed as exc:
            logger.error("playwright: health check failed for %s: %s", project.name, exc)
            return False

        logger.info("playwright: health check passed for %s", project.name)
        return True


async def _load_workspace_env(workspace: Path) -> dict[str, str]:
    dotenv_file = workspace / ".env"
    if not await asyncio.to_thread(dotenv_file.is_file):
        return {}
    values = await asyncio.to_thread(dotenv_values, str(dotenv_file))
    logger.debug("playwright: loaded env from %s", dotenv_file)
    return {k: v for k, v in values.items() if v is not None}
