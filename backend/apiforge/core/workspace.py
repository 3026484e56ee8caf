"""Workspace store: one directory per project under the workspaces root."""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path

from apiforge.core import fs
from apiforge.exceptions import AlreadyExists, ResourceBusy, ValidationFailed

logger = logging.getLogger(__name__)

_ROOT_ENV_FILE = ".env"
_ROOT_ENV_CONTENT = """# OpenAI Configuration
# Get your API key from: https://platform.openai.com/api-keys
OPENAI_API_KEY=your-api-key-here

# Other environment variables can be added here
# DATABASE_URL=your-database-url
# REDIS_URL=your-redis-url
"""


class WorkspaceStore:
    """Maps project names to directories and deletes them lock-aware."""

    def __init__(
        self,
        root: Path,
        *,
        max_attempts: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self.root = root.resolve()
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

    def workspace_path(self, name: str) -> Path:
        """Absolute path of the workspace for ``name`` (path traversal guarded)."""
        if not name or name in (".", ".."):
            raise ValidationFailed(f"Invalid workspace name: {name!r}")
        path = (self.root / name).resolve()
        if path.parent != self.root:
            raise ValidationFailed(f"Workspace name escapes the workspaces root: {name!r}")
        return path

    async def initialize(self) -> None:
        """Create the workspaces root and its shared ``.env`` if missing."""
        await asyncio.to_thread(self.root.mkdir, parents=True, exist_ok=True)
        logger.info("workspace: using workspaces directory %s", self.root)
        await self._ensure_root_env_file()

    async def create_workspace(self, name: str) -> Path:
        path = self.workspace_path(name)
        if await asyncio.to_thread(path.exists):
            raise AlreadyExists(f"Workspace {name} already exists")
        await asyncio.to_thread(path.mkdir, parents=True)
        logger.info("workspace: created %s", path)
        await self._ensure_root_env_file()
        return path

    async def workspace_exists(self, name: str) -> bool:
        return await asyncio.to_thread(self.workspace_path(name).is_dir)

    async def list_workspaces(self) -> list[str]:
        def _list() -> list[str]:
            if not self.root.is_dir():
                return []
            return sorted(entry.name for entry in self.root.iterdir() if entry.is_dir())

        return await asyncio.to_thread(_list)

    async def delete_workspace(self, name: str) -> None:
        """Remove the workspace directory.

        Blocked files are re-checked up to ``max_attempts`` times with
        ``retry_delay`` seconds between checks; if some remain on the final
        attempt, :class:`ResourceBusy` lists them relative to the workspace.
        Deleting a missing workspace is a no-op.
        """
        path = self.workspace_path(name)

        for attempt in range(1, self.max_attempts + 1):
            if not await asyncio.to_thread(path.exists):
                return

            blocked = await asyncio.to_thread(fs.scan_blocked_files, path)
            if blocked:
                relative = [p.relative_to(path).as_posix() for p in blocked]
                logger.warning(
                    "workspace: attempt %d/%d: blocked files in %s: %s",
                    attempt,
                    self.max_attempts,
                    name,
                    relative,
                )
                if attempt == self.max_attempts:
                    raise ResourceBusy(workspace=name, blocked_files=relative)
                await asyncio.sleep(self.retry_delay)
                continue

            try:
                await asyncio.to_thread(shutil.rmtree, path)
            except FileNotFoundError:
                return
            except OSError as exc:
                if attempt == self.max_attempts:
                    if fs.is_lock_error(exc):
                        raise ResourceBusy(
                            "Cannot delete workspace because it is in use.",
                            workspace=name,
                        ) from exc
                    logger.error(
                        "workspace: could not delete %s after %d attempts", name, self.max_attempts
                    )
                    raise
                logger.warning("workspace: attempt %d: error deleting %s: %s", attempt, name, exc)
                await asyncio.sleep(self.retry_delay)
                continue

            logger.info("workspace: deleted %s", path)
            return

    async def _ensure_root_env_file(self) -> None:
        env_path = self.root / _ROOT_ENV_FILE

        def _write_if_missing() -> bool:
            if env_path.exists() and env_path.stat().st_size > 0:
                return False
            env_path.write_text(_ROOT_ENV_CONTENT, encoding="utf-8")
            return True

        try:
            if await asyncio.to_thread(_write_if_missing):
                logger.info("workspace: created root .env file %s", env_path)
        except OSError as exc:
            logger.warning("workspace: could not create root .env file: %s", exc)
