"""Internal directory layout of a generated project."""

from __future__ import annotations

import asyncio
from pathlib import Path, PurePosixPath

PROJECT_STRUCTURE: tuple[str, ...] = (
    "src/api",
    "src/features",
    "src/steps",
    "src/fixtures",
    "src/schemas",
    "src/types",
    "src/utils",
    "src/tests",
    "reports",
)

_PLACEHOLDER = "// Generated placeholder\n"


async def create_directory_structure(base: Path, structure: tuple[str, ...] = PROJECT_STRUCTURE) -> None:
    """Create every entry of ``structure`` under ``base``.

    Entries with a suffix are files (created with a placeholder, never
    overwritten); the rest are directories.
    """

    def _create() -> None:
        for item in structure:
            full_path = base / item
            if PurePosixPath(item).suffix:
                full_path.parent.mkdir(parents=True, exist_ok=True)
                if not full_path.exists():
                    full_path.write_text(_PLACEHOLDER, encoding="utf-8")
            else:
                full_path.mkdir(parents=True, exist_ok=True)

    await asyncio.to_thread(_create)
