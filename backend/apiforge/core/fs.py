"""Lock-aware filesystem helpers.

A file is considered *locked* when opening it for read/write fails with a
permission or sharing-violation class error. Missing files are never locked.
All blocking calls go through ``asyncio.to_thread`` so callers stay
responsive on the event loop.
"""

from __future__ import annotations

import asyncio
import errno
import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

# EACCES/EPERM surface as PermissionError; Windows sharing violations do too.
_LOCK_ERRNOS = {errno.EBUSY, errno.ETXTBSY, errno.EACCES, errno.EPERM}


def is_lock_error(exc: BaseException) -> bool:
    """Return True for busy/locked/permission errors, False for everything else."""
    if isinstance(exc, FileNotFoundError):
        return False
    if isinstance(exc, PermissionError):
        return True
    return isinstance(exc, OSError) and exc.errno in _LOCK_ERRNOS


def probe_file(path: Path) -> None:
    """Open ``path`` for read/write and close it immediately."""
    with open(path, "r+b"):
        pass


def scan_blocked_files(root: Path) -> list[Path]:
    """Walk ``root`` and return every regular file whose probe hits a lock error."""
    blocked: list[Path] = []
    try:
        entries = sorted(root.rglob("*"))
    except OSError as exc:
        logger.error("fs: error searching for blocked files in %s: %s", root, exc)
        return blocked

    for entry in entries:
        try:
            if entry.is_symlink() or not entry.is_file():
                continue
            probe_file(entry)
        except OSError as exc:
            if is_lock_error(exc):
                blocked.append(entry)
    return blocked


def _remove_path(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


async def remove_with_lock_retry(
    path: Path,
    *,
    attempts: int = 3,
    delay: float = 1.0,
) -> bool:
    """Best-effort removal of a file or directory.

    Files are probed before removal; a lock-class error (from the probe or the
    removal) is retried ``attempts`` times with ``delay`` seconds in between.
    Returns True when the target is gone, False when it was given up on.
    """
    for attempt in range(1, attempts + 1):
        try:
            if await asyncio.to_thread(path.is_file):
                await asyncio.to_thread(probe_file, path)
            await asyncio.to_thread(_remove_path, path)
            logger.debug("fs: removed %s", path)
            return True
        except FileNotFoundError:
            return True
        except OSError as exc:
            if attempt == attempts:
                logger.warning("fs: could not remove %s after %d attempts: %s", path, attempts, exc)
                return False
            if is_lock_error(exc):
                logger.warning("fs: %s is locked (attempt %d/%d)", path, attempt, attempts)
            await asyncio.sleep(delay)
    return False
