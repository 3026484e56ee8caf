"""External command runner."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from apiforge.exceptions import ExternalCommandFailed

logger = logging.getLogger(__name__)

# Non-interactive defaults for npm/npx based toolchains.
_BASE_ENV = {
    "CI": "true",
    "npm_config_yes": "true",
    "npm_config_quiet": "true",
}


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Captured output of a finished command."""

    stdout: str
    stderr: str
    exit_code: int


class ExternalRunner:
    """Spawn a command, wait for it and capture its output.

    Non-zero exits, spawn errors and timeouts raise
    :class:`ExternalCommandFailed`. Retrying is left to callers.
    """

    def __init__(self, default_timeout: float | None = None) -> None:
        self.default_timeout = default_timeout

    async def run(
        self,
        command: list[str],
        cwd: Path,
        *,
        label: str | None = None,
        env: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> CommandResult:
        label = label or command[0]
        timeout = timeout if timeout is not None else self.default_timeout
        proc_env = {**os.environ, **_BASE_ENV, **(env or {})}

        logger.info("runner: %s in %s", label, cwd)
        logger.debug("runner: command=%s", command)

        if not await asyncio.to_thread(Path(cwd).is_dir):
            raise ExternalCommandFailed(
                label, reason=f"could not be started: working directory {cwd} does not exist"
            )

        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(cwd),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=proc_env,
            )
        except FileNotFoundError as exc:
            raise ExternalCommandFailed(label, reason="failed: command not found", stderr=str(exc)) from exc
        except OSError as exc:
            raise ExternalCommandFailed(label, reason="could not be started", stderr=str(exc)) from exc

        try:
            stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await _kill(proc)
            raise ExternalCommandFailed(label, reason=f"timed out after {timeout:g}s") from None
        except asyncio.CancelledError:
            await _kill(proc)
            raise

        stdout = stdout_b.decode("utf-8", errors="replace")
        stderr = stderr_b.decode("utf-8", errors="replace")
        exit_code = proc.returncode or 0

        if stdout:
            logger.debug("runner: %s stdout: %s", label, stdout[:500])
        if exit_code != 0:
            logger.error("runner: %s exited %s: %s", label, exit_code, stderr[:500])
            raise ExternalCommandFailed(label, exit_code=exit_code, stderr=stderr or stdout)
        if stderr:
            logger.warning("runner: %s stderr: %s", label, stderr[:500])

        logger.info("runner: %s completed", label)
        return CommandResult(stdout=stdout, stderr=stderr, exit_code=exit_code)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()
