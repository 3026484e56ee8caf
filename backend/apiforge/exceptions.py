"""Domain errors raised by the workspace generation core."""

from __future__ import annotations

from typing import Any


class ApiForgeError(Exception):
    def __init__(
        self,
        message: str,
        *,
        code: str = "INTERNAL_ERROR",
        http_status: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.http_status = http_status
        self.details = details or {}

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code, "details": self.details}


class AlreadyExists(ApiForgeError):
    def __init__(self, message: str = "Resource already exists", **kwargs: Any) -> None:
        super().__init__(message, code="ALREADY_EXISTS", http_status=409, **kwargs)


class ResourceBusy(ApiForgeError):
    """Workspace files are held open by another process."""

    def __init__(
        self,
        message: str = "Cannot delete workspace because there are files in use.",
        *,
        workspace: str,
        blocked_files: list[str] | None = None,
        suggestion: str = "Please close all open files and try again.",
    ) -> None:
        details: dict[str, Any] = {"workspace": workspace, "suggestion": suggestion}
        if blocked_files is not None:
            details["blocked_files"] = blocked_files
        super().__init__(message, code="RESOURCE_BUSY", http_status=409, details=details)

    @property
    def blocked_files(self) -> list[str]:
        return list(self.details.get("blocked_files", []))


class ExternalCommandFailed(ApiForgeError):
    def __init__(
        self,
        label: str,
        *,
        exit_code: int | None = None,
        stderr: str = "",
        reason: str | None = None,
    ) -> None:
        if reason is None:
            reason = f"exited with code {exit_code}" if exit_code is not None else "failed"
        tail = stderr.strip()[-500:]
        message = f"{label} {reason}" + (f": {tail}" if tail else "")
        super().__init__(
            message,
            code="EXTERNAL_COMMAND_FAILED",
            http_status=500,
            details={"label": label, "exit_code": exit_code},
        )
        self.label = label
        self.exit_code = exit_code
        self.stderr = stderr


class GenerationTimeout(ApiForgeError):
    def __init__(self, project_name: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Generation of {project_name} exceeded {timeout_seconds:g}s",
            code="GENERATION_TIMEOUT",
            http_status=504,
            details={"project": project_name, "timeout_seconds": timeout_seconds},
        )


class ValidationFailed(ApiForgeError):
    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, code="VALIDATION_FAILED", http_status=400, **kwargs)


class ProjectNotFound(ApiForgeError):
    def __init__(self, message: str = "Project not found") -> None:
        super().__init__(message, code="PROJECT_NOT_FOUND", http_status=404)


class HealthCheckFailed(ApiForgeError):
    def __init__(self, project_name: str) -> None:
        super().__init__(
            f"Health check failed for {project_name}",
            code="HEALTH_CHECK_FAILED",
            http_status=500,
        )


class OrphanedProject(ApiForgeError):
    def __init__(self, project_name: str) -> None:
        super().__init__(
            f"Orphaned project detected: {project_name}",
            code="ORPHANED_PROJECT",
            http_status=500,
        )
