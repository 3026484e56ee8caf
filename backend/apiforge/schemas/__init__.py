"""Pydantic schemas for API validation."""

from apiforge.schemas.project import (
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
    RegenerateRequest,
)
from apiforge.schemas.queue import (
    OrphanSweepResponse,
    QueueClearedResponse,
    QueueDetailsResponse,
    QueueItemResponse,
    QueueStatusResponse,
)

__all__ = [
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectResponse",
    "RegenerateRequest",
    "QueueStatusResponse",
    "QueueItemResponse",
    "QueueDetailsResponse",
    "QueueClearedResponse",
    "OrphanSweepResponse",
]
