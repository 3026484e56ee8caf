"""Pydantic schemas for Project."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from apiforge.models.project import ProjectStatus, ProjectType


class ProjectBase(BaseModel):
    """Base schema for Project."""

    display_name: str | None = Field(None, max_length=255)
    description: str | None = None
    base_url: str = Field(..., min_length=1, max_length=500)
    base_path: str | None = Field("/v1/api", max_length=255)


class ProjectCreate(ProjectBase):
    """Schema for creating a project."""

    name: str = Field(..., min_length=1, max_length=50)
    project_type: ProjectType = ProjectType.PLAYWRIGHT_BDD
    metadata: dict[str, Any] | None = None
    priority: int = Field(1, ge=0, le=100)


class ProjectUpdate(BaseModel):
    """Schema for updating a project."""

    display_name: str | None = Field(None, max_length=255)
    description: str | None = None
    base_url: str | None = Field(None, min_length=1, max_length=500)
    base_path: str | None = Field(None, max_length=255)
    metadata: dict[str, Any] | None = None


class ProjectResponse(ProjectBase):
    """Schema for project response."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    name: str
    path: str | None = None
    status: ProjectStatus
    project_type: ProjectType = ProjectType.PLAYWRIGHT_BDD
    metadata: dict[str, Any] | None = Field(
        None,
        validation_alias=AliasChoices("extra_metadata", "metadata"),
    )
    created_at: datetime
    updated_at: datetime


class RegenerateRequest(BaseModel):
    """Schema for re-queueing a project."""

    priority: int = Field(1, ge=0, le=100)
