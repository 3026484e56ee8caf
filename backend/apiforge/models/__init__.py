"""Database models."""

from apiforge.models.project import Project, ProjectStatus, ProjectType

__all__ = [
    "Project",
    "ProjectStatus",
    "ProjectType",
]
