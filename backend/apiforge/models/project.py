"""Project model for generated test workspaces."""

from enum import Enum
from typing import Any

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from apiforge.db.base import Base, TimestampMixin, UUIDMixin


class ProjectStatus(str, Enum):
    """Generation status of a project."""

    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class ProjectType(str, Enum):
    """Kind of test project generated into the workspace."""

    PLAYWRIGHT_BDD = "playwright-bdd"
    API_ONLY = "api-only"


class Project(Base, UUIDMixin, TimestampMixin):
    """A generated API-test project and its workspace."""

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    path: Mapped[str | None] = mapped_column(String(500))
    base_url: Mapped[str] = mapped_column(String(500), nullable=False)
    base_path: Mapped[str | None] = mapped_column(String(255), default="/v1/api")

    status: Mapped[ProjectStatus] = mapped_column(
        String(20),
        default=ProjectStatus.PENDING,
        index=True,
    )
    project_type: Mapped[ProjectType] = mapped_column(
        "type",
        String(30),
        default=ProjectType.PLAYWRIGHT_BDD,
    )

    # ``metadata`` is reserved on declarative classes.
    extra_metadata: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON)

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name={self.name}, status={self.status})>"
