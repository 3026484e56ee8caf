"""Project persistence used by the generation core and the API."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from apiforge.models.project import Project, ProjectStatus


class ProjectRepository:
    """By-id access to ``Project`` records.

    Each call runs in its own short session so pipeline tasks never share a
    session across suspension points.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, project_id: str) -> Project | None:
        async with self._session_factory() as session:
            return await session.get(Project, project_id)

    async def get_by_name(self, name: str) -> Project | None:
        async with self._session_factory() as session:
            result = await session.execute(select(Project).where(Project.name == name))
            return result.scalar_one_or_none()

    async def list(self, *, skip: int = 0, limit: int = 100) -> list[Project]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Project).order_by(Project.created_at.desc()).offset(skip).limit(limit)
            )
            return list(result.scalars().all())

    async def list_by_status(self, status: ProjectStatus) -> list[Project]:
        async with self._session_factory() as session:
            result = await session.execute(select(Project).where(Project.status == status))
            return list(result.scalars().all())

    async def create(self, **fields: Any) -> Project:
        async with self._session_factory() as session:
            project = Project(**fields)
            session.add(project)
            await session.commit()
            await session.refresh(project)
            return project

    async def update(self, project_id: str, **fields: Any) -> Project | None:
        fields.setdefault("updated_at", datetime.now(timezone.utc))
        async with self._session_factory() as session:
            await session.execute(
                update(Project).where(Project.id == project_id).values(**fields)
            )
            await session.commit()
            return await session.get(Project, project_id)

    async def delete(self, project_id: str) -> None:
        async with self._session_factory() as session:
            await session.execute(delete(Project).where(Project.id == project_id))
            await session.commit()
