"""Fixtures wiring the FastAPI app to in-memory persistence and a scripted runner."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from apiforge.api.deps import get_generation_queue, get_project_service
from apiforge.main import app
from apiforge.services.factory import GenerationServices, build_services


@pytest.fixture
async def services(test_settings, repository, runner) -> AsyncIterator[GenerationServices]:
    services = build_services(test_settings, repository, runner=runner)
    await services.store.initialize()
    yield services
    await services.queue.shutdown()


@pytest.fixture
async def client(services: GenerationServices) -> AsyncIterator[AsyncClient]:
    app.dependency_overrides[get_project_service] = lambda: services.projects
    app.dependency_overrides[get_generation_queue] = lambda: services.queue
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
