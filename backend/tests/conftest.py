"""Shared pytest fixtures for apiforge tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from apiforge.config import Settings
from apiforge.core.generation.cleanup import CleanupService
from apiforge.core.generation.pipeline import GenerationPipeline
from apiforge.core.generation.templates import TemplateRenderer
from apiforge.core.runners.playwright import PlaywrightScaffolder
from apiforge.core.workspace import WorkspaceStore
from tests.fakes import FakeRunner, InMemoryProjectRepository


@pytest.fixture
def workspaces_root(tmp_path: Path) -> Path:
    root = tmp_path / "playwright-workspaces"
    root.mkdir()
    return root


@pytest.fixture
def test_settings(workspaces_root: Path) -> Settings:
    """Settings with fast retry and drain timings."""
    return Settings(
        workspaces_path=workspaces_root,
        lock_retry_attempts=3,
        lock_retry_delay_seconds=0,
        queue_concurrency=2,
        queue_max_retries=3,
        queue_attempt_timeout_seconds=5,
        queue_drain_interval_seconds=0.01,
        queue_retry_delay_seconds=0,
        orphan_threshold_minutes=30,
    )


@pytest.fixture
def store(workspaces_root: Path) -> WorkspaceStore:
    return WorkspaceStore(workspaces_root, max_attempts=3, retry_delay=0)


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


@pytest.fixture
def repository() -> InMemoryProjectRepository:
    return InMemoryProjectRepository()


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def cleanup(store: WorkspaceStore, renderer: TemplateRenderer, repository: InMemoryProjectRepository) -> CleanupService:
    return CleanupService(store, renderer, max_retries=3, retry_delay=0, repository=repository)


@pytest.fixture
def scaffolder(runner: FakeRunner, renderer: TemplateRenderer) -> PlaywrightScaffolder:
    return PlaywrightScaffolder(
        runner,
        renderer,
        scaffold_command=["npm", "init", "playwright@latest"],
        install_command=["npm", "install"],
        health_check_command=["npx", "playwright", "test", "health.spec.ts"],
        lock_attempts=3,
        lock_delay=0,
    )


@pytest.fixture
def pipeline(
    repository: InMemoryProjectRepository,
    scaffolder: PlaywrightScaffolder,
    renderer: TemplateRenderer,
    cleanup: CleanupService,
) -> GenerationPipeline:
    return GenerationPipeline(repository, scaffolder, renderer, cleanup)
