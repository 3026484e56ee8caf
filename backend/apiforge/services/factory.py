"""Wiring of the generation stack from settings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from apiforge.config import Settings
from apiforge.core.generation.cleanup import CleanupService
from apiforge.core.generation.pipeline import GenerationPipeline
from apiforge.core.generation.queue import GenerationQueue
from apiforge.core.generation.templates import TemplateRenderer
from apiforge.core.runners.base import ExternalRunner
from apiforge.core.runners.playwright import PlaywrightScaffolder
from apiforge.core.workspace import WorkspaceStore
from apiforge.db.repository import ProjectRepository
from apiforge.services.projects import ProjectService


@dataclass
class GenerationServices:
    store: WorkspaceStore
    runner: ExternalRunner
    renderer: TemplateRenderer
    scaffolder: PlaywrightScaffolder
    cleanup: CleanupService
    pipeline: GenerationPipeline
    queue: GenerationQueue
    projects: ProjectService


def build_services(
    settings: Settings,
    repository: ProjectRepository,
    *,
    runner: ExternalRunner | None = None,
    renderer: TemplateRenderer | None = None,
) -> GenerationServices:
    """Assemble store, runner, pipeline, compensator and queue around ``repository``.

    Must be called from a running event loop (the queue schedules on it).
    """
    store = WorkspaceStore(
        settings.workspaces_path,
        max_attempts=settings.lock_retry_attempts,
        retry_delay=settings.lock_retry_delay_seconds,
    )
    runner = runner or ExternalRunner(default_timeout=settings.command_timeout_seconds)
    renderer = renderer or TemplateRenderer()
    scaffolder = PlaywrightScaffolder(
        runner,
        renderer,
        scaffold_command=settings.scaffold_command,
        install_command=settings.install_command,
        health_check_command=settings.health_check_command,
        lock_attempts=settings.lock_retry_attempts,
        lock_delay=settings.lock_retry_delay_seconds,
    )
    cleanup = CleanupService(
        store,
        renderer,
        max_retries=settings.lock_retry_attempts,
        retry_delay=settings.lock_retry_delay_seconds,
        orphan_threshold=timedelta(minutes=settings.orphan_threshold_minutes),
        repository=repository,
    )
    pipeline = GenerationPipeline(repository, scaffolder, renderer, cleanup)
    queue = GenerationQueue(
        pipeline,
        concurrency=settings.queue_concurrency,
        max_retries=settings.queue_max_retries,
        attempt_timeout=settings.queue_attempt_timeout_seconds,
        drain_interval=settings.queue_drain_interval_seconds,
        retry_delay=settings.queue_retry_delay_seconds,
    )
    projects = ProjectService(repository, store, queue, cleanup)
    return GenerationServices(
        store=store,
        runner=runner,
        renderer=renderer,
        scaffolder=scaffolder,
        cleanup=cleanup,
        pipeline=pipeline,
        queue=queue,
        projects=projects,
    )
