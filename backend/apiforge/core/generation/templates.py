"""Rendering of project configuration and fixture files."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent.parent.parent / "templates" / "project"


@dataclass(frozen=True)
class RenderedFile:
    template: str
    target: str


# Template name -> path relative to the workspace root, in write order.
PROJECT_FILES: tuple[RenderedFile, ...] = (
    RenderedFile("package.json.jinja2", "package.json"),
    RenderedFile("tsconfig.json.jinja2", "tsconfig.json"),
    RenderedFile("playwright.config.ts.jinja2", "playwright.config.ts"),
    RenderedFile("BaseApiClient.ts.jinja2", "src/api/BaseApiClient.ts"),
    RenderedFile("api.config.ts.jinja2", "src/api/api.config.ts"),
    RenderedFile("global-setup.ts.jinja2", "src/api/global-setup.ts"),
    RenderedFile("global-teardown.ts.jinja2", "src/api/global-teardown.ts"),
    RenderedFile("cucumber.cjs.jinja2", "cucumber.cjs"),
    RenderedFile("hooks.ts.jinja2", "src/steps/hooks.ts"),
    RenderedFile("world.ts.jinja2", "src/steps/world.ts"),
    RenderedFile("common.ts.jinja2", "src/types/common.ts"),
    RenderedFile("env.jinja2", ".env"),
    RenderedFile("README.md.jinja2", "README.md"),
)

HEALTH_CHECK_FILE = RenderedFile("health.spec.ts.jinja2", "src/tests/health.spec.ts")
BASELINE_PACKAGE_JSON = RenderedFile("baseline-package.json.jinja2", "package.json")
BASELINE_RUNNER_CONFIG = RenderedFile("baseline-playwright.config.ts.jinja2", "playwright.config.ts")


def template_variables(project: Any) -> dict[str, str]:
    """Variables available to every project template."""
    return {
        "name": project.name,
        "base_url": project.base_url,
        "base_path": getattr(project, "base_path", None) or "/v1/api",
        "author": "",
        "description": getattr(project, "description", None)
        or "API testing project with Playwright + BDD",
    }


class TemplateRenderer:
    """Renders named jinja2 templates into workspace files.

    Undefined variables are errors; a missing template raises
    ``jinja2.TemplateNotFound``.
    """

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or DEFAULT_TEMPLATES_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def render(self, template_name: str, variables: dict[str, Any]) -> str:
        return self.env.get_template(template_name).render(**variables)

    async def write_rendered(
        self,
        template_name: str,
        target: Path,
        variables: dict[str, Any],
    ) -> Path:
        content = self.render(template_name, variables)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")

        await asyncio.to_thread(_write)
        return target

    async def write_file(self, rendered: RenderedFile, workspace: Path, variables: dict[str, Any]) -> Path:
        return await self.write_rendered(rendered.template, workspace / rendered.target, variables)
