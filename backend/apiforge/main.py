"""FastAPI application entry point."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from sqlalchemy import text

from apiforge.api.v1 import router as api_v1_router
from apiforge.config import settings
from apiforge.db.repository import ProjectRepository
from apiforge.db.session import async_session_factory, engine
from apiforge.exceptions import ApiForgeError
from apiforge.services.factory import build_services

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("apiforge.main")


async def _recover_orphaned_projects(app: FastAPI) -> None:
    """Fail projects left pending by a previous process (queue state is in memory only)."""
    try:
        swept = await app.state.project_service.sweep_orphans()
    except Exception:
        logger.exception("main: orphan sweep failed")
        return
    if swept:
        logger.warning(
            "main: recovered %d orphaned project(s): %s",
            len(swept),
            [str(p.id) for p in swept],
        )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan context manager."""
    # Startup
    services = build_services(settings, ProjectRepository(async_session_factory))
    await services.store.initialize()
    app.state.project_service = services.projects
    app.state.generation_queue = services.queue
    await _recover_orphaned_projects(app)
    yield
    # Shutdown
    await services.queue.shutdown()
    await engine.dispose()


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Provisioning and generation of Playwright + BDD API-test workspaces",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    @app.exception_handler(ApiForgeError)
    async def apiforge_error_handler(request: Request, exc: ApiForgeError) -> Response:
        """Map domain errors to their HTTP status with a structured body."""
        if exc.http_status >= 500:
            logger.error("main: %s", exc)
        return JSONResponse(status_code=exc.http_status, content={"detail": exc.to_dict()})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
        """Return JSON 500 for anything unexpected."""
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request) -> dict[str, Any]:
        """Health check with database connectivity and queue state."""
        result: dict[str, Any] = {
            "status": "healthy",
            "version": settings.app_version,
            "services": {},
        }

        try:
            start = time.monotonic()
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            result["services"]["database"] = {
                "status": "healthy",
                "latency_ms": round((time.monotonic() - start) * 1000, 2),
            }
        except Exception as exc:
            result["services"]["database"] = {"status": "unhealthy", "error": str(exc)}
            result["status"] = "degraded"

        queue = getattr(request.app.state, "generation_queue", None)
        if queue is not None:
            result["services"]["queue"] = queue.get_queue_status()

        return result

    app.include_router(api_v1_router, prefix="/api/v1")

    return app


app = create_application()


def run() -> None:
    """Serve the API with uvicorn using the configured host and port."""
    import uvicorn

    uvicorn.run(
        "apiforge.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
