"""
Core FastAPI application factory.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from ..config.settings import get_settings
from ..api.health import router as health_router
from ..api.jobs import router as jobs_router
from ..services.azcopy_client import get_azcopy_client
from .logging import configure_logging


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    # Configure logging
    configure_logging(settings.log_level)

    # Create FastAPI app
    app = FastAPI(
        title=settings.app_name,
        description="Starts, monitors and cancels AzCopy transfer jobs",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("shutdown")
    async def shutdown_event():
        """Kill AzCopy processes that are still running."""
        logger = structlog.get_logger()
        logger.info("Stopping running AzCopy jobs")
        await get_azcopy_client().aclose()

    # Include routers
    app.include_router(health_router, prefix="/health", tags=["health"])
    app.include_router(jobs_router, prefix="/jobs", tags=["jobs"])

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "message": f"{settings.app_name} API",
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health",
            "endpoints": {
                "start_copy": "/jobs/copy",
                "start_delete": "/jobs/delete",
                "list_jobs": "/jobs",
                "job_status": "/jobs/{job_id}",
                "cancel_job": "/jobs/{job_id}/cancel",
                "kill_job": "/jobs/{job_id}/kill",
                "respond_to_prompt": "/jobs/{job_id}/prompt",
                "release_job": "/jobs/{job_id}"
            }
        }

    return app
