"""
FastAPI entrypoint for the Faceless Shorts Factory API.

Image-mode videos are rendered synchronously by ``POST /videos/compose``;
background-video jobs are handed to the external worker by ``POST /videos/merge``.
The same pipeline is available from the command line via
``python -m shorts_factory.pipelines.compose_video``.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shorts_factory.api.routes_video import router as videos_router
from shorts_factory.core.config import settings
from shorts_factory.core.logging_config import get_logger, setup_logging

setup_logging(log_level=settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Execution mode: {settings.execution_mode.value}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info("=" * 60)
    yield
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Faceless Shorts Factory - composes vertical short-form videos from narration and images",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(videos_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "mode": settings.execution_mode.value,
        "endpoints": {
            "compose_video": "/videos/compose",
            "merge_background_video": "/videos/merge",
            "get_job": "/videos/jobs/{job_id}",
            "generate_narration": "/videos/narration",
            "plan_scenes": "/videos/scenes",
            "generate_images": "/videos/images",
            "cleanup": "/videos/cleanup",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "shorts_factory.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
