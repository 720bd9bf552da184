# ============================================================================
# DIALECTIC ORCHESTRATOR - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - FastAPI application entry point
# PURPOSE: Wire repositories, services and the worker dispatcher
# CREATED: 18 OCT 2026
# ============================================================================
"""
Dialectic Orchestrator Main Application

FastAPI application that:
1. Plans generation jobs for a stage
2. Resolves recipe step inputs for the worker
3. Completes stages and advances sessions

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from __version__ import __version__, BUILD_DATE, EPOCH

from core.config import get_defaults
from repositories import RecipeRepository, TriggerLogRepository
from repositories.database import init_pool, close_pool
from infrastructure.storage import get_content_storage
from messaging import JobInsertDispatcher, WorkerConfig, WorkerInvoker
from services import JobPlanner, SourceDocumentResolver, StageTransitioner
from api.routes import router, set_services
from api.health_routes import health_router, set_health_pool

# Configure logging using our structured logging system
from core.logging import configure_logging, get_logger

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Initializes services on startup, cleans up on shutdown.
    """
    logger.info(f"Starting Dialectic Orchestrator v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    defaults = get_defaults()

    # Initialize database pool
    pool = await init_pool()
    set_health_pool(pool)
    logger.info("Database pool initialized")

    storage = get_content_storage()
    logger.info(f"Content storage bucket: {storage.default_bucket}")

    # Post-insert dispatch: hand committed non-test jobs to the worker
    dispatcher = JobInsertDispatcher()
    worker_config = WorkerConfig.from_env()
    if worker_config.enabled:
        dispatcher.subscribe(WorkerInvoker(worker_config, TriggerLogRepository(pool)))
        logger.info(f"Worker invocation enabled: {worker_config.worker_url}")
    else:
        logger.warning("Worker invocation disabled (DIALECTIC_WORKER_ENABLED=false)")

    set_services(
        job_planner=JobPlanner(pool, dispatcher, defaults.planner),
        source_resolver=SourceDocumentResolver(pool, storage),
        stage_transitioner=StageTransitioner(pool, storage, storage_defaults=defaults.storage),
        recipe_repo=RecipeRepository(pool),
    )

    yield

    # Shutdown
    logger.info("Shutting down Dialectic Orchestrator...")
    await dispatcher.drain(timeout=worker_config.shutdown_timeout_seconds)
    await close_pool()
    logger.info("Dialectic Orchestrator stopped")


# Create FastAPI app
app = FastAPI(
    title="Dialectic Orchestrator",
    description=f"Epoch {EPOCH} recipe-driven dialectic job orchestration",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include health check routes (no prefix - /livez, /readyz)
app.include_router(health_router)

# Include API routes
app.include_router(router, prefix="/api/v1")


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Dialectic Orchestrator",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "status": "running",
        "docs": "/docs",
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
