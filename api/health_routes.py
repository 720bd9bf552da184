# ============================================================================
# HEALTH CHECK ROUTES
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Infrastructure - Liveness and readiness probes
# PURPOSE: Container probes for the orchestrator
# CREATED: 18 OCT 2026
# ============================================================================
"""
Health Check Routes

Endpoints:
    GET /livez   - Liveness probe (is the process alive?)
                   Always 200 while the process answers.

    GET /readyz  - Readiness probe (can we accept work?)
                   200 when the database answers, 503 otherwise.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from __version__ import __version__, BUILD_DATE

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["Health"])

_pool = None


def set_health_pool(pool) -> None:
    global _pool
    _pool = pool


@health_router.get("/livez")
async def liveness_probe():
    """Returns 200 if the process is alive. No external checks."""
    return {"status": "alive", "version": __version__, "build_date": BUILD_DATE}


@health_router.get("/readyz")
async def readiness_probe():
    """Returns 200 when a pooled connection can run a query."""
    if _pool is None:
        return JSONResponse(status_code=503, content={"status": "not_ready", "reason": "pool not initialized"})

    try:
        async with _pool.connection() as conn:
            await conn.execute("SELECT 1")
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "not_ready", "reason": str(e)})

    return {"status": "ready", "version": __version__}
