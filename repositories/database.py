# ============================================================================
# DATABASE CONNECTION POOL
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Async PostgreSQL connection management
# PURPOSE: Provide connection pooling for psycopg3 async
# CREATED: 18 OCT 2026
# ============================================================================
"""
Database Connection Pool

Manages async PostgreSQL connections using psycopg3 and psycopg_pool.
One pool per application.

Connection settings come from DATABASE_URL or the individual POSTGRES_*
variables.

Usage:
    from repositories.database import init_pool, close_pool

    pool = await init_pool()
    async with pool.connection() as conn:
        result = await conn.execute("SELECT 1")
"""

import logging
import os
from typing import Optional

from psycopg import sql as psycopg_sql
from psycopg_pool import AsyncConnectionPool

logger = logging.getLogger(__name__)

_pool: Optional[AsyncConnectionPool] = None


def get_connection_string() -> str:
    """
    Database connection string from the environment.

    Priority:
    1. DATABASE_URL
    2. Individual POSTGRES_* components
    """
    if url := os.environ.get("DATABASE_URL"):
        return url

    host = os.environ.get("POSTGRES_HOST", "localhost")
    port = os.environ.get("POSTGRES_PORT", "5432")
    name = os.environ.get("POSTGRES_DB", "postgres")
    user = os.environ.get("POSTGRES_USER", "postgres")
    password = os.environ.get("POSTGRES_PASSWORD", "")
    sslmode = os.environ.get("POSTGRES_SSLMODE", "require")

    return f"postgresql://{user}:{password}@{host}:{port}/{name}?sslmode={sslmode}"


def _mask(conninfo: str) -> str:
    if "@" in conninfo:
        return conninfo.split("@")[-1]
    return conninfo.split("password=")[0] + "password=***" if "password=" in conninfo else conninfo


async def init_pool(
    min_size: int = 2,
    max_size: int = 10,
    connection_string: Optional[str] = None,
) -> AsyncConnectionPool:
    """Initialize and open the global connection pool."""
    global _pool

    if _pool is not None:
        logger.warning("Pool already initialized, returning existing pool")
        return _pool

    conninfo = connection_string or get_connection_string()
    logger.info(f"Initializing connection pool: {_mask(conninfo)}")

    _pool = AsyncConnectionPool(
        conninfo=conninfo,
        min_size=int(os.environ.get("DB_POOL_MIN_SIZE", min_size)),
        max_size=int(os.environ.get("DB_POOL_MAX_SIZE", max_size)),
        open=False,
    )
    await _pool.open()
    logger.info(f"Connection pool opened (min={_pool.min_size}, max={_pool.max_size})")

    return _pool


async def close_pool() -> None:
    """Close the global connection pool."""
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Connection pool closed")


# ============================================================================
# SCHEMA CONSTANTS
# ============================================================================

SCHEMA = "dialectic"

# Table identifiers - use with sql.SQL().format() for injection-safe queries
TABLE_PROJECTS = psycopg_sql.Identifier(SCHEMA, "projects")
TABLE_SESSIONS = psycopg_sql.Identifier(SCHEMA, "sessions")
TABLE_STAGES = psycopg_sql.Identifier(SCHEMA, "stages")
TABLE_STAGE_TRANSITIONS = psycopg_sql.Identifier(SCHEMA, "stage_transitions")
TABLE_SYSTEM_PROMPTS = psycopg_sql.Identifier(SCHEMA, "system_prompts")
TABLE_OVERLAYS = psycopg_sql.Identifier(SCHEMA, "domain_specific_prompt_overlays")
TABLE_AI_PROVIDERS = psycopg_sql.Identifier(SCHEMA, "ai_providers")
TABLE_RECIPE_INSTANCES = psycopg_sql.Identifier(SCHEMA, "recipe_instances")
TABLE_RECIPE_STEPS = psycopg_sql.Identifier(SCHEMA, "recipe_steps")
TABLE_JOBS = psycopg_sql.Identifier(SCHEMA, "generation_jobs")
TABLE_PROJECT_RESOURCES = psycopg_sql.Identifier(SCHEMA, "project_resources")
TABLE_CONTRIBUTIONS = psycopg_sql.Identifier(SCHEMA, "contributions")
TABLE_FEEDBACK = psycopg_sql.Identifier(SCHEMA, "feedback")
TABLE_TRIGGER_LOGS = psycopg_sql.Identifier(SCHEMA, "dialectic_trigger_logs")
