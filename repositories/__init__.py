# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Data access layer
# PURPOSE: Export repository classes and pool helpers
# CREATED: 18 OCT 2026
# ============================================================================
"""
Repositories Module

Async PostgreSQL data access (psycopg3 + psycopg_pool).
"""

from .database import init_pool, close_pool, SCHEMA
from .job_repo import JobRepository
from .recipe_repo import RecipeRepository
from .session_repo import ProjectRepository, ProviderRepository, SessionRepository
from .stage_repo import StageRepository
from .artifact_repo import ResourceRepository, ContributionRepository, FeedbackRepository
from .trigger_log_repo import TriggerLogRepository

__all__ = [
    # Pool
    "init_pool",
    "close_pool",
    "SCHEMA",
    # Repositories
    "JobRepository",
    "RecipeRepository",
    "ProjectRepository",
    "ProviderRepository",
    "SessionRepository",
    "StageRepository",
    "ResourceRepository",
    "ContributionRepository",
    "FeedbackRepository",
    "TriggerLogRepository",
]
