# ============================================================================
# SESSION / PROJECT / PROVIDER REPOSITORIES
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Session graph reads and the session stage update
# PURPOSE: Database access for projects, sessions and ai_providers
# CREATED: 18 OCT 2026
# ============================================================================
"""
Session Repositories

Projects and providers are read-only here. Sessions are updated only by
the stage transitioner, through ``advance``.
"""

import logging
from datetime import datetime
from typing import Optional

from psycopg import sql
from psycopg.rows import dict_row

from core.models import AiProvider, DialecticProject, DialecticSession
from infrastructure.base_repository import AsyncBaseRepository
from .database import TABLE_AI_PROVIDERS, TABLE_PROJECTS, TABLE_SESSIONS

logger = logging.getLogger(__name__)


class ProjectRepository(AsyncBaseRepository[DialecticProject]):
    model = DialecticProject
    table = TABLE_PROJECTS
    filterable_columns = frozenset({"user_id"})


class ProviderRepository(AsyncBaseRepository[AiProvider]):
    model = AiProvider
    table = TABLE_AI_PROVIDERS
    filterable_columns = frozenset({"api_identifier", "is_active"})


class SessionRepository(AsyncBaseRepository[DialecticSession]):
    """Repository for DialecticSession entities."""

    model = DialecticSession
    table = TABLE_SESSIONS
    filterable_columns = frozenset({"project_id", "status"})

    async def advance(
        self,
        session_id: str,
        status: str,
        current_stage_id: Optional[str] = None,
    ) -> Optional[DialecticSession]:
        """
        Set the session status, and the current stage when one is given.

        Returns the updated session, or None if the session is gone.
        """
        assignments = [sql.SQL("status = %(status)s"), sql.SQL("updated_at = %(now)s")]
        if current_stage_id is not None:
            assignments.append(sql.SQL("current_stage_id = %(current_stage_id)s"))

        with self._error_context("session update", session_id):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("UPDATE {} SET {} WHERE id = %(id)s RETURNING *").format(
                        TABLE_SESSIONS, sql.SQL(", ").join(assignments)
                    ),
                    {
                        "id": session_id,
                        "status": status,
                        "current_stage_id": current_stage_id,
                        "now": datetime.utcnow(),
                    },
                )
                row = await result.fetchone()

        if row:
            logger.info(f"Session {session_id} -> {status}")
        return self._row_to_model(row) if row else None


__all__ = ["ProjectRepository", "ProviderRepository", "SessionRepository"]
