# ============================================================================
# STAGE REPOSITORY
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Stage graph, prompts and overlays
# PURPOSE: Database access for stages, transitions, system prompts, overlays
# CREATED: 18 OCT 2026
# ============================================================================
"""
Stage Repository

Reads the process template graph: stages, the transition edge leaving a
stage, the default system prompt of a stage, and the domain overlays of a
prompt.
"""

import logging
from typing import List, Optional

from psycopg import sql
from psycopg.rows import dict_row

from core.models import DialecticStage, DomainOverlay, SystemPrompt
from infrastructure.base_repository import AsyncBaseRepository
from .database import TABLE_OVERLAYS, TABLE_STAGE_TRANSITIONS, TABLE_STAGES, TABLE_SYSTEM_PROMPTS

logger = logging.getLogger(__name__)


class StageRepository(AsyncBaseRepository[DialecticStage]):
    """Repository for stages and their prompt configuration."""

    model = DialecticStage
    table = TABLE_STAGES
    filterable_columns = frozenset({"slug"})

    async def get_by_slug(self, slug: str) -> Optional[DialecticStage]:
        stages = await self.find_by(order_by=(), limit=1, slug=slug)
        return stages[0] if stages else None

    async def get_next_stage(
        self,
        process_template_id: str,
        source_stage_id: str,
    ) -> Optional[DialecticStage]:
        """
        Target stage of the transition leaving ``source_stage_id``.

        Returns None when the source is the last stage of the template.
        """
        with self._error_context("stage transition lookup", source_stage_id):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("""
                        SELECT s.*
                        FROM {transitions} t
                        JOIN {stages} s ON s.id = t.target_stage_id
                        WHERE t.process_template_id = %(template_id)s
                          AND t.source_stage_id = %(source_stage_id)s
                        LIMIT 1
                    """).format(transitions=TABLE_STAGE_TRANSITIONS, stages=TABLE_STAGES),
                    {"template_id": process_template_id, "source_stage_id": source_stage_id},
                )
                row = await result.fetchone()
        return self._row_to_model(row) if row else None

    async def get_system_prompt(self, prompt_id: str) -> Optional[SystemPrompt]:
        with self._error_context("system prompt lookup", prompt_id):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("SELECT * FROM {} WHERE id = %(id)s").format(TABLE_SYSTEM_PROMPTS),
                    {"id": prompt_id},
                )
                row = await result.fetchone()
        return SystemPrompt.model_validate(row) if row else None

    async def list_overlays(self, system_prompt_id: str, domain_id: str) -> List[DomainOverlay]:
        """Active overlays for a (system prompt, domain) pair."""
        with self._error_context("overlay lookup", system_prompt_id):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("""
                        SELECT * FROM {}
                        WHERE system_prompt_id = %(prompt_id)s
                          AND domain_id = %(domain_id)s
                          AND is_active = true
                        ORDER BY id
                    """).format(TABLE_OVERLAYS),
                    {"prompt_id": system_prompt_id, "domain_id": domain_id},
                )
                rows = await result.fetchall()
        return [DomainOverlay.model_validate(row) for row in rows]


__all__ = ["StageRepository"]
