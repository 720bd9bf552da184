# ============================================================================
# RECIPE REPOSITORY
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Stage recipe lookup
# PURPOSE: Read a stage's active recipe instance and its ordered steps
# CREATED: 18 OCT 2026
# ============================================================================
"""
Recipe Repository

``get_stage_recipe`` resolves stage slug -> stage row -> active recipe
instance -> steps ordered by execution_order.
"""

import logging
from typing import Optional

from psycopg import sql
from psycopg.rows import dict_row

from core.models import RecipeInstance, RecipeStep, StageRecipe
from infrastructure.base_repository import AsyncBaseRepository
from .database import TABLE_RECIPE_INSTANCES, TABLE_RECIPE_STEPS, TABLE_STAGES

logger = logging.getLogger(__name__)


class RecipeRepository(AsyncBaseRepository[RecipeStep]):
    """Repository for recipe instances and steps."""

    model = RecipeStep
    table = TABLE_RECIPE_STEPS
    filterable_columns = frozenset({"instance_id", "step_key", "job_type"})

    async def get_stage_recipe(self, stage_slug: str) -> Optional[StageRecipe]:
        """
        Stage recipe for a stage slug.

        Returns None when the stage does not exist or has no active instance.
        """
        with self._error_context("recipe lookup", stage_slug):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row

                result = await conn.execute(
                    sql.SQL("""
                        SELECT i.*, s.slug AS stage_slug
                        FROM {stages} s
                        JOIN {instances} i ON i.id = s.active_recipe_instance_id
                        WHERE s.slug = %(slug)s
                    """).format(stages=TABLE_STAGES, instances=TABLE_RECIPE_INSTANCES),
                    {"slug": stage_slug},
                )
                instance_row = await result.fetchone()
                if not instance_row:
                    logger.warning(f"No active recipe instance for stage {stage_slug}")
                    return None

                result = await conn.execute(
                    sql.SQL("""
                        SELECT * FROM {}
                        WHERE instance_id = %(instance_id)s
                        ORDER BY execution_order ASC
                    """).format(TABLE_RECIPE_STEPS),
                    {"instance_id": instance_row["id"]},
                )
                step_rows = await result.fetchall()

        instance_row.pop("stage_slug", None)
        instance = RecipeInstance.model_validate(instance_row)
        return StageRecipe(
            stage_id=instance.stage_id,
            stage_slug=stage_slug,
            instance=instance,
            steps=[RecipeStep.model_validate(row) for row in step_rows],
        )


__all__ = ["RecipeRepository"]
