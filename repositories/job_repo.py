# ============================================================================
# GENERATION JOB REPOSITORY
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Job inserts and reads
# PURPOSE: Database access for generation_jobs table
# CREATED: 18 OCT 2026
# ============================================================================
"""
Generation Job Repository

Single-row inserts and reads for generation jobs. Payloads are validated
into their typed variant when rows are read back.
"""

import logging

from core.models import GenerationJob
from infrastructure.base_repository import AsyncBaseRepository
from .database import TABLE_JOBS

logger = logging.getLogger(__name__)


class JobRepository(AsyncBaseRepository[GenerationJob]):
    """Repository for GenerationJob entities."""

    model = GenerationJob
    table = TABLE_JOBS
    filterable_columns = frozenset({
        "session_id", "stage_slug", "iteration_number", "job_type", "status", "parent_job_id",
    })

    async def create(self, job: GenerationJob) -> GenerationJob:
        """
        Insert one job row.

        Only the columns in ``job.to_row()`` are written, so a non-test job
        leaves ``is_test_job`` to the column default.

        Raises:
            DialecticStoreError: insert failed (driver error text in details)
        """
        stored = await self._insert_row(job.to_row(), job.id)
        created = self._row_to_model(stored)
        logger.info(
            f"Created {created.job_type.value} job {created.id} for session {created.session_id} "
            f"stage {created.stage_slug} (test={created.is_test_job})"
        )
        return created


__all__ = ["JobRepository"]
