# ============================================================================
# TRIGGER LOG REPOSITORY
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Dispatcher decision log
# PURPOSE: Database access for dialectic_trigger_logs table
# CREATED: 18 OCT 2026
# ============================================================================
"""
Trigger Log Repository

Append-only record of what the post-insert dispatcher did for each job.
"""

import logging
from typing import List

from core.models import TriggerLog
from infrastructure.base_repository import AsyncBaseRepository
from .database import TABLE_TRIGGER_LOGS

logger = logging.getLogger(__name__)


class TriggerLogRepository(AsyncBaseRepository[TriggerLog]):
    model = TriggerLog
    table = TABLE_TRIGGER_LOGS
    filterable_columns = frozenset({"job_id", "log_message"})

    async def record(self, log: TriggerLog) -> TriggerLog:
        # log_id is SERIAL
        return await self.insert(log)

    async def list_for_job(self, job_id: str) -> List[TriggerLog]:
        return await self.find_by(order_by=(("created_at", "ASC"),), job_id=job_id)


__all__ = ["TriggerLogRepository"]
