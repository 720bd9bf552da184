# ============================================================================
# CLAUDE CONTEXT - TRIGGER LOG MODEL
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core model - Post-insert dispatch decisions
# PURPOSE: Record what the worker dispatcher did for each inserted job
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: TriggerLog, TriggerLogMessage
# DEPENDENCIES: pydantic
# ============================================================================
"""
Trigger Log Model

One row per decision the post-insert dispatcher takes for a job: skipped
(test job), preparing the HTTP call, after the POST, or failed. Operators
and tests read these rows to verify the test-job isolation contract.
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field


class TriggerLogMessage:
    """Stable log_message values."""
    SKIPPED_TEST_JOB = "invoke_worker: skipping HTTP worker invocation for test job"
    PREPARING = "invoke_worker: preparing HTTP call"
    AFTER_POST = "invoke_worker: after_post"
    FAILED = "invoke_worker: HTTP call failed"


class TriggerLog(BaseModel):
    """
    Maps to: dialectic.dialectic_trigger_logs table
    """

    __sql_table__: ClassVar[str] = "dialectic_trigger_logs"
    __sql_schema__: ClassVar[str] = "dialectic"
    __sql_primary_key__: ClassVar[List[str]] = ["log_id"]
    __sql_serial_columns__: ClassVar[List[str]] = ["log_id"]
    __sql_indexes__: ClassVar[List[tuple]] = [
        ("idx_trigger_logs_job", ["job_id", "created_at"]),
    ]

    log_id: Optional[int] = Field(default=None, description="SERIAL primary key")
    job_id: str = Field(..., max_length=64)
    log_message: str = Field(..., max_length=256)
    data: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @classmethod
    def for_job(
        cls,
        job_id: str,
        log_message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> "TriggerLog":
        return cls(job_id=job_id, log_message=log_message, data=data or {})


__all__ = ["TriggerLog", "TriggerLogMessage"]
