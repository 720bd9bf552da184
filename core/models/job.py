# ============================================================================
# CLAUDE CONTEXT - GENERATION JOB MODEL
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core model - Generation job and its typed payloads
# PURPOSE: Durable unit of planned work (PLAN / EXECUTE)
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: GenerationJob, DialecticPlanJobPayload, DialecticExecuteJobPayload,
#          JobPayload
# DEPENDENCIES: pydantic
# ============================================================================
"""
Generation Job Model

A GenerationJob is one unit of planned work for one model in one stage.

The payload is a closed tagged union on ``job_type``: internal code only
ever sees a DialecticPlanJobPayload or a DialecticExecuteJobPayload, never
a free-form dict. Payloads forbid unknown keys, so ``is_test_job`` can only
live on the row itself where the post-insert dispatcher reads it.
"""

import uuid
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, computed_field, model_validator

from core.contracts import JOB_STATUS_TRANSITIONS, JobStatus, JobType


# ============================================================================
# PAYLOADS
# ============================================================================

class DialecticJobPayloadBase(BaseModel):
    """Fields every generation job payload carries."""

    model_config = {"extra": "forbid"}

    model_id: str
    model_slug: str
    projectId: str
    sessionId: str
    stageSlug: str
    iterationNumber: int = Field(..., ge=1)
    walletId: str
    continueUntilComplete: bool = False
    maxRetries: int = Field(default=3, ge=0)
    continuation_count: int = Field(default=0, ge=0)
    user_jwt: str


class DialecticPlanJobPayload(DialecticJobPayloadBase):
    """Payload of a PLAN job created by the planner, one per selected model."""

    job_type: Literal["PLAN"] = "PLAN"


class DialecticExecuteJobPayload(DialecticJobPayloadBase):
    """
    Payload of an EXECUTE job.

    EXECUTE jobs are spawned by the worker from a PLAN job; this core only
    reads them (the resolver takes its scoping from here).
    """

    job_type: Literal["EXECUTE"] = "EXECUTE"

    step_key: str
    step_slug: Optional[str] = None
    prompt_template_id: Optional[str] = None
    output_type: str
    document_key: Optional[str] = None
    sourceContributionId: Optional[str] = None
    target_contribution_id: Optional[str] = None
    inputs: Dict[str, Any] = Field(default_factory=dict)


JobPayload = Union[DialecticPlanJobPayload, DialecticExecuteJobPayload]


# ============================================================================
# JOB
# ============================================================================

class GenerationJob(BaseModel):
    """
    A generation job row.

    Maps to: dialectic.generation_jobs table

    Lifecycle (worker-owned):
        1. Created with status=PENDING by the planner (PLAN) or worker (EXECUTE)
        2. RUNNING once picked up by the worker
        3. COMPLETED / FAILED, with RETRYING between attempts
    """

    # =========================================================================
    # SQL DDL METADATA (Used by PydanticToSQL generator)
    # =========================================================================
    __sql_table__: ClassVar[str] = "generation_jobs"
    __sql_schema__: ClassVar[str] = "dialectic"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_foreign_keys__: ClassVar[Dict[str, str]] = {}
    __sql_indexes__: ClassVar[List[tuple]] = [
        ("idx_generation_jobs_session", ["session_id", "stage_slug", "iteration_number"]),
        ("idx_generation_jobs_status", ["status"]),
        ("idx_generation_jobs_parent", ["parent_job_id"]),
        ("idx_generation_jobs_created", ["created_at"]),
    ]

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), max_length=64)
    session_id: str = Field(..., max_length=64)
    user_id: str = Field(..., max_length=64)
    stage_slug: str = Field(..., max_length=64)
    iteration_number: int = Field(..., ge=1)

    job_type: JobType
    status: JobStatus = Field(default=JobStatus.PENDING)
    payload: JobPayload = Field(..., discriminator="job_type")

    # Read by the post-insert dispatcher; never part of payload
    is_test_job: bool = False

    parent_job_id: Optional[str] = Field(default=None, max_length=64)
    prerequisite_job_id: Optional[str] = Field(default=None, max_length=64)

    attempt_count: int = Field(default=0, ge=0)
    max_retries: int = Field(default=3, ge=0)

    results: Optional[Dict[str, Any]] = None
    error_details: Optional[Dict[str, Any]] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _job_type_matches_payload(self) -> "GenerationJob":
        if self.payload.job_type != self.job_type.value:
            raise ValueError(
                f"job_type {self.job_type.value} does not match payload job_type {self.payload.job_type}"
            )
        return self

    @computed_field
    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal()

    @classmethod
    def new_plan(
        cls,
        payload: DialecticPlanJobPayload,
        user_id: str,
        is_test_job: bool = False,
    ) -> "GenerationJob":
        """Build a pending PLAN job from its payload."""
        return cls(
            session_id=payload.sessionId,
            user_id=user_id,
            stage_slug=payload.stageSlug,
            iteration_number=payload.iterationNumber,
            job_type=JobType.PLAN,
            status=JobStatus.PENDING,
            payload=payload,
            is_test_job=is_test_job,
            max_retries=payload.maxRetries,
        )

    def can_transition_to(self, new_status: JobStatus) -> bool:
        """Validate a worker-side status transition."""
        if self.status == new_status:
            return True
        return new_status in JOB_STATUS_TRANSITIONS.get(self.status, set())

    def to_row(self) -> Dict[str, Any]:
        """
        Column values for INSERT.

        ``is_test_job`` is omitted when false so the column default applies.
        """
        row: Dict[str, Any] = {
            "id": self.id,
            "session_id": self.session_id,
            "user_id": self.user_id,
            "stage_slug": self.stage_slug,
            "iteration_number": self.iteration_number,
            "job_type": self.job_type.value,
            "status": self.status.value,
            "payload": self.payload.model_dump(mode="json"),
            "parent_job_id": self.parent_job_id,
            "prerequisite_job_id": self.prerequisite_job_id,
            "attempt_count": self.attempt_count,
            "max_retries": self.max_retries,
            "created_at": self.created_at,
        }
        if self.is_test_job:
            row["is_test_job"] = True
        return row


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "DialecticJobPayloadBase",
    "DialecticPlanJobPayload",
    "DialecticExecuteJobPayload",
    "JobPayload",
    "GenerationJob",
]
