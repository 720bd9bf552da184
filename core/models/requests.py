# ============================================================================
# CLAUDE CONTEXT - SERVICE REQUEST MODELS
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core model - Inputs and outputs of the dialectic services
# PURPOSE: Typed requests shared by the HTTP layer and the services
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: AuthenticatedUser, GenerateContributionsRequest,
#          GenerateContributionsResult, StageResponse,
#          SubmitStageResponsesRequest, SubmitStageResponsesResult
# DEPENDENCIES: pydantic
# ============================================================================
"""
Service Request Models

Required request fields are declared Optional here. The services
validate them in a fixed order and answer with stable messages instead of
a pydantic 422.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from core.models.documents import StageFeedback
from core.models.session import DialecticSession


class AuthenticatedUser(BaseModel):
    """Identity forwarded by the authenticating gateway."""
    id: str


class GenerateContributionsRequest(BaseModel):
    """Ask for one PLAN job per selected model of a session."""

    sessionId: Optional[str] = None
    projectId: Optional[str] = None
    stageSlug: Optional[str] = None
    iterationNumber: Optional[int] = Field(default=None, ge=1)
    walletId: Optional[str] = None
    continueUntilComplete: Optional[bool] = None
    maxRetries: Optional[int] = Field(default=None, ge=0)
    is_test_job: bool = False


class GenerateContributionsResult(BaseModel):
    job_ids: List[str]


class StageResponse(BaseModel):
    """User response to one contribution."""
    originalContributionId: Optional[str] = None
    responseText: Optional[str] = None


class SubmitStageResponsesRequest(BaseModel):
    """Submit the user's responses for a stage and advance the session."""

    sessionId: Optional[str] = None
    projectId: Optional[str] = None
    stageSlug: Optional[str] = None
    currentIterationNumber: Optional[int] = Field(default=None, ge=1)
    responses: List[StageResponse] = Field(default_factory=list)


class SubmitStageResponsesResult(BaseModel):
    updated_session: DialecticSession
    next_stage_seed_prompt_path: Optional[str] = None
    feedback_records: List[StageFeedback] = Field(default_factory=list)


__all__ = [
    "AuthenticatedUser",
    "GenerateContributionsRequest",
    "GenerateContributionsResult",
    "StageResponse",
    "SubmitStageResponsesRequest",
    "SubmitStageResponsesResult",
]
