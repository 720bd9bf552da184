# ============================================================================
# API SCHEMAS
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Request/Response schemas
# PURPOSE: Pydantic models for API validation
# CREATED: 18 OCT 2026
# ============================================================================
"""
API Schemas

Request and response models for the API. The service request models
(GenerateContributionsRequest, SubmitStageResponsesRequest) are used as
request bodies directly.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field

from core.models import (
    DialecticSession,
    GenerateContributionsRequest,
    InputRule,
    SourceDocument,
    StageFeedback,
    StageRecipe,
    SubmitStageResponsesRequest,
)


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class GenerateContributionsBody(GenerateContributionsRequest):
    """Request to create PLAN jobs for every selected model of a session."""

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "sessionId": "sess-1",
                    "projectId": "proj-1",
                    "stageSlug": "thesis",
                    "iterationNumber": 1,
                    "walletId": "wallet-1",
                }
            ]
        }
    }


class SubmitStageResponsesBody(SubmitStageResponsesRequest):
    """Request to submit responses for the session's current stage."""


class SourceDocumentsRequest(BaseModel):
    """Input rules of a recipe step, resolved for a stored job."""
    rules: List[InputRule] = Field(default_factory=list)
    include_content: bool = Field(
        default=False,
        description="Download each document's content into the response",
    )


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class GenerateContributionsResponse(BaseModel):
    job_ids: List[str]


class SubmitStageResponsesResponse(BaseModel):
    updated_session: DialecticSession
    next_stage_seed_prompt_path: Optional[str] = None
    feedback_records: List[StageFeedback] = Field(default_factory=list)


class SourceDocumentsResponse(BaseModel):
    job_id: str
    documents: List[SourceDocument]
    count: int


class StageRecipeResponse(BaseModel):
    recipe: StageRecipe


class ErrorResponse(BaseModel):
    """Error response."""
    message: str
    status: int
    code: Optional[str] = None
    details: Optional[Any] = None
