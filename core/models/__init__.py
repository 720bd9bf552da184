# ============================================================================
# CLAUDE CONTEXT - MODELS MODULE
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

All Pydantic models for the dialectic orchestration core.
Table models define SQL metadata via __sql_* ClassVar attributes for DDL
generation (see core.schema.PydanticToSQL).
"""

from core.models.job import (
    GenerationJob,
    JobPayload,
    DialecticPlanJobPayload,
    DialecticExecuteJobPayload,
)
from core.models.recipe import InputRule, RecipeStep, RecipeInstance, StageRecipe
from core.models.session import (
    DialecticProject,
    DialecticSession,
    DialecticStage,
    StageTransition,
    SystemPrompt,
    DomainOverlay,
    AiProvider,
)
from core.models.documents import (
    ProjectResource,
    Contribution,
    StageFeedback,
    SourceDocument,
)
from core.models.trigger_log import TriggerLog, TriggerLogMessage
from core.models.requests import (
    AuthenticatedUser,
    GenerateContributionsRequest,
    GenerateContributionsResult,
    StageResponse,
    SubmitStageResponsesRequest,
    SubmitStageResponsesResult,
)

# Every model that maps to a table, in dependency order
TABLE_MODELS = [
    DialecticProject,
    DialecticSession,
    DialecticStage,
    StageTransition,
    SystemPrompt,
    DomainOverlay,
    AiProvider,
    RecipeInstance,
    RecipeStep,
    GenerationJob,
    ProjectResource,
    Contribution,
    StageFeedback,
    TriggerLog,
]

__all__ = [
    # Jobs
    "GenerationJob",
    "JobPayload",
    "DialecticPlanJobPayload",
    "DialecticExecuteJobPayload",
    # Recipes
    "InputRule",
    "RecipeStep",
    "RecipeInstance",
    "StageRecipe",
    # Session graph
    "DialecticProject",
    "DialecticSession",
    "DialecticStage",
    "StageTransition",
    "SystemPrompt",
    "DomainOverlay",
    "AiProvider",
    # Documents
    "ProjectResource",
    "Contribution",
    "StageFeedback",
    "SourceDocument",
    # Dispatch
    "TriggerLog",
    "TriggerLogMessage",
    # Service requests
    "AuthenticatedUser",
    "GenerateContributionsRequest",
    "GenerateContributionsResult",
    "StageResponse",
    "SubmitStageResponsesRequest",
    "SubmitStageResponsesResult",
    "TABLE_MODELS",
]
