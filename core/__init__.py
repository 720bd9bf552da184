# ============================================================================
# CLAUDE CONTEXT - CORE MODULE
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors, models, and schema utilities
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================

from core.contracts import JobStatus, JobType, InputRuleType, ResourceType, SourceTable
from core.errors import DialecticError
from core.models import (
    GenerationJob,
    InputRule,
    StageRecipe,
    SourceDocument,
)
from core.schema import PydanticToSQL

__all__ = [
    # Enums
    "JobStatus",
    "JobType",
    "InputRuleType",
    "ResourceType",
    "SourceTable",
    # Errors
    "DialecticError",
    # Models
    "GenerationJob",
    "InputRule",
    "StageRecipe",
    "SourceDocument",
    # Schema
    "PydanticToSQL",
]
