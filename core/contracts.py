# ============================================================================
# CLAUDE CONTEXT - BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Foundation - Core enums and base contracts
# PURPOSE: Define status and type enums shared by the dialectic core
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: JobStatus, JobType, InputRuleType, ResourceType, SourceTable,
#          SessionStatus
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the dialectic orchestration core.

These enums cross every boundary:
- SQL (PostgreSQL enum types generated by PydanticToSQL)
- HTTP (API request/response bodies)
- Python (internal processing)
"""

from enum import Enum
from typing import Dict, Set


# ============================================================================
# JOB ENUMS
# ============================================================================

class JobStatus(str, Enum):
    """
    Generation job lifecycle states.

    The worker owns every transition; this core only creates PENDING jobs.

    State transitions:
        PENDING -> RUNNING -> COMPLETED
                           -> FAILED
                           -> RETRYING -> RUNNING
                                       -> FAILED
    """
    PENDING = "pending"
    RUNNING = "running"
    RETRYING = "retrying"
    COMPLETED = "completed"
    FAILED = "failed"

    def is_terminal(self) -> bool:
        """Check if this is a terminal state (no further transitions)."""
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


JOB_STATUS_TRANSITIONS: Dict[JobStatus, Set[JobStatus]] = {
    JobStatus.PENDING: {JobStatus.RUNNING},
    JobStatus.RUNNING: {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.RETRYING},
    JobStatus.RETRYING: {JobStatus.RUNNING, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


class JobType(str, Enum):
    """
    Job kinds.

    PLAN jobs fan out work for one model; EXECUTE jobs perform one recipe step.
    """
    PLAN = "PLAN"
    EXECUTE = "EXECUTE"


# ============================================================================
# RECIPE / DOCUMENT ENUMS
# ============================================================================

class InputRuleType(str, Enum):
    """Kinds of prior artifact a recipe step can ask for."""
    SEED_PROMPT = "seed_prompt"
    HEADER_CONTEXT = "header_context"
    DOCUMENT = "document"
    PROJECT_RESOURCE = "project_resource"
    CONTRIBUTION = "contribution"
    FEEDBACK = "feedback"


class ResourceType(str, Enum):
    """resource_type column of the project resource store."""
    SEED_PROMPT = "seed_prompt"
    PROJECT_RESOURCE = "project_resource"
    RENDERED_DOCUMENT = "rendered_document"
    INITIAL_USER_PROMPT = "initial_user_prompt"
    USER_FEEDBACK = "user_feedback"


class SourceTable(str, Enum):
    """Store a resolved source document came from."""
    PROJECT_RESOURCE = "project_resource"
    CONTRIBUTION = "contribution"
    FEEDBACK = "feedback"


# ============================================================================
# SESSION STATUS
# ============================================================================

class SessionStatus:
    """
    Session status strings.

    Session statuses are open-ended (one per stage slug), so they are
    built rather than enumerated.
    """
    ITERATION_COMPLETE_PENDING_REVIEW = "iteration_complete_pending_review"

    @staticmethod
    def pending(stage_slug: str) -> str:
        return f"pending_{stage_slug}"


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "JobStatus",
    "JOB_STATUS_TRANSITIONS",
    "JobType",
    "InputRuleType",
    "ResourceType",
    "SourceTable",
    "SessionStatus",
]
