# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Business logic layer
# PURPOSE: Job planning, input resolution and stage transitions
# CREATED: 18 OCT 2026
# ============================================================================
"""
Services Module

Business logic for dialectic orchestration.
Services coordinate between repositories, content storage and messaging.

Usage:
    from services import JobPlanner

    planner = JobPlanner(pool, dispatcher)
    result = await planner.generate_contributions(request, user, auth_token)
"""

from .job_planner import JobPlanner
from .prompt_renderer import PromptRenderer, merge_overlay_values
from .source_documents import SourceDocumentResolver
from .stage_transitioner import StageTransitioner

__all__ = [
    "JobPlanner",
    "PromptRenderer",
    "merge_overlay_values",
    "SourceDocumentResolver",
    "StageTransitioner",
]
