# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - FastAPI routes
# PURPOSE: HTTP API for the dialectic orchestrator
# CREATED: 18 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the dialectic orchestrator.
"""

from .routes import router, set_services
from .schemas import (
    GenerateContributionsBody,
    GenerateContributionsResponse,
    SourceDocumentsRequest,
    SubmitStageResponsesBody,
    ErrorResponse,
)

__all__ = [
    "router",
    "set_services",
    "GenerateContributionsBody",
    "GenerateContributionsResponse",
    "SourceDocumentsRequest",
    "SubmitStageResponsesBody",
    "ErrorResponse",
]
