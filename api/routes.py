# ============================================================================
# API ROUTES
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - FastAPI route definitions
# PURPOSE: HTTP endpoints for job planning, input resolution, stage submission
# CREATED: 18 OCT 2026
# ============================================================================
"""
API Routes

FastAPI routes for the dialectic orchestrator.

Identity is established upstream: the gateway forwards the authenticated
user id in ``X-User-Id`` and the caller's credential in
``Authorization: Bearer ...``. Every DialecticError is answered with its
own status and ``to_dict()`` body.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Header, HTTPException
from fastapi.responses import JSONResponse

from core.errors import DialecticError
from core.models import AuthenticatedUser
from .schemas import (
    ErrorResponse,
    GenerateContributionsBody,
    GenerateContributionsResponse,
    SourceDocumentsRequest,
    SourceDocumentsResponse,
    StageRecipeResponse,
    SubmitStageResponsesBody,
    SubmitStageResponsesResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================
# These will be set by the main app at startup

_job_planner = None
_source_resolver = None
_stage_transitioner = None
_recipe_repo = None


def set_services(job_planner, source_resolver, stage_transitioner, recipe_repo):
    """Set service instances for dependency injection."""
    global _job_planner, _source_resolver, _stage_transitioner, _recipe_repo
    _job_planner = job_planner
    _source_resolver = source_resolver
    _stage_transitioner = stage_transitioner
    _recipe_repo = recipe_repo


def get_job_planner():
    if _job_planner is None:
        raise HTTPException(500, "Services not initialized")
    return _job_planner


def get_source_resolver():
    if _source_resolver is None:
        raise HTTPException(500, "Services not initialized")
    return _source_resolver


def get_stage_transitioner():
    if _stage_transitioner is None:
        raise HTTPException(500, "Services not initialized")
    return _stage_transitioner


def get_recipe_repo():
    if _recipe_repo is None:
        raise HTTPException(500, "Services not initialized")
    return _recipe_repo


# ============================================================================
# HELPERS
# ============================================================================

def _user_from_header(user_id: Optional[str]) -> Optional[AuthenticatedUser]:
    if not user_id or not user_id.strip():
        return None
    return AuthenticatedUser(id=user_id.strip())


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _error_response(error: DialecticError) -> JSONResponse:
    if error.status >= 500:
        logger.error(f"{error.code or 'ERROR'}: {error.message}")
    else:
        logger.info(f"Rejected with {error.status}: {error.message}")
    return JSONResponse(status_code=error.status, content=error.to_dict())


_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    401: {"model": ErrorResponse, "description": "Caller not identified"},
    404: {"model": ErrorResponse, "description": "Referenced row not found"},
    500: {"model": ErrorResponse, "description": "Configuration or store failure"},
}


# ============================================================================
# CONTRIBUTIONS
# ============================================================================

@router.post(
    "/dialectic/contributions/generate",
    response_model=GenerateContributionsResponse,
    status_code=201,
    tags=["Dialectic"],
    responses={201: {"description": "Jobs created"}, **_ERROR_RESPONSES},
)
async def generate_contributions(
    request: GenerateContributionsBody,
    x_user_id: Optional[str] = Header(default=None),
    authorization: Optional[str] = Header(default=None),
):
    """
    Create one PLAN job per selected model of the session.

    Returns the job ids in model selection order. Jobs with
    ``is_test_job`` set are created but never handed to the worker.
    """
    planner = get_job_planner()
    try:
        result = await planner.generate_contributions(
            request,
            _user_from_header(x_user_id),
            _bearer_token(authorization),
        )
    except DialecticError as e:
        return _error_response(e)
    return GenerateContributionsResponse(job_ids=result.job_ids)


# ============================================================================
# STAGES
# ============================================================================

@router.post(
    "/dialectic/stages/submit-responses",
    response_model=SubmitStageResponsesResponse,
    tags=["Dialectic"],
    responses={403: {"model": ErrorResponse, "description": "Not the project owner"}, **_ERROR_RESPONSES},
)
async def submit_stage_responses(
    request: SubmitStageResponsesBody,
    x_user_id: Optional[str] = Header(default=None),
):
    """
    Store the user's responses for the current stage and advance the session.
    """
    transitioner = get_stage_transitioner()
    try:
        result = await transitioner.submit_stage_responses(request, _user_from_header(x_user_id))
    except DialecticError as e:
        return _error_response(e)
    return SubmitStageResponsesResponse(
        updated_session=result.updated_session,
        next_stage_seed_prompt_path=result.next_stage_seed_prompt_path,
        feedback_records=result.feedback_records,
    )


@router.get(
    "/dialectic/stages/{stage_slug}/recipe",
    response_model=StageRecipeResponse,
    tags=["Dialectic"],
    responses={404: {"model": ErrorResponse}},
)
async def get_stage_recipe(stage_slug: str):
    """Active recipe of a stage with its steps in execution order."""
    recipe_repo = get_recipe_repo()
    try:
        recipe = await recipe_repo.get_stage_recipe(stage_slug)
    except DialecticError as e:
        return _error_response(e)
    if recipe is None:
        return _error_response(DialecticError(
            f"Could not find recipe for stage {stage_slug}.",
            status=404,
            code="RECIPE_NOT_FOUND",
        ))
    return StageRecipeResponse(recipe=recipe)


# ============================================================================
# SOURCE DOCUMENTS
# ============================================================================

@router.post(
    "/dialectic/jobs/{job_id}/source-documents",
    response_model=SourceDocumentsResponse,
    tags=["Dialectic"],
    responses=_ERROR_RESPONSES,
)
async def find_source_documents(job_id: str, request: SourceDocumentsRequest):
    """
    Resolve the input rules of a recipe step for a stored job.

    Returns one document per resolved rule, in rule order. Optional rules
    with no match are omitted.
    """
    resolver = get_source_resolver()
    try:
        documents = await resolver.find_for_job_id(job_id, request.rules, include_content=request.include_content)
    except DialecticError as e:
        return _error_response(e)
    return SourceDocumentsResponse(job_id=job_id, documents=documents, count=len(documents))
