# ============================================================================
# JOB PLANNER
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Contribution generation entry point
# PURPOSE: Turn "generate contributions for this stage" into PLAN jobs
# CREATED: 18 OCT 2026
# ============================================================================
"""
Job Planner

Creates one pending PLAN job per selected model of a session:
- Validate the request in a fixed order (nothing is written on failure)
- Confirm the stage has a recipe
- Resolve every model's provider before the first insert
- Insert jobs one by one, publishing each committed job to the dispatcher

Duplicate calls create duplicate jobs. There is no idempotency key.
"""

from typing import Dict, List, Optional

from psycopg_pool import AsyncConnectionPool

from core.config import PlannerDefaults, get_defaults
from core.errors import (
    DialecticConfigurationError,
    DialecticError,
    DialecticIdentityError,
    DialecticNotFoundError,
    DialecticValidationError,
)
from core.logging import get_logger, log_context, log_checkpoint, ComponentType
from core.models import (
    AiProvider,
    AuthenticatedUser,
    DialecticPlanJobPayload,
    DialecticSession,
    GenerateContributionsRequest,
    GenerateContributionsResult,
    GenerationJob,
)
from messaging import JobInsertDispatcher
from repositories import JobRepository, ProviderRepository, RecipeRepository, SessionRepository

logger = get_logger(__name__, component=ComponentType.PLANNER)


class JobPlanner:
    """Service that plans generation jobs for a stage."""

    def __init__(
        self,
        pool: AsyncConnectionPool,
        dispatcher: Optional[JobInsertDispatcher] = None,
        defaults: Optional[PlannerDefaults] = None,
    ):
        """
        Initialize the planner.

        Args:
            pool: Database connection pool
            dispatcher: Post-insert hook; a dispatcher with no listeners if omitted
            defaults: Planner defaults (from environment if omitted)
        """
        self.pool = pool
        self.dispatcher = dispatcher or JobInsertDispatcher()
        self.defaults = defaults or get_defaults().planner
        self.session_repo = SessionRepository(pool)
        self.provider_repo = ProviderRepository(pool)
        self.recipe_repo = RecipeRepository(pool)
        self.job_repo = JobRepository(pool)

    async def generate_contributions(
        self,
        request: GenerateContributionsRequest,
        user: Optional[AuthenticatedUser],
        auth_token: Optional[str],
    ) -> GenerateContributionsResult:
        """
        Create one PLAN job per selected model.

        Args:
            request: Session, stage, iteration and wallet to generate for
            user: Authenticated caller, or None
            auth_token: Bearer credential forwarded to the worker as user_jwt

        Returns:
            Ids of the created jobs, in model selection order

        Raises:
            DialecticError: validation (400/401/404), configuration (500)
                or insert failure (500)
        """
        with log_context(session_id=request.sessionId, stage_slug=request.stageSlug, operation="generate_contributions"):
            session = await self._validate(request, user, auth_token)

            recipe = await self.recipe_repo.get_stage_recipe(request.stageSlug)
            if recipe is None:
                logger.error(f"No recipe for stage {request.stageSlug}")
                raise DialecticConfigurationError(f"Could not find recipe for stage {request.stageSlug}.")

            providers = await self._resolve_providers(session.selected_model_ids)

            job_ids: List[str] = []
            for model_id in session.selected_model_ids:
                payload = self._build_payload(request, session, providers[model_id], auth_token)
                job = GenerationJob.new_plan(payload, user_id=user.id, is_test_job=request.is_test_job)

                with log_context(model_id=model_id):
                    try:
                        created = await self.job_repo.create(job)
                    except DialecticError as e:
                        logger.error(f"Job insert failed for model {model_id}: {e.message}")
                        raise DialecticError(
                            f"Failed to create job for model {model_id}: {e.message}",
                            status=500,
                            details=e.details,
                        ) from e

                    job_ids.append(created.id)
                    await self.dispatcher.publish(created)

            log_checkpoint(
                "jobs_planned",
                {"job_count": len(job_ids), "steps": len(recipe.active_steps), "is_test_job": request.is_test_job},
            )
            logger.info(f"Planned {len(job_ids)} jobs for session {session.id} stage {request.stageSlug}")
            return GenerateContributionsResult(job_ids=job_ids)

    async def _validate(
        self,
        request: GenerateContributionsRequest,
        user: Optional[AuthenticatedUser],
        auth_token: Optional[str],
    ) -> DialecticSession:
        if not request.stageSlug:
            raise self._invalid("stageSlug is required in the payload.")
        if not request.sessionId:
            raise self._invalid("sessionId is required in the payload.")
        if user is None or not user.id:
            logger.warning("Job creation rejected: no identity")
            raise DialecticIdentityError("User could not be identified for job creation.")
        if not auth_token:
            raise self._invalid("authToken is required to create generation jobs.")

        session = await self.session_repo.get(request.sessionId)
        if session is None:
            logger.warning(f"Session {request.sessionId} not found")
            raise DialecticNotFoundError(f"Session {request.sessionId} not found.")
        if not session.selected_model_ids:
            raise self._invalid("The session has no selected models. Please select at least one model.")

        if not request.walletId:
            raise self._invalid("walletId is required to create generation jobs.")
        return session

    @staticmethod
    def _invalid(message: str) -> DialecticValidationError:
        logger.warning(f"Job creation rejected: {message}")
        return DialecticValidationError(message)

    async def _resolve_providers(self, model_ids: List[str]) -> Dict[str, AiProvider]:
        """Provider of every model; one missing provider aborts the whole batch."""
        providers = await self.provider_repo.get_many(model_ids)
        for model_id in model_ids:
            if model_id not in providers:
                logger.error(f"No provider for model {model_id}")
                raise DialecticConfigurationError(f"Could not resolve provider details for model {model_id}.")
        return providers

    def _build_payload(
        self,
        request: GenerateContributionsRequest,
        session: DialecticSession,
        provider: AiProvider,
        auth_token: str,
    ) -> DialecticPlanJobPayload:
        continue_until_complete = request.continueUntilComplete
        if continue_until_complete is None:
            continue_until_complete = self.defaults.continue_until_complete
        max_retries = request.maxRetries if request.maxRetries is not None else self.defaults.max_retries

        return DialecticPlanJobPayload(
            model_id=provider.id,
            model_slug=provider.api_identifier,
            projectId=request.projectId or session.project_id,
            sessionId=session.id,
            stageSlug=request.stageSlug,
            iterationNumber=request.iterationNumber or session.iteration_count,
            walletId=request.walletId,
            continueUntilComplete=continue_until_complete,
            maxRetries=max_retries,
            continuation_count=0,
            user_jwt=auth_token,
        )


__all__ = ["JobPlanner"]
