# ============================================================================
# STAGE TRANSITIONER
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Stage completion and session advance
# PURPOSE: Record user responses and move a session to its next stage
# CREATED: 18 OCT 2026
# ============================================================================
"""
Stage Transitioner

Handles "submit my responses for this stage":

Phase A (reads only, fail fast):
    - Validate the request and the caller
    - Load session, project, current stage; check slug and ownership
    - Check every response targets a contribution of this session
    - Find the next stage; when there is one, load its system prompt and
      overlays and render the seed prompt completely

Phase B (writes, only after phase A succeeded):
    - Insert one feedback row per response
    - Upload the consolidated feedback markdown
    - Upload the next stage's seed prompt and register it as a resource
    - Advance the session (or mark the iteration complete)

A stage with a broken prompt configuration therefore never leaves feedback
rows or a half-advanced session behind.
"""

import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional

from psycopg_pool import AsyncConnectionPool

from core.config import StorageDefaults, get_defaults
from core.contracts import ResourceType, SessionStatus
from core.errors import (
    DialecticConfigurationError,
    DialecticError,
    DialecticForbiddenError,
    DialecticIdentityError,
    DialecticNotFoundError,
    DialecticStoreError,
    DialecticValidationError,
)
from core.logging import get_logger, log_context, log_checkpoint, ComponentType
from core.models import (
    AuthenticatedUser,
    Contribution,
    DialecticProject,
    DialecticSession,
    DialecticStage,
    ProjectResource,
    StageFeedback,
    SubmitStageResponsesRequest,
    SubmitStageResponsesResult,
)
from core.paths import (
    SEED_PROMPT_FILE_NAME,
    feedback_file_name,
    feedback_path,
    parse_file_name,
    seed_prompt_path,
    stage_directory,
)
from infrastructure.storage import ContentStorage
from repositories import (
    ContributionRepository,
    FeedbackRepository,
    ProjectRepository,
    ResourceRepository,
    SessionRepository,
    StageRepository,
)
from .prompt_renderer import PromptRenderer, merge_overlay_values

logger = get_logger(__name__, component=ComponentType.TRANSITIONER)


@dataclass
class _NextStagePlan:
    """Everything phase B needs to seed the next stage."""
    stage: DialecticStage
    seed_prompt: str


@dataclass
class _TransitionPlan:
    session: DialecticSession
    project: DialecticProject
    stage: DialecticStage
    iteration_number: int
    feedback_markdown: str
    next_stage: Optional[_NextStagePlan] = None


class StageTransitioner:
    """Service that completes a stage and advances its session."""

    def __init__(
        self,
        pool: AsyncConnectionPool,
        storage: ContentStorage,
        renderer: Optional[PromptRenderer] = None,
        storage_defaults: Optional[StorageDefaults] = None,
    ):
        """
        Initialize the transitioner.

        Args:
            pool: Database connection pool
            storage: Content storage for feedback, contributions and seed prompts
            renderer: Seed prompt renderer
            storage_defaults: Content type settings (from environment if omitted)
        """
        self.pool = pool
        self.storage = storage
        self.renderer = renderer or PromptRenderer()
        self.storage_defaults = storage_defaults or get_defaults().storage
        self.session_repo = SessionRepository(pool)
        self.project_repo = ProjectRepository(pool)
        self.stage_repo = StageRepository(pool)
        self.contribution_repo = ContributionRepository(pool)
        self.feedback_repo = FeedbackRepository(pool)
        self.resource_repo = ResourceRepository(pool)

    async def submit_stage_responses(
        self,
        request: SubmitStageResponsesRequest,
        user: Optional[AuthenticatedUser],
    ) -> SubmitStageResponsesResult:
        """
        Store the user's responses for a stage and advance the session.

        Returns:
            Updated session, seed prompt path of the next stage (None at the
            end of the template) and the feedback rows written

        Raises:
            DialecticError: validation (400/401/403/404), configuration
                (500, stable codes) or store failure (500)
        """
        with log_context(session_id=request.sessionId, stage_slug=request.stageSlug, operation="submit_stage_responses"):
            plan = await self._prepare(request, user)
            return await self._apply(plan, request, user)

    # =========================================================================
    # PHASE A - READS
    # =========================================================================

    async def _prepare(
        self,
        request: SubmitStageResponsesRequest,
        user: Optional[AuthenticatedUser],
    ) -> _TransitionPlan:
        self._validate_request(request, user)

        session = await self.session_repo.get(request.sessionId)
        if session is None:
            raise DialecticNotFoundError("Session not found.", code="SESSION_NOT_FOUND")

        project = await self.project_repo.get(request.projectId)
        if project is None:
            raise DialecticNotFoundError("Project not found.", code="PROJECT_NOT_FOUND")

        stage = await self.stage_repo.get(session.current_stage_id) if session.current_stage_id else None
        if stage is None:
            logger.error(f"Session {session.id} has no resolvable current stage")
            raise DialecticConfigurationError(
                "Could not find the current stage of the session.",
                code="STAGE_NOT_FOUND",
            )

        if stage.slug != request.stageSlug:
            raise DialecticValidationError(
                f"Stage slug {request.stageSlug} does not match the session's current stage {stage.slug}.",
                code="MISMATCHED_STAGE_SLUG",
            )

        if project.user_id != user.id or session.project_id != project.id:
            logger.warning(f"User {user.id} is not the owner of project {project.id}")
            raise DialecticForbiddenError(
                "You are not authorized to submit responses for this session.",
                code="FORBIDDEN",
            )

        await self._check_response_targets(request, session)

        iteration_number = request.currentIterationNumber
        feedback_markdown = self._feedback_markdown(request, stage)

        plan = _TransitionPlan(
            session=session,
            project=project,
            stage=stage,
            iteration_number=iteration_number,
            feedback_markdown=feedback_markdown,
        )

        next_stage = await self._find_next_stage(project, stage)
        if next_stage is not None:
            seed_prompt = await self._render_seed_prompt(plan, next_stage)
            plan.next_stage = _NextStagePlan(stage=next_stage, seed_prompt=seed_prompt)
        return plan

    def _validate_request(
        self,
        request: SubmitStageResponsesRequest,
        user: Optional[AuthenticatedUser],
    ) -> None:
        if user is None or not user.id:
            raise DialecticIdentityError("User not authenticated.")

        for field_name in ("sessionId", "projectId", "stageSlug", "currentIterationNumber"):
            if not getattr(request, field_name):
                logger.warning(f"Rejected submission: missing {field_name}")
                raise DialecticValidationError(f"Invalid payload. Missing {field_name}.")

        for index, response in enumerate(request.responses):
            if not response.originalContributionId:
                raise DialecticValidationError(
                    f"Invalid payload. Response {index} is missing originalContributionId."
                )
            if response.responseText is None:
                raise DialecticValidationError(
                    f"Invalid payload. Response {index} is missing responseText."
                )

    async def _check_response_targets(
        self,
        request: SubmitStageResponsesRequest,
        session: DialecticSession,
    ) -> None:
        ids = [r.originalContributionId for r in request.responses]
        if not ids:
            return
        contributions = await self.contribution_repo.get_many(ids)
        for contribution_id in ids:
            contribution = contributions.get(contribution_id)
            if contribution is None or contribution.session_id != session.id:
                raise DialecticValidationError(
                    f"Contribution {contribution_id} does not belong to session {session.id}.",
                    code="INVALID_CONTRIBUTION",
                )

    async def _find_next_stage(
        self,
        project: DialecticProject,
        stage: DialecticStage,
    ) -> Optional[DialecticStage]:
        if not project.process_template_id:
            raise DialecticConfigurationError(
                f"Project {project.id} has no process template.",
                code="TRANSITION_LOOKUP_FAILED",
            )
        try:
            return await self.stage_repo.get_next_stage(project.process_template_id, stage.id)
        except DialecticStoreError as e:
            raise DialecticConfigurationError(
                "Failed to look up the next stage.",
                code="TRANSITION_LOOKUP_FAILED",
                details=e.details,
            ) from e

    async def _render_seed_prompt(self, plan: _TransitionPlan, next_stage: DialecticStage) -> str:
        prompt = None
        if next_stage.default_system_prompt_id:
            prompt = await self.stage_repo.get_system_prompt(next_stage.default_system_prompt_id)
        if prompt is None:
            raise DialecticConfigurationError(
                f"Stage {next_stage.slug} has no default system prompt.",
                code="STAGE_CONFIG_MISSING_PROMPT",
            )

        overlays = []
        if plan.project.selected_domain_id:
            overlays = await self.stage_repo.list_overlays(prompt.id, plan.project.selected_domain_id)
        if not overlays:
            raise DialecticConfigurationError(
                f"No domain overlays configured for the {next_stage.slug} stage prompt.",
                code="STAGE_CONFIG_MISSING_OVERLAYS",
            )

        context: Dict[str, object] = dict(merge_overlay_values(overlays))
        context.update({
            "user_objective": plan.project.initial_user_prompt or "",
            "prior_stage_ai_outputs": await self._prior_stage_outputs(plan),
            "prior_stage_user_feedback": plan.feedback_markdown,
            "current_stage_user_feedback": plan.feedback_markdown,
        })
        return self.renderer.render(prompt.prompt_text, context)

    async def _prior_stage_outputs(self, plan: _TransitionPlan) -> str:
        """Concatenated latest model outputs of the stage being completed."""
        contributions: List[Contribution] = await self.contribution_repo.find_by(
            order_by=(("created_at", "ASC"),),
            session_id=plan.session.id,
            stage=plan.stage.slug,
            iteration_number=plan.iteration_number,
            is_latest_edit=True,
        )
        sections = []
        for contribution in contributions:
            parsed = parse_file_name(contribution.file_name)
            if not contribution.has_storage or (parsed and parsed.is_raw):
                continue
            content = await self.storage.download_text(contribution.object_path, contribution.storage_bucket)
            label = contribution.model_name or contribution.model_id or "model"
            sections.append(f"#### Contribution from {label}\n\n{content.strip()}\n")
        return "\n".join(sections)

    @staticmethod
    def _feedback_markdown(request: SubmitStageResponsesRequest, stage: DialecticStage) -> str:
        if not request.responses:
            return ""
        lines = [f"# User Feedback for {stage.display_name}", ""]
        for response in request.responses:
            lines.append(f"## Response to contribution {response.originalContributionId}")
            lines.append("")
            lines.append(response.responseText.strip())
            lines.append("")
        return "\n".join(lines)

    # =========================================================================
    # PHASE B - WRITES
    # =========================================================================

    async def _apply(
        self,
        plan: _TransitionPlan,
        request: SubmitStageResponsesRequest,
        user: AuthenticatedUser,
    ) -> SubmitStageResponsesResult:
        feedback_records = await self._store_feedback(plan, request, user)

        seed_prompt_path = None
        if plan.next_stage is not None:
            seed_prompt_path = await self._store_seed_prompt(plan, user)
            status = SessionStatus.pending(plan.next_stage.stage.slug)
            next_stage_id = plan.next_stage.stage.id
        else:
            status = SessionStatus.ITERATION_COMPLETE_PENDING_REVIEW
            next_stage_id = None

        try:
            updated = await self.session_repo.advance(plan.session.id, status, current_stage_id=next_stage_id)
        except DialecticError as e:
            raise DialecticStoreError("Failed to update session status at completion.", details=e.details) from e
        if updated is None:
            raise DialecticStoreError("Failed to update session status at completion.")

        log_checkpoint(
            "stage_advanced",
            {"from_stage": plan.stage.slug, "status": status, "feedback_count": len(feedback_records)},
        )
        logger.info(f"Session {plan.session.id} advanced from {plan.stage.slug} to {status}")
        return SubmitStageResponsesResult(
            updated_session=updated,
            next_stage_seed_prompt_path=seed_prompt_path,
            feedback_records=feedback_records,
        )

    async def _store_feedback(
        self,
        plan: _TransitionPlan,
        request: SubmitStageResponsesRequest,
        user: AuthenticatedUser,
    ) -> List[StageFeedback]:
        if not request.responses:
            return []

        directory = stage_directory(plan.project.id, plan.session.id, plan.iteration_number, plan.stage.slug)
        file_name = feedback_file_name(plan.stage.slug)
        records = [
            StageFeedback(
                id=str(uuid.uuid4()),
                session_id=plan.session.id,
                project_id=plan.project.id,
                user_id=user.id,
                stage_slug=plan.stage.slug,
                iteration_number=plan.iteration_number,
                contribution_id=response.originalContributionId,
                feedback_value_text=response.responseText,
                storage_bucket=self.storage.default_bucket,
                storage_path=directory,
                file_name=file_name,
                mime_type=self.storage_defaults.markdown_content_type,
            )
            for response in request.responses
        ]

        try:
            created = await self.feedback_repo.create_many(records)
        except DialecticError as e:
            raise DialecticStoreError("Failed to store user feedback.", details=e.details) from e

        try:
            await self.storage.upload_text(
                feedback_path(plan.project.id, plan.session.id, plan.iteration_number, plan.stage.slug),
                plan.feedback_markdown,
                content_type=self.storage_defaults.markdown_content_type,
            )
        except DialecticError as e:
            raise DialecticStoreError("Failed to store consolidated user feedback.", details=e.details) from e
        return created

    async def _store_seed_prompt(self, plan: _TransitionPlan, user: AuthenticatedUser) -> str:
        next_stage = plan.next_stage.stage
        directory = stage_directory(plan.project.id, plan.session.id, plan.iteration_number, next_stage.slug)
        path = seed_prompt_path(plan.project.id, plan.session.id, plan.iteration_number, next_stage.slug)

        try:
            await self.storage.upload_text(
                path,
                plan.next_stage.seed_prompt,
                content_type=self.storage_defaults.markdown_content_type,
            )
            await self.resource_repo.create(ProjectResource(
                id=str(uuid.uuid4()),
                project_id=plan.project.id,
                user_id=user.id,
                session_id=plan.session.id,
                stage_slug=next_stage.slug,
                iteration_number=plan.iteration_number,
                resource_type=ResourceType.SEED_PROMPT,
                document_key=ResourceType.SEED_PROMPT.value,
                storage_bucket=self.storage.default_bucket,
                storage_path=directory,
                file_name=SEED_PROMPT_FILE_NAME,
                mime_type=self.storage_defaults.markdown_content_type,
                size_bytes=len(plan.next_stage.seed_prompt.encode("utf-8")),
            ))
        except DialecticError as e:
            raise DialecticStoreError("Failed to store seed prompt for next stage.", details=e.details) from e
        return path


__all__ = ["StageTransitioner"]
