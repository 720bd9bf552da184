# ============================================================================
# JOB PLANNER TESTS
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Tests - Contribution generation
# PURPOSE: Verify JobPlanner validation order, batching and dispatch
# CREATED: 18 OCT 2026
# ============================================================================
"""
JobPlanner Tests

Unit tests with mocked repos. Tests business logic in isolation:
no database, no worker, no I/O.

Run with:
    pytest tests/test_job_planner.py -v
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock

from core.config import PlannerDefaults
from core.contracts import JobStatus, JobType
from core.errors import DialecticError, DialecticStoreError
from core.models import (
    AiProvider,
    AuthenticatedUser,
    DialecticSession,
    GenerateContributionsRequest,
    RecipeInstance,
    StageRecipe,
)

from services.job_planner import JobPlanner


# ============================================================================
# HELPERS
# ============================================================================

USER = AuthenticatedUser(id="user-1")
TOKEN = "jwt-token"


def _make_request(**overrides):
    fields = dict(
        sessionId="sess-1",
        projectId="proj-1",
        stageSlug="thesis",
        iterationNumber=1,
        walletId="wallet-1",
    )
    fields.update(overrides)
    return GenerateContributionsRequest(**fields)


def _make_session(model_ids=("model-a", "model-b"), iteration_count=1):
    return DialecticSession(
        id="sess-1",
        project_id="proj-1",
        selected_model_ids=list(model_ids),
        iteration_count=iteration_count,
    )


def _make_provider(model_id):
    return AiProvider(id=model_id, name=model_id.upper(), api_identifier=f"{model_id}-slug")


def _make_recipe():
    return StageRecipe(
        stage_id="stage-thesis",
        stage_slug="thesis",
        instance=RecipeInstance(id="inst-1", stage_id="stage-thesis", template_id="tmpl-1"),
        steps=[],
    )


def _build_planner(session=None, providers=None, recipe="default"):
    """Build a JobPlanner with all repos mocked."""
    dispatcher = MagicMock()
    dispatcher.publish = AsyncMock()
    planner = JobPlanner(MagicMock(), dispatcher, PlannerDefaults(max_retries=5))

    planner.session_repo = AsyncMock()
    planner.provider_repo = AsyncMock()
    planner.recipe_repo = AsyncMock()
    planner.job_repo = AsyncMock()

    session = session if session is not None else _make_session()
    planner.session_repo.get.return_value = session
    if providers is None:
        providers = {m: _make_provider(m) for m in session.selected_model_ids}
    planner.provider_repo.get_many.return_value = providers
    planner.recipe_repo.get_stage_recipe.return_value = _make_recipe() if recipe == "default" else recipe
    planner.job_repo.create.side_effect = lambda job: job

    return planner


def _run(planner, request, user=USER, token=TOKEN):
    return asyncio.run(planner.generate_contributions(request, user, token))


# ============================================================================
# HAPPY PATH
# ============================================================================

class TestGenerateContributions:
    def test_one_job_per_model_in_selection_order(self):
        planner = _build_planner()
        result = _run(planner, _make_request())

        created = [call.args[0] for call in planner.job_repo.create.await_args_list]
        assert len(result.job_ids) == 2
        assert result.job_ids == [job.id for job in created]
        assert [job.payload.model_id for job in created] == ["model-a", "model-b"]

    def test_jobs_are_pending_plan_jobs(self):
        planner = _build_planner()
        _run(planner, _make_request())

        job = planner.job_repo.create.await_args_list[0].args[0]
        assert job.status == JobStatus.PENDING
        assert job.job_type == JobType.PLAN
        assert job.user_id == "user-1"

    def test_payload_fields(self):
        planner = _build_planner()
        _run(planner, _make_request(continueUntilComplete=True))

        payload = planner.job_repo.create.await_args_list[1].args[0].payload
        assert payload.model_slug == "model-b-slug"
        assert payload.user_jwt == TOKEN
        assert payload.walletId == "wallet-1"
        assert payload.continuation_count == 0
        assert payload.continueUntilComplete is True
        assert payload.maxRetries == 5

    def test_iteration_defaults_to_session(self):
        planner = _build_planner(session=_make_session(iteration_count=3))
        _run(planner, _make_request(iterationNumber=None))

        job = planner.job_repo.create.await_args_list[0].args[0]
        assert job.iteration_number == 3
        assert job.payload.iterationNumber == 3

    def test_each_committed_job_is_published(self):
        planner = _build_planner()
        result = _run(planner, _make_request())

        published = [call.args[0].id for call in planner.dispatcher.publish.await_args_list]
        assert published == result.job_ids

    def test_test_job_flag_is_top_level(self):
        planner = _build_planner()
        _run(planner, _make_request(is_test_job=True))

        job = planner.job_repo.create.await_args_list[0].args[0]
        assert job.is_test_job is True
        assert "is_test_job" not in job.payload.model_dump()

    def test_duplicate_calls_create_duplicate_jobs(self):
        planner = _build_planner()
        first = _run(planner, _make_request())
        second = _run(planner, _make_request())

        assert planner.job_repo.create.await_count == 4
        assert set(first.job_ids).isdisjoint(second.job_ids)


# ============================================================================
# VALIDATION
# ============================================================================

class TestValidation:
    def _assert_rejected(self, planner, request, status, message, user=USER, token=TOKEN):
        with pytest.raises(DialecticError) as exc_info:
            _run(planner, request, user=user, token=token)
        assert exc_info.value.status == status
        assert exc_info.value.message == message
        planner.job_repo.create.assert_not_awaited()
        planner.dispatcher.publish.assert_not_awaited()

    def test_stage_slug_checked_first(self):
        self._assert_rejected(
            _build_planner(),
            _make_request(stageSlug=None, sessionId=None),
            400,
            "stageSlug is required in the payload.",
            user=None,
        )

    def test_session_id_required(self):
        self._assert_rejected(
            _build_planner(), _make_request(sessionId=""), 400, "sessionId is required in the payload.",
        )

    def test_identity_checked_before_token(self):
        self._assert_rejected(
            _build_planner(),
            _make_request(),
            401,
            "User could not be identified for job creation.",
            user=None,
            token=None,
        )

    def test_auth_token_required(self):
        self._assert_rejected(
            _build_planner(), _make_request(), 400, "authToken is required to create generation jobs.", token="",
        )

    def test_session_not_found(self):
        planner = _build_planner()
        planner.session_repo.get.return_value = None
        self._assert_rejected(planner, _make_request(), 404, "Session sess-1 not found.")

    def test_session_without_models(self):
        self._assert_rejected(
            _build_planner(session=_make_session(model_ids=())),
            _make_request(),
            400,
            "The session has no selected models. Please select at least one model.",
        )

    def test_wallet_checked_after_session(self):
        planner = _build_planner()
        self._assert_rejected(
            planner, _make_request(walletId=None), 400, "walletId is required to create generation jobs.",
        )
        planner.session_repo.get.assert_awaited_once_with("sess-1")


# ============================================================================
# PROCESSING FAILURES
# ============================================================================

class TestProcessingFailures:
    def test_missing_recipe(self):
        planner = _build_planner(recipe=None)
        with pytest.raises(DialecticError) as exc_info:
            _run(planner, _make_request())
        assert exc_info.value.status == 500
        assert exc_info.value.message == "Could not find recipe for stage thesis."
        planner.job_repo.create.assert_not_awaited()

    def test_missing_provider_aborts_before_any_insert(self):
        planner = _build_planner(providers={"model-a": _make_provider("model-a")})
        with pytest.raises(DialecticError) as exc_info:
            _run(planner, _make_request())
        assert exc_info.value.status == 500
        assert exc_info.value.message == "Could not resolve provider details for model model-b."
        planner.job_repo.create.assert_not_awaited()

    def test_insert_failure_stops_the_batch(self):
        planner = _build_planner(session=_make_session(model_ids=("model-a", "model-b", "model-c")))
        planner.job_repo.create.side_effect = _fail_on_call(2)

        with pytest.raises(DialecticError) as exc_info:
            _run(planner, _make_request())

        error = exc_info.value
        assert error.status == 500
        assert error.message == "Failed to create job for model model-b: GenerationJob insert failed: duplicate key"
        assert error.details == "duplicate key"
        assert planner.job_repo.create.await_count == 2
        assert planner.dispatcher.publish.await_count == 1


def _fail_on_call(n):
    calls = {"count": 0}

    def create(job):
        calls["count"] += 1
        if calls["count"] == n:
            raise DialecticStoreError("GenerationJob insert failed: duplicate key", details="duplicate key")
        return job

    return create
