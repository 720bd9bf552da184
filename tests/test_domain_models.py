# ============================================================================
# DOMAIN MODEL TESTS
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Tests - Domain model unit tests
# PURPOSE: Verify enums, job payloads, recipe rules, paths and errors
# CREATED: 18 OCT 2026
# ============================================================================
"""
Domain Model Tests

Unit tests for the domain layer:
- Enums: JobStatus, SessionStatus
- Models: GenerationJob and its payload union, InputRule, StageRecipe,
  SourceDocument
- Contribution file name parsing
- Error bodies

Run with:
    pytest tests/test_domain_models.py -v
"""

import pytest
from pydantic import ValidationError

from core.contracts import InputRuleType, JobStatus, JobType, SessionStatus, SourceTable
from core.errors import DialecticStoreError, DialecticValidationError, SourceDocumentNotFoundError
from core.models import (
    Contribution,
    DialecticExecuteJobPayload,
    DialecticPlanJobPayload,
    GenerationJob,
    InputRule,
    RecipeInstance,
    RecipeStep,
    SourceDocument,
    StageRecipe,
)
from core.paths import feedback_path, parse_file_name, seed_prompt_path


def _payload_fields(**overrides):
    fields = dict(
        model_id="model-a",
        model_slug="claude-3-opus",
        projectId="proj-1",
        sessionId="sess-1",
        stageSlug="thesis",
        iterationNumber=1,
        walletId="wallet-1",
        user_jwt="jwt-token",
    )
    fields.update(overrides)
    return fields


def _make_step(step_key, order, **overrides):
    fields = dict(
        id=f"step-{step_key}",
        instance_id="inst-1",
        step_key=step_key,
        step_slug=step_key.replace("_", "-"),
        step_name=step_key.title(),
        execution_order=order,
        job_type=JobType.EXECUTE,
        prompt_type="Turn",
        output_type="business_case",
    )
    fields.update(overrides)
    return RecipeStep(**fields)


# ============================================================================
# ENUM TESTS
# ============================================================================


class TestJobStatus:
    def test_values(self):
        assert JobStatus.PENDING.value == "pending"
        assert JobStatus.RETRYING.value == "retrying"
        assert JobStatus.FAILED.value == "failed"

    def test_is_terminal(self):
        assert not JobStatus.PENDING.is_terminal()
        assert not JobStatus.RETRYING.is_terminal()
        assert JobStatus.COMPLETED.is_terminal()
        assert JobStatus.FAILED.is_terminal()


class TestSessionStatus:
    def test_pending_status_uses_stage_slug(self):
        assert SessionStatus.pending("antithesis") == "pending_antithesis"

    def test_review_status(self):
        assert SessionStatus.ITERATION_COMPLETE_PENDING_REVIEW == "iteration_complete_pending_review"


# ============================================================================
# JOB PAYLOAD TESTS
# ============================================================================


class TestJobPayload:
    def test_plan_payload_defaults(self):
        payload = DialecticPlanJobPayload(**_payload_fields())
        assert payload.job_type == "PLAN"
        assert payload.continuation_count == 0
        assert payload.continueUntilComplete is False

    def test_payload_rejects_is_test_job(self):
        """is_test_job belongs on the row, never inside the payload."""
        with pytest.raises(ValidationError):
            DialecticPlanJobPayload(**_payload_fields(is_test_job=True))

    def test_payload_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            DialecticPlanJobPayload(**_payload_fields(prompt="free text"))

    def test_iteration_must_be_positive(self):
        with pytest.raises(ValidationError):
            DialecticPlanJobPayload(**_payload_fields(iterationNumber=0))


class TestGenerationJob:
    def test_new_plan_is_pending(self):
        job = GenerationJob.new_plan(DialecticPlanJobPayload(**_payload_fields()), user_id="user-1")
        assert job.status == JobStatus.PENDING
        assert job.job_type == JobType.PLAN
        assert job.session_id == "sess-1"
        assert job.stage_slug == "thesis"
        assert job.iteration_number == 1
        assert job.is_test_job is False

    def test_row_omits_false_test_flag(self):
        job = GenerationJob.new_plan(DialecticPlanJobPayload(**_payload_fields()), user_id="user-1")
        row = job.to_row()
        assert "is_test_job" not in row
        assert "is_test_job" not in row["payload"]

    def test_row_carries_true_test_flag_at_top_level(self):
        job = GenerationJob.new_plan(
            DialecticPlanJobPayload(**_payload_fields()), user_id="user-1", is_test_job=True
        )
        row = job.to_row()
        assert row["is_test_job"] is True
        assert "is_test_job" not in row["payload"]

    def test_row_payload_is_plain_json(self):
        job = GenerationJob.new_plan(DialecticPlanJobPayload(**_payload_fields()), user_id="user-1")
        row = job.to_row()
        assert row["payload"]["job_type"] == "PLAN"
        assert row["payload"]["user_jwt"] == "jwt-token"
        assert row["status"] == "pending"

    def test_payload_discriminated_from_row(self):
        job = GenerationJob.model_validate({
            "session_id": "sess-1",
            "user_id": "user-1",
            "stage_slug": "thesis",
            "iteration_number": 1,
            "job_type": "EXECUTE",
            "payload": {
                **_payload_fields(),
                "job_type": "EXECUTE",
                "step_key": "draft",
                "output_type": "business_case",
                "sourceContributionId": "contrib-1",
            },
        })
        assert isinstance(job.payload, DialecticExecuteJobPayload)
        assert job.payload.sourceContributionId == "contrib-1"

    def test_job_type_must_match_payload(self):
        with pytest.raises(ValidationError):
            GenerationJob(
                session_id="sess-1",
                user_id="user-1",
                stage_slug="thesis",
                iteration_number=1,
                job_type=JobType.EXECUTE,
                payload=DialecticPlanJobPayload(**_payload_fields()),
            )

    def test_status_transitions(self):
        job = GenerationJob.new_plan(DialecticPlanJobPayload(**_payload_fields()), user_id="user-1")
        assert job.can_transition_to(JobStatus.RUNNING)
        assert not job.can_transition_to(JobStatus.COMPLETED)


# ============================================================================
# RECIPE TESTS
# ============================================================================


class TestInputRule:
    def test_feedback_is_optional_by_default(self):
        assert InputRule(type=InputRuleType.FEEDBACK, slug="thesis").is_required is False

    def test_other_types_required_by_default(self):
        assert InputRule(type=InputRuleType.DOCUMENT, slug="thesis").is_required is True

    def test_explicit_required_wins(self):
        assert InputRule(type=InputRuleType.FEEDBACK, required=True).is_required is True
        assert InputRule(type=InputRuleType.SEED_PROMPT, required=False).is_required is False

    @pytest.mark.parametrize("slug", ["", "any", "ANY", "*"])
    def test_any_stage_has_no_filter(self, slug):
        assert InputRule(type=InputRuleType.CONTRIBUTION, slug=slug).stage_filter is None

    def test_stage_filter(self):
        assert InputRule(type=InputRuleType.CONTRIBUTION, slug="thesis").stage_filter == "thesis"

    def test_blank_document_key_is_none(self):
        assert InputRule(type=InputRuleType.DOCUMENT, document_key="  ").document_key is None

    def test_reuse_key_is_case_insensitive(self):
        a = InputRule(type=InputRuleType.DOCUMENT, document_key="Business_Case")
        b = InputRule(type=InputRuleType.DOCUMENT, document_key="business_case")
        assert a.reuse_key == b.reuse_key


class TestStageRecipe:
    def test_steps_sorted_by_execution_order(self):
        recipe = StageRecipe(
            stage_id="stage-1",
            stage_slug="thesis",
            instance=RecipeInstance(id="inst-1", stage_id="stage-1", template_id="tmpl-1"),
            steps=[_make_step("render", 2), _make_step("plan", 0), _make_step("draft", 1)],
        )
        assert [s.step_key for s in recipe.steps] == ["plan", "draft", "render"]

    def test_active_steps_skip_skipped(self):
        recipe = StageRecipe(
            stage_id="stage-1",
            stage_slug="thesis",
            instance=RecipeInstance(id="inst-1", stage_id="stage-1", template_id="tmpl-1"),
            steps=[_make_step("plan", 0), _make_step("draft", 1, is_skipped=True)],
        )
        assert [s.step_key for s in recipe.active_steps] == ["plan"]
        assert recipe.get_step("draft").is_skipped is True
        assert recipe.get_step("missing") is None

    def test_step_inputs_parse_rules(self):
        step = _make_step("draft", 1, inputs_required=[
            {"type": "seed_prompt", "slug": "thesis"},
            {"type": "feedback", "slug": "thesis"},
        ])
        assert step.inputs_required[0].type == InputRuleType.SEED_PROMPT
        assert step.inputs_required[1].is_required is False


# ============================================================================
# PATHS AND DOCUMENTS
# ============================================================================


class TestFileNames:
    def test_parse_contribution_file_name(self):
        parsed = parse_file_name("claude-3-opus_0_business_case.md")
        assert parsed.model_slug == "claude-3-opus"
        assert parsed.attempt_count == 0
        assert parsed.document_key == "business_case"
        assert parsed.is_raw is False
        assert parsed.extension == "md"

    def test_parse_raw_file_name(self):
        parsed = parse_file_name("gpt-4_1_feature_spec_raw.json")
        assert parsed.document_key == "feature_spec"
        assert parsed.attempt_count == 1
        assert parsed.is_raw is True

    @pytest.mark.parametrize("name", [None, "", "seed_prompt.md", "notes.txt"])
    def test_unconventional_names(self, name):
        assert parse_file_name(name) is None

    def test_stage_paths(self):
        assert feedback_path("p", "s", 2, "thesis") == (
            "projects/p/sessions/s/iteration_2/thesis/user_feedback_thesis.md"
        )
        assert seed_prompt_path("p", "s", 1, "antithesis") == (
            "projects/p/sessions/s/iteration_1/antithesis/seed_prompt.md"
        )


class TestSourceDocument:
    def test_from_contribution_uses_file_name_key(self):
        contribution = Contribution(
            id="contrib-1",
            session_id="sess-1",
            stage="thesis",
            iteration_number=1,
            model_id="model-a",
            contribution_type="thesis",
            storage_bucket="bucket",
            storage_path="projects/p/sessions/s/iteration_1/thesis",
            file_name="claude-3-opus_2_business_case.md",
        )
        doc = SourceDocument.from_contribution(contribution, InputRuleType.DOCUMENT)
        assert doc.source_table == SourceTable.CONTRIBUTION
        assert doc.document_key == "business_case"
        assert doc.attempt_count == 2
        assert doc.object_path == "projects/p/sessions/s/iteration_1/thesis/claude-3-opus_2_business_case.md"
        assert doc.content == ""

    def test_from_contribution_without_conventional_name(self):
        contribution = Contribution(
            id="contrib-1",
            session_id="sess-1",
            stage="thesis",
            iteration_number=1,
            contribution_type="header_context",
        )
        doc = SourceDocument.from_contribution(contribution, InputRuleType.HEADER_CONTEXT)
        assert doc.document_key == "header_context"
        assert doc.has_storage is False
        assert doc.object_path is None


# ============================================================================
# ERRORS
# ============================================================================


class TestErrors:
    def test_validation_error_body(self):
        error = DialecticValidationError("stageSlug is required in the payload.")
        assert error.to_dict() == {"message": "stageSlug is required in the payload.", "status": 400}

    def test_store_error_keeps_raw_error(self):
        error = DialecticStoreError.wrap("job insert", RuntimeError("duplicate key"))
        assert error.status == 500
        assert error.details == "duplicate key"

    def test_source_document_not_found(self):
        error = SourceDocumentNotFoundError("seed_prompt")
        assert error.message == "A required input of type 'seed_prompt' was not found for the current job."
        assert error.code == "SOURCE_DOCUMENT_NOT_FOUND"
        assert error.status == 404
