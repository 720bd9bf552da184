# ============================================================================
# CLAUDE CONTEXT - RECIPE MODELS
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core model - Stage recipes and input rules
# PURPOSE: Ordered steps a stage executes and the inputs each step needs
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: InputRule, RecipeStep, RecipeInstance, StageRecipe
# DEPENDENCIES: pydantic
# ============================================================================
"""
Recipe Models

A stage's recipe is the active RecipeInstance of that stage plus its
RecipeSteps ordered by ``execution_order``. Each step declares the prior
artifacts it needs as an ordered list of InputRules.

``InputRule.document_key`` is descriptive metadata. The resolver uses it to
pick among candidates that were already selected by column filters; it is
never a row-identity filter.
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from core.contracts import InputRuleType, JobType

# Stage slugs meaning "any stage"
ANY_STAGE_SLUGS = ("", "any", "*")


class InputRule(BaseModel):
    """One declared input of a recipe step."""

    type: InputRuleType
    slug: str = ""
    document_key: Optional[str] = None
    required: Optional[bool] = None
    linked_to_contribution: bool = Field(
        default=False,
        description="Target resource is linked to the job's source contribution",
    )

    @field_validator("document_key")
    @classmethod
    def _blank_key_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def is_required(self) -> bool:
        """Feedback is optional unless stated; every other type is required."""
        if self.required is not None:
            return self.required
        return self.type != InputRuleType.FEEDBACK

    @property
    def stage_filter(self) -> Optional[str]:
        """Stage slug to filter on, or None for any stage."""
        if self.slug.strip().lower() in ANY_STAGE_SLUGS:
            return None
        return self.slug

    @property
    def reuse_key(self) -> tuple:
        """Key under which used document ids are tracked within one pass."""
        return (self.type.value, (self.document_key or "").lower())


class RecipeStep(BaseModel):
    """
    One step of a recipe instance.

    Maps to: dialectic.recipe_steps table
    """

    __sql_table__: ClassVar[str] = "recipe_steps"
    __sql_schema__: ClassVar[str] = "dialectic"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_foreign_keys__: ClassVar[Dict[str, str]] = {
        "instance_id": "dialectic.recipe_instances(id)",
    }
    __sql_indexes__: ClassVar[List[tuple]] = [
        ("idx_recipe_steps_instance_order", ["instance_id", "execution_order"]),
    ]

    id: str = Field(..., max_length=64)
    instance_id: str = Field(..., max_length=64)
    step_key: str = Field(..., max_length=128)
    step_slug: str = Field(..., max_length=128)
    step_name: str = Field(..., max_length=256)
    execution_order: int = Field(..., ge=0)
    job_type: JobType
    prompt_type: str = Field(..., max_length=64)
    granularity_strategy: str = Field(default="per_source_document", max_length=64)
    inputs_required: List[InputRule] = Field(default_factory=list)
    output_type: str = Field(..., max_length=64)
    output_overrides: Dict[str, Any] = Field(default_factory=dict)
    config_override: Dict[str, Any] = Field(default_factory=dict)
    is_skipped: bool = False
    prompt_template_id: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class RecipeInstance(BaseModel):
    """
    The recipe a stage currently runs.

    Maps to: dialectic.recipe_instances table
    """

    __sql_table__: ClassVar[str] = "recipe_instances"
    __sql_schema__: ClassVar[str] = "dialectic"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_indexes__: ClassVar[List[tuple]] = [
        ("idx_recipe_instances_stage", ["stage_id"]),
    ]

    id: str = Field(..., max_length=64)
    stage_id: str = Field(..., max_length=64)
    template_id: str = Field(..., max_length=64)
    is_cloned: bool = False
    cloned_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class StageRecipe(BaseModel):
    """A stage with its active recipe instance and ordered steps."""

    stage_id: str
    stage_slug: str
    instance: RecipeInstance
    steps: List[RecipeStep] = Field(default_factory=list)

    @field_validator("steps")
    @classmethod
    def _order_steps(cls, v: List[RecipeStep]) -> List[RecipeStep]:
        return sorted(v, key=lambda s: s.execution_order)

    @property
    def active_steps(self) -> List[RecipeStep]:
        return [s for s in self.steps if not s.is_skipped]

    def get_step(self, step_key: str) -> Optional[RecipeStep]:
        for step in self.steps:
            if step.step_key == step_key:
                return step
        return None


__all__ = [
    "ANY_STAGE_SLUGS",
    "InputRule",
    "RecipeStep",
    "RecipeInstance",
    "StageRecipe",
]
