# ============================================================================
# CLAUDE CONTEXT - PROJECT / SESSION / STAGE MODELS
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core model - Session graph read by the orchestration core
# PURPOSE: Projects, sessions, stages, transitions, prompts and overlays
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: DialecticProject, DialecticSession, DialecticStage,
#          StageTransition, SystemPrompt, DomainOverlay, AiProvider
# DEPENDENCIES: pydantic
# ============================================================================
"""
Session Graph Models

A DialecticProject owns DialecticSessions. A session walks the stages of
the project's process template; StageTransition rows are the edges. Each
stage has a default SystemPrompt whose template is rendered with the
DomainOverlay values of the project's domain.

The planner and resolver only read these. The transitioner updates the
session's ``current_stage_id`` and ``status``.
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field


class DialecticProject(BaseModel):
    """Maps to: dialectic.projects table"""

    __sql_table__: ClassVar[str] = "projects"
    __sql_schema__: ClassVar[str] = "dialectic"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_indexes__: ClassVar[List[tuple]] = [
        ("idx_projects_user", ["user_id"]),
    ]

    id: str = Field(..., max_length=64)
    user_id: str = Field(..., max_length=64)
    project_name: str = Field(..., max_length=256)
    initial_user_prompt: Optional[str] = None
    selected_domain_id: Optional[str] = Field(default=None, max_length=64)
    process_template_id: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class DialecticSession(BaseModel):
    """Maps to: dialectic.sessions table"""

    __sql_table__: ClassVar[str] = "sessions"
    __sql_schema__: ClassVar[str] = "dialectic"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_foreign_keys__: ClassVar[Dict[str, str]] = {
        "project_id": "dialectic.projects(id)",
    }
    __sql_indexes__: ClassVar[List[tuple]] = [
        ("idx_sessions_project", ["project_id"]),
    ]

    id: str = Field(..., max_length=64)
    project_id: str = Field(..., max_length=64)
    session_description: Optional[str] = None
    selected_model_ids: List[str] = Field(default_factory=list)
    iteration_count: int = Field(default=1, ge=1)
    current_stage_id: Optional[str] = Field(default=None, max_length=64)
    status: str = Field(default="pending_thesis", max_length=128)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class DialecticStage(BaseModel):
    """Maps to: dialectic.stages table"""

    __sql_table__: ClassVar[str] = "stages"
    __sql_schema__: ClassVar[str] = "dialectic"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_indexes__: ClassVar[List[tuple]] = [
        ("idx_stages_slug", ["slug"]),
    ]

    id: str = Field(..., max_length=64)
    slug: str = Field(..., max_length=64)
    display_name: str = Field(..., max_length=128)
    description: Optional[str] = None
    default_system_prompt_id: Optional[str] = Field(default=None, max_length=64)
    recipe_template_id: Optional[str] = Field(default=None, max_length=64)
    active_recipe_instance_id: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class StageTransition(BaseModel):
    """Edge from one stage to the next within a process template."""

    __sql_table__: ClassVar[str] = "stage_transitions"
    __sql_schema__: ClassVar[str] = "dialectic"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_indexes__: ClassVar[List[tuple]] = [
        ("idx_stage_transitions_source", ["process_template_id", "source_stage_id"]),
    ]

    id: str = Field(..., max_length=64)
    process_template_id: str = Field(..., max_length=64)
    source_stage_id: str = Field(..., max_length=64)
    target_stage_id: str = Field(..., max_length=64)
    condition_description: Optional[str] = None


class SystemPrompt(BaseModel):
    """Jinja2 prompt template a stage renders for its seed prompt."""

    __sql_table__: ClassVar[str] = "system_prompts"
    __sql_schema__: ClassVar[str] = "dialectic"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]

    id: str = Field(..., max_length=64)
    name: str = Field(..., max_length=128)
    prompt_text: str
    is_active: bool = True
    version: int = Field(default=1, ge=1)


class DomainOverlay(BaseModel):
    """Domain-specific values merged into a system prompt before rendering."""

    __sql_table__: ClassVar[str] = "domain_specific_prompt_overlays"
    __sql_schema__: ClassVar[str] = "dialectic"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_indexes__: ClassVar[List[tuple]] = [
        ("idx_overlays_prompt_domain", ["system_prompt_id", "domain_id"]),
    ]

    id: str = Field(..., max_length=64)
    system_prompt_id: str = Field(..., max_length=64)
    domain_id: str = Field(..., max_length=64)
    overlay_values: Dict[str, Any] = Field(default_factory=dict)
    description: Optional[str] = None
    is_active: bool = True


class AiProvider(BaseModel):
    """Model catalogue entry; ``api_identifier`` is the model slug."""

    __sql_table__: ClassVar[str] = "ai_providers"
    __sql_schema__: ClassVar[str] = "dialectic"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]

    id: str = Field(..., max_length=64)
    name: str = Field(..., max_length=128)
    provider: Optional[str] = Field(default=None, max_length=64)
    api_identifier: str = Field(..., max_length=128)
    is_active: bool = True


__all__ = [
    "DialecticProject",
    "DialecticSession",
    "DialecticStage",
    "StageTransition",
    "SystemPrompt",
    "DomainOverlay",
    "AiProvider",
]
