# ============================================================================
# CLAUDE CONTEXT - DOCUMENT MODELS
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core model - Stored artifacts and resolver output
# PURPOSE: Project resources, contributions, feedback, SourceDocument
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: ProjectResource, Contribution, StageFeedback, SourceDocument
# DEPENDENCIES: pydantic
# ============================================================================
"""
Document Models

Three stores hold the artifacts a recipe step can consume:

- ProjectResource: seed prompts, uploaded project resources, rendered
  documents and the project's initial user prompt
- Contribution: model outputs written by the worker
- StageFeedback: user responses submitted at the end of a stage

Every filterable attribute is a dedicated column. The resolver never
queries a JSON description field.

SourceDocument is the normalized pointer returned by the resolver.
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, Field

from core.contracts import InputRuleType, ResourceType, SourceTable
from core.paths import parse_file_name


class StoredFile(BaseModel):
    """Storage location columns shared by every artifact store."""

    storage_bucket: Optional[str] = Field(default=None, max_length=128)
    storage_path: Optional[str] = Field(default=None, max_length=1024)
    file_name: Optional[str] = Field(default=None, max_length=512)
    mime_type: Optional[str] = Field(default=None, max_length=128)
    size_bytes: Optional[int] = Field(default=None, ge=0)

    @property
    def has_storage(self) -> bool:
        return bool(self.storage_bucket and self.storage_path and self.file_name)

    @property
    def object_path(self) -> Optional[str]:
        if not self.has_storage:
            return None
        return f"{self.storage_path.rstrip('/')}/{self.file_name}"

    @property
    def parsed_document_key(self) -> Optional[str]:
        """Document key recovered from the file name, if it follows the convention."""
        parsed = parse_file_name(self.file_name)
        return parsed.document_key if parsed else None


class ProjectResource(StoredFile):
    """Maps to: dialectic.project_resources table"""

    __sql_table__: ClassVar[str] = "project_resources"
    __sql_schema__: ClassVar[str] = "dialectic"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_indexes__: ClassVar[List[tuple]] = [
        ("idx_resources_lookup", ["project_id", "resource_type", "stage_slug", "iteration_number"]),
        ("idx_resources_session", ["session_id"]),
        ("idx_resources_source_contribution", ["source_contribution_id"]),
    ]

    id: str = Field(..., max_length=64)
    project_id: str = Field(..., max_length=64)
    user_id: Optional[str] = Field(default=None, max_length=64)
    session_id: Optional[str] = Field(default=None, max_length=64)
    stage_slug: Optional[str] = Field(default=None, max_length=64)
    iteration_number: Optional[int] = Field(default=None, ge=1)
    resource_type: ResourceType
    document_key: Optional[str] = Field(default=None, max_length=128)
    source_contribution_id: Optional[str] = Field(default=None, max_length=64)
    resource_description: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Contribution(StoredFile):
    """Maps to: dialectic.contributions table"""

    __sql_table__: ClassVar[str] = "contributions"
    __sql_schema__: ClassVar[str] = "dialectic"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_indexes__: ClassVar[List[tuple]] = [
        ("idx_contributions_lookup", ["session_id", "stage", "iteration_number", "is_latest_edit"]),
        ("idx_contributions_type", ["contribution_type"]),
    ]

    id: str = Field(..., max_length=64)
    session_id: str = Field(..., max_length=64)
    user_id: Optional[str] = Field(default=None, max_length=64)
    stage: str = Field(..., max_length=64)
    iteration_number: int = Field(..., ge=1)
    model_id: Optional[str] = Field(default=None, max_length=64)
    model_name: Optional[str] = Field(default=None, max_length=128)
    contribution_type: Optional[str] = Field(default=None, max_length=64)
    is_latest_edit: bool = True
    edit_version: int = Field(default=1, ge=1)
    original_model_contribution_id: Optional[str] = Field(default=None, max_length=64)
    target_contribution_id: Optional[str] = Field(default=None, max_length=64)
    document_relationships: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class StageFeedback(StoredFile):
    """Maps to: dialectic.feedback table"""

    __sql_table__: ClassVar[str] = "feedback"
    __sql_schema__: ClassVar[str] = "dialectic"
    __sql_primary_key__: ClassVar[List[str]] = ["id"]
    __sql_indexes__: ClassVar[List[tuple]] = [
        ("idx_feedback_lookup", ["session_id", "stage_slug", "iteration_number"]),
    ]

    id: str = Field(..., max_length=64)
    session_id: str = Field(..., max_length=64)
    project_id: str = Field(..., max_length=64)
    user_id: str = Field(..., max_length=64)
    stage_slug: str = Field(..., max_length=64)
    iteration_number: int = Field(..., ge=1)
    contribution_id: Optional[str] = Field(default=None, max_length=64)
    feedback_type: str = Field(default="user_response", max_length=64)
    feedback_value_text: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class SourceDocument(StoredFile):
    """
    Normalized pointer to one resolved input.

    ``content`` stays empty until SourceDocumentResolver.load_contents()
    fetches the bytes.
    """

    id: str
    source_table: SourceTable
    rule_type: InputRuleType
    document_key: Optional[str] = None
    stage_slug: Optional[str] = None
    iteration_number: Optional[int] = None
    session_id: Optional[str] = None
    model_id: Optional[str] = None
    model_name: Optional[str] = None
    contribution_type: Optional[str] = None
    source_contribution_id: Optional[str] = None
    document_relationships: Optional[Dict[str, Any]] = None
    attempt_count: Optional[int] = None
    content: str = ""

    @classmethod
    def from_resource(
        cls,
        resource: ProjectResource,
        rule_type: InputRuleType,
    ) -> "SourceDocument":
        return cls(
            id=resource.id,
            source_table=SourceTable.PROJECT_RESOURCE,
            rule_type=rule_type,
            document_key=resource.document_key or resource.parsed_document_key,
            stage_slug=resource.stage_slug,
            iteration_number=resource.iteration_number,
            session_id=resource.session_id,
            source_contribution_id=resource.source_contribution_id,
            storage_bucket=resource.storage_bucket,
            storage_path=resource.storage_path,
            file_name=resource.file_name,
            mime_type=resource.mime_type,
            size_bytes=resource.size_bytes,
        )

    @classmethod
    def from_contribution(
        cls,
        contribution: Contribution,
        rule_type: InputRuleType,
    ) -> "SourceDocument":
        parsed = parse_file_name(contribution.file_name)
        return cls(
            id=contribution.id,
            source_table=SourceTable.CONTRIBUTION,
            rule_type=rule_type,
            document_key=parsed.document_key if parsed else contribution.contribution_type,
            stage_slug=contribution.stage,
            iteration_number=contribution.iteration_number,
            session_id=contribution.session_id,
            model_id=contribution.model_id,
            model_name=contribution.model_name,
            contribution_type=contribution.contribution_type,
            document_relationships=contribution.document_relationships,
            attempt_count=parsed.attempt_count if parsed else None,
            storage_bucket=contribution.storage_bucket,
            storage_path=contribution.storage_path,
            file_name=contribution.file_name,
            mime_type=contribution.mime_type,
            size_bytes=contribution.size_bytes,
        )

    @classmethod
    def from_feedback(
        cls,
        feedback: StageFeedback,
        rule_type: InputRuleType,
    ) -> "SourceDocument":
        return cls(
            id=feedback.id,
            source_table=SourceTable.FEEDBACK,
            rule_type=rule_type,
            document_key=feedback.feedback_type,
            stage_slug=feedback.stage_slug,
            iteration_number=feedback.iteration_number,
            session_id=feedback.session_id,
            storage_bucket=feedback.storage_bucket,
            storage_path=feedback.storage_path,
            file_name=feedback.file_name,
            mime_type=feedback.mime_type,
            size_bytes=feedback.size_bytes,
        )


__all__ = [
    "StoredFile",
    "ProjectResource",
    "Contribution",
    "StageFeedback",
    "SourceDocument",
]
