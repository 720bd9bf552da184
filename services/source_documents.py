# ============================================================================
# SOURCE DOCUMENT RESOLVER
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Recipe step input resolution
# PURPOSE: Find exactly which prior artifacts feed a recipe step
# CREATED: 18 OCT 2026
# ============================================================================
"""
Source Document Resolver

Given a job and the ordered input rules of a recipe step, returns one
SourceDocument per rule, in rule order.

Each rule type has a strategy: an ordered list of candidate tiers, each a
column-filtered query against one store (newest first). The driver walks
the tiers and keeps the first candidate that:

1. belongs to the job's iteration (seed prompts, project resources and the
   initial user prompt stored without an iteration are project-wide and
   exempt)
2. matches the rule's document_key, if the rule has one, by column value,
   by the key embedded in the file name, or by contribution type
3. has not already been returned for the same (type, document_key) in
   this call

A picked document without a full storage location raises
DialecticStoreError. Optional rules with no match are left out. A required
rule with no match raises SourceDocumentNotFoundError.

Tier table:
    seed_prompt       resources      seed prompts of the stage/iteration, then project-wide
    header_context    contributions  latest header_context edits (same model)
    document          resources      rendered documents, then contributions
    project_resource  resources      project resources of the iteration, then
                                     project-wide (or the initial prompt)
    contribution      contributions  latest edits of the stage/iteration
    feedback          feedback       feedback rows of the stage/iteration

After resolution, linked project resources take document_relationships from
their source contribution, and feedback documents take the source_group of
the resolved document they annotate (``X_feedback.md`` annotates ``X.md``).
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Set

from psycopg_pool import AsyncConnectionPool

from core.contracts import InputRuleType, ResourceType, SourceTable
from core.errors import DialecticNotFoundError, DialecticStoreError, SourceDocumentNotFoundError
from core.logging import get_logger, log_context, ComponentType
from core.models import GenerationJob, InputRule, SourceDocument
from core.paths import parse_file_name
from infrastructure.storage import ContentStorage
from repositories import ContributionRepository, FeedbackRepository, JobRepository, ResourceRepository

logger = get_logger(__name__, component=ComponentType.RESOLVER)

INITIAL_USER_PROMPT_KEY = ResourceType.INITIAL_USER_PROMPT.value

# Rule types whose resources may be stored without an iteration
PROJECT_WIDE_RULE_TYPES = frozenset({InputRuleType.SEED_PROMPT, InputRuleType.PROJECT_RESOURCE})

FEEDBACK_SUFFIX = "_feedback.md"

CandidateTier = Callable[[], Awaitable[List[SourceDocument]]]


@dataclass(frozen=True)
class JobScope:
    """Identifiers of the job that every lookup is scoped to."""
    project_id: str
    session_id: str
    stage_slug: str
    iteration_number: int
    model_id: Optional[str] = None
    source_contribution_id: Optional[str] = None

    @classmethod
    def from_job(cls, job: GenerationJob) -> "JobScope":
        payload = job.payload
        return cls(
            project_id=payload.projectId,
            session_id=payload.sessionId,
            stage_slug=payload.stageSlug,
            iteration_number=payload.iterationNumber,
            model_id=payload.model_id or None,
            source_contribution_id=getattr(payload, "sourceContributionId", None),
        )


def is_initial_user_prompt_rule(rule: InputRule) -> bool:
    return (
        rule.type == InputRuleType.PROJECT_RESOURCE
        and (rule.document_key or "").lower() == INITIAL_USER_PROMPT_KEY
    )


def matches_document_key(document: SourceDocument, document_key: Optional[str]) -> bool:
    """Case-insensitive match on column value, file-name key or contribution type."""
    if not document_key:
        return True
    wanted = document_key.lower()
    parsed = parse_file_name(document.file_name)
    candidates = (
        document.document_key,
        parsed.document_key if parsed else None,
        document.contribution_type,
    )
    return any(c is not None and c.lower() == wanted for c in candidates)


class _ResolutionPass:
    """
    State of one find_source_documents call.

    Tracks the ids already returned per (type, document_key).
    """

    def __init__(self, scope: JobScope):
        self.scope = scope
        self.used: Dict[tuple, Set[str]] = defaultdict(set)

    def in_iteration(self, document: SourceDocument, rule: InputRule) -> bool:
        if document.iteration_number is None and rule.type in PROJECT_WIDE_RULE_TYPES:
            return True
        return document.iteration_number == self.scope.iteration_number

    def pick(self, rule: InputRule, candidates: Sequence[SourceDocument]) -> Optional[SourceDocument]:
        used = self.used[rule.reuse_key]
        # The initial prompt's key is its resource_type, already filtered on
        document_key = None if is_initial_user_prompt_rule(rule) else rule.document_key
        for document in candidates:
            if document.id in used:
                continue
            if not self.in_iteration(document, rule):
                continue
            if not matches_document_key(document, document_key):
                continue
            if not document.has_storage:
                raise DialecticStoreError(
                    f"Source document {document.id} is missing required storage information "
                    f"(file_name, storage_bucket, or storage_path).",
                    code="SOURCE_DOCUMENT_MISSING_STORAGE",
                    details={"id": document.id, "source_table": document.source_table.value},
                )
            used.add(document.id)
            return document
        return None


class SourceDocumentResolver:
    """Service that resolves recipe step inputs to stored documents."""

    def __init__(self, pool: AsyncConnectionPool, storage: Optional[ContentStorage] = None):
        """
        Initialize the resolver.

        Args:
            pool: Database connection pool
            storage: Content storage, needed only by load_contents()
        """
        self.pool = pool
        self.storage = storage
        self.resource_repo = ResourceRepository(pool)
        self.contribution_repo = ContributionRepository(pool)
        self.feedback_repo = FeedbackRepository(pool)
        self.job_repo = JobRepository(pool)

        self._strategies: Dict[InputRuleType, Callable[[InputRule, JobScope], List[CandidateTier]]] = {
            InputRuleType.SEED_PROMPT: self._seed_prompt_tiers,
            InputRuleType.HEADER_CONTEXT: self._header_context_tiers,
            InputRuleType.DOCUMENT: self._document_tiers,
            InputRuleType.PROJECT_RESOURCE: self._project_resource_tiers,
            InputRuleType.CONTRIBUTION: self._contribution_tiers,
            InputRuleType.FEEDBACK: self._feedback_tiers,
        }

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def find_source_documents(
        self,
        job: GenerationJob,
        rules: Sequence[InputRule],
    ) -> List[SourceDocument]:
        """
        Resolve every rule of a recipe step for a job.

        Returns:
            One document per resolved rule, in rule order

        Raises:
            SourceDocumentNotFoundError: a required rule matched nothing unused
            DialecticStoreError: a store query failed
        """
        scope = JobScope.from_job(job)
        resolution = _ResolutionPass(scope)
        documents: List[SourceDocument] = []

        with log_context(job_id=job.id, session_id=scope.session_id, stage_slug=scope.stage_slug):
            for rule in rules:
                document = await self._resolve_rule(resolution, rule)
                if document is None:
                    if rule.is_required:
                        logger.warning(
                            f"Required {rule.type.value} input not found "
                            f"(document_key={rule.document_key}, slug={rule.slug!r})"
                        )
                        raise SourceDocumentNotFoundError(rule.type.value, rule.document_key)
                    logger.debug(f"Optional {rule.type.value} input not found, skipping")
                    continue
                documents.append(document)

            documents = await self._attach_relationships(documents)
            logger.info(f"Resolved {len(documents)} source documents for {len(rules)} rules")
        return documents

    async def find_for_job_id(
        self,
        job_id: str,
        rules: Sequence[InputRule],
        include_content: bool = False,
    ) -> List[SourceDocument]:
        """Resolve inputs for a stored job, optionally loading their content."""
        job = await self.job_repo.get(job_id)
        if job is None:
            raise DialecticNotFoundError(f"Job {job_id} not found.", code="JOB_NOT_FOUND")
        documents = await self.find_source_documents(job, rules)
        if include_content:
            documents = await self.load_contents(documents)
        return documents

    async def load_contents(self, documents: Sequence[SourceDocument]) -> List[SourceDocument]:
        """
        Download the bytes of each document.

        Returns copies with ``content`` set; the first failed download raises.
        """
        if self.storage is None:
            raise DialecticStoreError("Content storage is not configured.")

        loaded: List[SourceDocument] = []
        for document in documents:
            if not document.has_storage:
                raise DialecticStoreError(
                    f"Document {document.id} has no storage location.",
                    details={"id": document.id, "source_table": document.source_table.value},
                )
            content = await self.storage.download_text(document.object_path, document.storage_bucket)
            loaded.append(document.model_copy(update={"content": content}))
        return loaded

    # =========================================================================
    # DRIVER
    # =========================================================================

    async def _resolve_rule(self, resolution: _ResolutionPass, rule: InputRule) -> Optional[SourceDocument]:
        tiers = self._strategies[rule.type](rule, resolution.scope)
        for tier in tiers:
            document = resolution.pick(rule, await tier())
            if document is not None:
                return document
        return None

    async def _attach_relationships(self, documents: List[SourceDocument]) -> List[SourceDocument]:
        """Copy document_relationships from the source contribution of linked resources."""
        linked_ids = {
            d.source_contribution_id
            for d in documents
            if d.source_table == SourceTable.PROJECT_RESOURCE and d.source_contribution_id
        }
        if linked_ids:
            contributions = await self.contribution_repo.get_many(sorted(linked_ids))
            enriched = []
            for document in documents:
                source = contributions.get(document.source_contribution_id or "")
                if document.source_table == SourceTable.PROJECT_RESOURCE and source is not None:
                    document = document.model_copy(update={"document_relationships": source.document_relationships})
                enriched.append(document)
            documents = enriched
        return self._group_feedback(documents)

    def _group_feedback(self, documents: List[SourceDocument]) -> List[SourceDocument]:
        """Give each feedback document the source_group of the document it annotates."""
        source_groups: Dict[str, str] = {}
        for document in documents:
            group = (document.document_relationships or {}).get("source_group")
            if document.source_table != SourceTable.FEEDBACK and group and document.file_name:
                source_groups[document.file_name.removesuffix(".md")] = group

        grouped = []
        for document in documents:
            relationships = document.document_relationships or {}
            if document.source_table == SourceTable.FEEDBACK and not relationships.get("source_group"):
                base_name = (document.file_name or "").removesuffix(FEEDBACK_SUFFIX)
                if base_name in source_groups:
                    group = source_groups[base_name]
                    document = document.model_copy(
                        update={"document_relationships": {**relationships, "source_group": group}}
                    )
                    logger.debug(f"Feedback {document.file_name} grouped with {base_name}.md (source_group={group})")
                else:
                    logger.debug(f"Feedback {document.file_name} has no matching document, left ungrouped")
            grouped.append(document)
        return grouped

    # =========================================================================
    # STRATEGIES
    # =========================================================================

    def _resources(self, rule_type: InputRuleType, **filters) -> CandidateTier:
        async def fetch() -> List[SourceDocument]:
            rows = await self.resource_repo.find_by(**filters)
            return [SourceDocument.from_resource(r, rule_type) for r in rows]
        return fetch

    def _contributions(self, rule_type: InputRuleType, **filters) -> CandidateTier:
        async def fetch() -> List[SourceDocument]:
            rows = await self.contribution_repo.find_by(**filters)
            return [SourceDocument.from_contribution(c, rule_type) for c in rows]
        return fetch

    def _seed_prompt_tiers(self, rule: InputRule, scope: JobScope) -> List[CandidateTier]:
        filters = dict(
            project_id=scope.project_id,
            resource_type=ResourceType.SEED_PROMPT,
            stage_slug=rule.stage_filter,
        )
        return [
            self._resources(rule.type, iteration_number=scope.iteration_number, **filters),
            self._resources(rule.type, **filters),
        ]

    def _header_context_tiers(self, rule: InputRule, scope: JobScope) -> List[CandidateTier]:
        return [self._contributions(
            rule.type,
            session_id=scope.session_id,
            iteration_number=scope.iteration_number,
            is_latest_edit=True,
            contribution_type="header_context",
            stage=rule.stage_filter,
            model_id=scope.model_id,
        )]

    def _document_tiers(self, rule: InputRule, scope: JobScope) -> List[CandidateTier]:
        return [
            self._resources(
                rule.type,
                project_id=scope.project_id,
                session_id=scope.session_id,
                resource_type=ResourceType.RENDERED_DOCUMENT,
                stage_slug=rule.stage_filter,
                iteration_number=scope.iteration_number,
                source_contribution_id=scope.source_contribution_id,
            ),
            self._contributions(
                rule.type,
                session_id=scope.session_id,
                iteration_number=scope.iteration_number,
                is_latest_edit=True,
                stage=rule.stage_filter,
            ),
        ]

    def _project_resource_tiers(self, rule: InputRule, scope: JobScope) -> List[CandidateTier]:
        if is_initial_user_prompt_rule(rule):
            return [self._resources(
                rule.type,
                project_id=scope.project_id,
                resource_type=ResourceType.INITIAL_USER_PROMPT,
            )]

        linked_id = scope.source_contribution_id if rule.linked_to_contribution else None
        filters = dict(
            project_id=scope.project_id,
            resource_type=ResourceType.PROJECT_RESOURCE,
            stage_slug=rule.stage_filter,
            source_contribution_id=linked_id,
        )
        return [
            self._resources(rule.type, iteration_number=scope.iteration_number, **filters),
            self._resources(rule.type, **filters),
        ]

    def _contribution_tiers(self, rule: InputRule, scope: JobScope) -> List[CandidateTier]:
        return [self._contributions(
            rule.type,
            session_id=scope.session_id,
            iteration_number=scope.iteration_number,
            is_latest_edit=True,
            stage=rule.stage_filter,
        )]

    def _feedback_tiers(self, rule: InputRule, scope: JobScope) -> List[CandidateTier]:
        async def fetch() -> List[SourceDocument]:
            rows = await self.feedback_repo.find_by(
                session_id=scope.session_id,
                iteration_number=scope.iteration_number,
                stage_slug=rule.stage_filter,
            )
            return [SourceDocument.from_feedback(f, rule.type) for f in rows]
        return [fetch]


__all__ = [
    "SourceDocumentResolver",
    "JobScope",
    "matches_document_key",
    "is_initial_user_prompt_rule",
]
