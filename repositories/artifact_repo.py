# ============================================================================
# ARTIFACT REPOSITORIES
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Project resources, contributions, feedback
# PURPOSE: Equality-filtered reads and inserts for the artifact stores
# CREATED: 18 OCT 2026
# ============================================================================
"""
Artifact Repositories

The three stores the source document resolver reads. Every lookup is
``find_by(column=value, ...)`` over dedicated columns, newest first.
"""

import logging
from typing import List

from core.models import Contribution, ProjectResource, StageFeedback
from infrastructure.base_repository import AsyncBaseRepository
from .database import TABLE_CONTRIBUTIONS, TABLE_FEEDBACK, TABLE_PROJECT_RESOURCES

logger = logging.getLogger(__name__)


class ResourceRepository(AsyncBaseRepository[ProjectResource]):
    """Repository for ProjectResource entities."""

    model = ProjectResource
    table = TABLE_PROJECT_RESOURCES
    filterable_columns = frozenset({
        "project_id",
        "session_id",
        "resource_type",
        "stage_slug",
        "iteration_number",
        "document_key",
        "source_contribution_id",
    })

    async def create(self, resource: ProjectResource) -> ProjectResource:
        created = await self.insert(resource)
        logger.info(f"Registered {created.resource_type.value} resource {created.id} at {created.object_path}")
        return created


class ContributionRepository(AsyncBaseRepository[Contribution]):
    """Repository for Contribution entities (written by the worker)."""

    model = Contribution
    table = TABLE_CONTRIBUTIONS
    filterable_columns = frozenset({
        "session_id",
        "stage",
        "iteration_number",
        "is_latest_edit",
        "contribution_type",
        "model_id",
    })


class FeedbackRepository(AsyncBaseRepository[StageFeedback]):
    """Repository for StageFeedback entities."""

    model = StageFeedback
    table = TABLE_FEEDBACK
    filterable_columns = frozenset({
        "session_id",
        "project_id",
        "stage_slug",
        "iteration_number",
        "feedback_type",
    })

    async def create_many(self, records: List[StageFeedback]) -> List[StageFeedback]:
        """Insert feedback rows one by one; the first failure aborts."""
        created = [await self.insert(record) for record in records]
        logger.info(f"Inserted {len(created)} feedback rows")
        return created


__all__ = ["ResourceRepository", "ContributionRepository", "FeedbackRepository"]
