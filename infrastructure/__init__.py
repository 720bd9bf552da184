# ============================================================================
# INFRASTRUCTURE MODULE
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Infrastructure - Storage and repository base
# PURPOSE: Azure blob content storage and shared repository patterns
# CREATED: 18 OCT 2026
# ============================================================================
"""
Infrastructure module for the dialectic core.

Provides:
- AsyncBaseRepository: error context and equality queries for repositories
- BlobRepository / ContentStorage: artifact bytes in Azure Blob Storage
"""

from infrastructure.base_repository import AsyncBaseRepository, RECENCY_ORDER, to_db_params
from infrastructure.storage import BlobRepository, ContentStorage, get_content_storage

__all__ = [
    "AsyncBaseRepository",
    "RECENCY_ORDER",
    "to_db_params",
    "BlobRepository",
    "ContentStorage",
    "get_content_storage",
]
