# ============================================================================
# CLAUDE CONTEXT - SCHEMA MODULE
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Schema generation from Pydantic models
# PURPOSE: Generate PostgreSQL DDL from Pydantic models (single source of truth)
# LAST_REVIEWED: 18 OCT 2026
# ============================================================================

from core.schema.ddl_utils import IndexBuilder, TriggerBuilder, SchemaUtils
from core.schema.sql_generator import PydanticToSQL

__all__ = [
    "PydanticToSQL",
    "IndexBuilder",
    "TriggerBuilder",
    "SchemaUtils",
]
