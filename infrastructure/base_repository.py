# ============================================================================
# BASE REPOSITORY - ERROR HANDLING AND QUERY PATTERNS
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Infrastructure - Base repository patterns
# PURPOSE: Common error handling, equality queries and inserts for repositories
# CREATED: 18 OCT 2026
# ============================================================================
"""
Base Repository Patterns

AsyncBaseRepository gives every PostgreSQL repository:
- An error context that turns driver errors into DialecticStoreError
- Equality-only lookups over a whitelist of dedicated columns
- Model inserts with JSONB adaptation

Lookups never build JSON-path predicates: every filter is ``column = value``
on a column the repository declares filterable.
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Any, ClassVar, Dict, FrozenSet, Generic, List, Optional, Sequence, Type, TypeVar

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool
from pydantic import BaseModel

from core.errors import DialecticError, DialecticStoreError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Recency ordering shared by every artifact lookup
RECENCY_ORDER = (("updated_at", "DESC"), ("created_at", "DESC"))


def to_db_params(data: Dict[str, Any]) -> Dict[str, Any]:
    """Adapt model values for psycopg: enums to values, dicts/lists to JSONB."""
    params = {}
    for key, value in data.items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, (dict, list)):
            value = Json(value)
        params[key] = value
    return params


class AsyncBaseRepository(Generic[ModelT]):
    """
    Async PostgreSQL repository base.

    Subclasses set ``model``, ``table`` and ``filterable_columns``.
    """

    model: ClassVar[Type[BaseModel]]
    table: ClassVar[sql.Identifier]
    filterable_columns: ClassVar[FrozenSet[str]] = frozenset()

    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def _error_context(self, operation: str, entity_id: Optional[str] = None):
        """
        Wrap a store operation so failures surface as DialecticStoreError.

        Example:
            with self._error_context("job insert", job.id):
                await conn.execute(...)
        """
        try:
            yield
        except DialecticError:
            raise
        except Exception as e:
            error_msg = f"{operation} failed"
            if entity_id:
                error_msg += f" for {entity_id}"
            self.logger.error(f"{error_msg}: {e}")
            raise DialecticStoreError(f"{error_msg}: {e}", details=str(e)) from e

    def _row_to_model(self, row: Dict[str, Any]) -> ModelT:
        return self.model.model_validate(row)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def _where_clause(self, filters: Dict[str, Any]) -> sql.Composable:
        unknown = set(filters) - self.filterable_columns
        if unknown:
            raise ValueError(f"{self.__class__.__name__} cannot filter on {sorted(unknown)}")
        if not filters:
            return sql.SQL("")
        return sql.SQL(" WHERE ") + sql.SQL(" AND ").join(
            sql.SQL("{} = {}").format(sql.Identifier(col), sql.Placeholder(col))
            for col in filters
        )

    async def find_by(
        self,
        order_by: Sequence[tuple] = RECENCY_ORDER,
        limit: Optional[int] = None,
        **filters: Any,
    ) -> List[ModelT]:
        """
        Rows matching every ``column = value`` filter.

        Filters whose value is None are dropped, not turned into IS NULL.
        """
        filters = {k: v for k, v in filters.items() if v is not None}
        query = sql.SQL("SELECT * FROM {}").format(self.table) + self._where_clause(filters)
        if order_by:
            query += sql.SQL(" ORDER BY ") + sql.SQL(", ").join(
                sql.SQL("{} {}").format(sql.Identifier(col), sql.SQL(direction))
                for col, direction in order_by
            )
        if limit:
            query += sql.SQL(" LIMIT {}").format(sql.Literal(limit))

        with self._error_context(f"{self.model.__name__} lookup"):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(query, to_db_params(filters))
                rows = await result.fetchall()
        return [self._row_to_model(row) for row in rows]

    async def get(self, entity_id: str) -> Optional[ModelT]:
        with self._error_context(f"{self.model.__name__} get", entity_id):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("SELECT * FROM {} WHERE id = %(id)s").format(self.table),
                    {"id": entity_id},
                )
                row = await result.fetchone()
        return self._row_to_model(row) if row else None

    async def get_many(self, entity_ids: Sequence[str]) -> Dict[str, ModelT]:
        """Batch read by id; missing ids are absent from the result."""
        if not entity_ids:
            return {}
        with self._error_context(f"{self.model.__name__} batch get"):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("SELECT * FROM {} WHERE id = ANY(%(ids)s)").format(self.table),
                    {"ids": list(entity_ids)},
                )
                rows = await result.fetchall()
        models = [self._row_to_model(row) for row in rows]
        return {m.id: m for m in models}

    # =========================================================================
    # INSERTS
    # =========================================================================

    async def _insert_row(self, row: Dict[str, Any], entity_id: Optional[str] = None) -> Dict[str, Any]:
        """INSERT one row (only the given columns) and return the stored row."""
        columns = list(row)
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            self.table,
            sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            sql.SQL(", ").join(sql.Placeholder(c) for c in columns),
        )
        with self._error_context(f"{self.model.__name__} insert", entity_id):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(query, to_db_params(row))
                return await result.fetchone()

    async def insert(self, entity: ModelT) -> ModelT:
        row = entity.model_dump(exclude_none=True, exclude=self._computed_fields())
        stored = await self._insert_row(row, getattr(entity, "id", None))
        return self._row_to_model(stored)

    def _computed_fields(self) -> set:
        return set(self.model.model_computed_fields)


__all__ = [
    "AsyncBaseRepository",
    "RECENCY_ORDER",
    "to_db_params",
]
