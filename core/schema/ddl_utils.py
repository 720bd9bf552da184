# ============================================================================
# CLAUDE CONTEXT - DDL UTILITIES
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - Reusable DDL builders
# PURPOSE: Index, trigger and schema statements as psycopg sql.Composed
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: IndexBuilder, TriggerBuilder, SchemaUtils
# DEPENDENCIES: psycopg
# ============================================================================
"""
DDL Utilities

Small static builders used by PydanticToSQL. Every identifier goes through
sql.Identifier; nothing is string-formatted into SQL.
"""

from typing import List, Optional, Sequence, Union

from psycopg import sql


class IndexBuilder:
    """Builder for CREATE INDEX statements."""

    @staticmethod
    def btree(
        schema: str,
        table: str,
        columns: Union[str, Sequence[str]],
        name: Optional[str] = None,
        unique: bool = False,
        partial_where: Optional[str] = None,
    ) -> sql.Composed:
        """
        Create a B-tree index.

        Args:
            schema: Schema name
            table: Table name
            columns: Column name(s) to index
            name: Index name (defaults to idx_{table}_{columns})
            unique: Create a UNIQUE index
            partial_where: Optional WHERE clause for a partial index
        """
        cols = [columns] if isinstance(columns, str) else list(columns)
        idx_name = name or f"idx_{table}_{'_'.join(cols)}"

        stmt = sql.SQL("CREATE {unique}INDEX IF NOT EXISTS {name} ON {schema}.{table} ({columns})").format(
            unique=sql.SQL("UNIQUE " if unique else ""),
            name=sql.Identifier(idx_name),
            schema=sql.Identifier(schema),
            table=sql.Identifier(table),
            columns=sql.SQL(", ").join(sql.Identifier(c) for c in cols),
        )

        if partial_where:
            stmt = sql.SQL("{} WHERE {}").format(stmt, sql.SQL(partial_where))

        return stmt


class TriggerBuilder:
    """Builder for the updated_at maintenance trigger."""

    @staticmethod
    def updated_at_function(schema: str) -> sql.Composed:
        return sql.SQL("""
            CREATE OR REPLACE FUNCTION {schema}.update_updated_at_column()
            RETURNS TRIGGER
            LANGUAGE plpgsql
            AS $$
            BEGIN
                NEW.updated_at = NOW();
                RETURN NEW;
            END;
            $$
        """).format(schema=sql.Identifier(schema))

    @staticmethod
    def updated_at_trigger(schema: str, table: str) -> List[sql.Composed]:
        """DROP + CREATE so redeploys are idempotent."""
        trig_name = f"trg_{table}_updated_at"
        params = {
            "name": sql.Identifier(trig_name),
            "schema": sql.Identifier(schema),
            "table": sql.Identifier(table),
        }
        return [
            sql.SQL("DROP TRIGGER IF EXISTS {name} ON {schema}.{table}").format(**params),
            sql.SQL("""
                CREATE TRIGGER {name}
                BEFORE UPDATE ON {schema}.{table}
                FOR EACH ROW
                EXECUTE FUNCTION {schema}.update_updated_at_column()
            """).format(**params),
        ]


class SchemaUtils:
    """Schema-level statements."""

    @staticmethod
    def create_schema(schema: str) -> sql.Composed:
        return sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(sql.Identifier(schema))

    @staticmethod
    def set_search_path(schema: str) -> sql.Composed:
        return sql.SQL("SET search_path TO {}, public").format(sql.Identifier(schema))


__all__ = ["IndexBuilder", "TriggerBuilder", "SchemaUtils"]
