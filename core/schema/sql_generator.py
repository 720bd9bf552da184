# ============================================================================
# CLAUDE CONTEXT - PYDANTIC TO SQL GENERATOR
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Core - DDL generation from Pydantic models
# PURPOSE: Generate PostgreSQL CREATE statements from Pydantic models
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: PydanticToSQL
# DEPENDENCIES: pydantic, psycopg
# ============================================================================
"""
Pydantic to PostgreSQL Schema Generator.

Pydantic models are the single source of truth for the dialectic schema.

Model Metadata Convention:
    Models define SQL metadata via ClassVar attributes:
    - __sql_table__: Table name
    - __sql_schema__: Schema name
    - __sql_primary_key__: Primary key column(s)
    - __sql_foreign_keys__: Dict of {column: "schema.table(column)"}
    - __sql_indexes__: List of (name, columns[, partial_where]) tuples or
      dicts with name/columns/unique/partial_where
    - __sql_serial_columns__: Columns that should be SERIAL

Usage:
    generator = PydanticToSQL(schema_name="dialectic")
    for stmt in generator.generate_all():
        cursor.execute(stmt)
"""

import logging
import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Type, Union, get_args, get_origin

from annotated_types import MaxLen
from psycopg import sql
from pydantic import BaseModel
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined

from core.schema.ddl_utils import IndexBuilder, SchemaUtils, TriggerBuilder

logger = logging.getLogger(__name__)


class PydanticToSQL:
    """
    Convert Pydantic models to PostgreSQL DDL statements.

    Enum-typed fields become schema-qualified PostgreSQL ENUM types, created
    before any table that uses them.
    """

    TYPE_MAP = {
        str: "VARCHAR",
        int: "INTEGER",
        float: "DOUBLE PRECISION",
        bool: "BOOLEAN",
        datetime: "TIMESTAMPTZ",
        dict: "JSONB",
        list: "JSONB",
    }

    def __init__(self, schema_name: str = "dialectic", destructive: bool = False):
        """
        Args:
            schema_name: Default PostgreSQL schema name
            destructive: If True, DROP+CREATE enum types (data loss risk).
        """
        self.schema_name = schema_name
        self.destructive = destructive
        self.enums: Dict[str, Type[Enum]] = {}

    # =========================================================================
    # METADATA EXTRACTION
    # =========================================================================

    @staticmethod
    def get_model_metadata(model: Type[BaseModel]) -> Dict[str, Any]:
        """Read the __sql_* ClassVars of a model."""
        metadata = {
            "table": getattr(model, "__sql_table__", None),
            "schema": getattr(model, "__sql_schema__", "dialectic"),
            "primary_key": getattr(model, "__sql_primary_key__", []),
            "foreign_keys": getattr(model, "__sql_foreign_keys__", {}),
            "indexes": getattr(model, "__sql_indexes__", []),
            "serial_columns": getattr(model, "__sql_serial_columns__", []),
        }
        if isinstance(metadata["primary_key"], str):
            metadata["primary_key"] = [metadata["primary_key"]]
        return metadata

    # =========================================================================
    # TYPE CONVERSION
    # =========================================================================

    @staticmethod
    def _unwrap_optional(field_type: Any) -> tuple:
        """Return (inner_type, is_optional)."""
        if get_origin(field_type) is Union:
            args = [a for a in get_args(field_type) if a is not type(None)]
            if len(args) < len(get_args(field_type)):
                return (args[0] if len(args) == 1 else Union[tuple(args)]), True
        return field_type, False

    def python_type_to_sql(self, field_type: Type, field_info: FieldInfo) -> str:
        """Convert a Python annotation to a PostgreSQL type name."""
        actual_type, _ = self._unwrap_optional(field_type)

        if get_origin(actual_type) in (dict, list, Union):
            return "JSONB"

        if actual_type is str:
            for constraint in field_info.metadata or []:
                if isinstance(constraint, MaxLen):
                    return f"VARCHAR({constraint.max_length})"
            return "TEXT"

        if isinstance(actual_type, type) and issubclass(actual_type, Enum):
            enum_name = re.sub(r"(?<!^)(?=[A-Z])", "_", actual_type.__name__).lower()
            self.enums[enum_name] = actual_type
            return enum_name

        return self.TYPE_MAP.get(actual_type, "JSONB")

    # =========================================================================
    # ENUM GENERATION
    # =========================================================================

    def generate_enum(self, enum_name: str, enum_class: Type[Enum], schema: str) -> List[sql.Composable]:
        """Create an ENUM type, skipping it when it already exists unless destructive."""
        values_list = [member.value for member in enum_class]

        if self.destructive:
            return [
                sql.SQL("DROP TYPE IF EXISTS {}.{} CASCADE").format(
                    sql.Identifier(schema), sql.Identifier(enum_name)
                ),
                sql.SQL("CREATE TYPE {}.{} AS ENUM ({})").format(
                    sql.Identifier(schema),
                    sql.Identifier(enum_name),
                    sql.SQL(", ").join(sql.Literal(v) for v in values_list),
                ),
            ]

        values_str = ", ".join(f"'{v}'" for v in values_list)
        do_block = f"""
DO $$
BEGIN
    IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = '{enum_name}' AND typnamespace = (SELECT oid FROM pg_namespace WHERE nspname = '{schema}')) THEN
        CREATE TYPE "{schema}"."{enum_name}" AS ENUM ({values_str});
    END IF;
END$$
"""
        return [sql.SQL(do_block)]

    # =========================================================================
    # TABLE GENERATION
    # =========================================================================

    def _column_default(self, field_name: str, field_info: FieldInfo, sql_type: str, schema: str) -> List[sql.Composable]:
        default = field_info.default
        if default is not None and default is not PydanticUndefined:
            if isinstance(default, Enum):
                return [
                    sql.SQL(" DEFAULT "),
                    sql.Literal(default.value),
                    sql.SQL("::"),
                    sql.Identifier(schema),
                    sql.SQL("."),
                    sql.Identifier(sql_type),
                ]
            if isinstance(default, bool):
                return [sql.SQL(" DEFAULT true" if default else " DEFAULT false")]
            if isinstance(default, (str, int, float)):
                return [sql.SQL(" DEFAULT "), sql.Literal(default)]

        if field_info.default_factory is not None:
            if field_name in ("created_at", "updated_at"):
                return [sql.SQL(" DEFAULT NOW()")]
            if sql_type == "JSONB":
                empty = "'[]'" if field_info.default_factory is list else "'{}'"
                return [sql.SQL(f" DEFAULT {empty}")]

        return []

    def generate_table(self, model: Type[BaseModel]) -> sql.Composed:
        """Generate CREATE TABLE IF NOT EXISTS from a model's fields."""
        meta = self.get_model_metadata(model)
        table_name = meta["table"]
        schema_name = meta["schema"]
        primary_key = meta["primary_key"]

        if not table_name:
            raise ValueError(f"Model {model.__name__} missing __sql_table__ attribute")

        logger.debug(f"Generating table {schema_name}.{table_name} from {model.__name__}")

        columns: List[sql.Composable] = []
        for field_name, field_info in model.model_fields.items():
            sql_type = self.python_type_to_sql(field_info.annotation, field_info)
            _, is_optional = self._unwrap_optional(field_info.annotation)

            if field_name in meta["serial_columns"]:
                sql_type = "SERIAL"

            parts: List[sql.Composable] = [sql.Identifier(field_name), sql.SQL(" ")]
            if sql_type in self.enums:
                parts.extend([sql.Identifier(schema_name), sql.SQL("."), sql.Identifier(sql_type)])
            else:
                parts.append(sql.SQL(sql_type))

            if not is_optional and field_name not in primary_key and sql_type != "SERIAL":
                parts.append(sql.SQL(" NOT NULL"))

            parts.extend(self._column_default(field_name, field_info, sql_type, schema_name))
            columns.append(sql.Composed(parts))

        constraints: List[sql.Composable] = []
        if primary_key:
            constraints.append(
                sql.SQL("PRIMARY KEY ({})").format(
                    sql.SQL(", ").join(sql.Identifier(col) for col in primary_key)
                )
            )

        for fk_column, fk_reference in meta["foreign_keys"].items():
            match = re.match(r"(\w+)\.(\w+)\((\w+)\)", fk_reference)
            if match:
                ref_schema, ref_table, ref_column = match.groups()
                constraints.append(
                    sql.SQL("FOREIGN KEY ({}) REFERENCES {}.{} ({}) ON DELETE CASCADE").format(
                        sql.Identifier(fk_column),
                        sql.Identifier(ref_schema),
                        sql.Identifier(ref_table),
                        sql.Identifier(ref_column),
                    )
                )

        return sql.SQL("CREATE TABLE IF NOT EXISTS {}.{} ({})").format(
            sql.Identifier(schema_name),
            sql.Identifier(table_name),
            sql.SQL(", ").join(columns + constraints),
        )

    # =========================================================================
    # INDEX GENERATION
    # =========================================================================

    def generate_indexes(self, model: Type[BaseModel]) -> List[sql.Composed]:
        """Generate CREATE INDEX statements from __sql_indexes__."""
        meta = self.get_model_metadata(model)
        result = []

        for idx_def in meta["indexes"]:
            unique = False
            if isinstance(idx_def, tuple):
                name = idx_def[0]
                columns = idx_def[1] if len(idx_def) > 1 else []
                partial_where = idx_def[2] if len(idx_def) > 2 else None
            elif isinstance(idx_def, dict):
                name = idx_def.get("name")
                columns = idx_def.get("columns", [])
                partial_where = idx_def.get("partial_where")
                unique = idx_def.get("unique", False)
            else:
                continue

            if not columns or not name:
                continue

            result.append(IndexBuilder.btree(
                meta["schema"], meta["table"], columns,
                name=name,
                unique=unique,
                partial_where=partial_where,
            ))

        return result

    # =========================================================================
    # COMPLETE SCHEMA GENERATION
    # =========================================================================

    def generate_all(self, models: Optional[Sequence[Type[BaseModel]]] = None) -> List[sql.Composable]:
        """
        Generate complete DDL for the dialectic tables.

        Args:
            models: Table models in dependency order (defaults to TABLE_MODELS)
        """
        if models is None:
            from core.models import TABLE_MODELS
            models = TABLE_MODELS

        tables = [self.generate_table(model) for model in models]

        statements: List[sql.Composable] = [
            SchemaUtils.create_schema(self.schema_name),
            SchemaUtils.set_search_path(self.schema_name),
        ]

        # generate_table() registers the enum types it meets
        for enum_name, enum_class in self.enums.items():
            statements.extend(self.generate_enum(enum_name, enum_class, self.schema_name))

        statements.extend(tables)

        for model in models:
            statements.extend(self.generate_indexes(model))

        statements.append(TriggerBuilder.updated_at_function(self.schema_name))
        for model in models:
            if "updated_at" in model.model_fields:
                meta = self.get_model_metadata(model)
                statements.extend(TriggerBuilder.updated_at_trigger(meta["schema"], meta["table"]))

        logger.info(f"Generated {len(statements)} DDL statements for schema {self.schema_name}")
        return statements

    def execute(self, conn, dry_run: bool = False) -> int:
        """
        Execute all DDL statements on a sync psycopg connection.

        Returns:
            Number of statements executed
        """
        statements = self.generate_all()

        if dry_run:
            for stmt in statements:
                logger.info(f"[DRY RUN] {stmt.as_string(conn)[:100]}...")
            return len(statements)

        with conn.cursor() as cur:
            for stmt in statements:
                cur.execute(stmt)

        logger.info(f"Executed {len(statements)} DDL statements")
        return len(statements)


__all__ = ["PydanticToSQL"]
