# ============================================================================
# SCHEMA GENERATION TESTS
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# STATUS: Tests - Pydantic to DDL
# PURPOSE: Verify the DDL generated from the dialectic table models
# CREATED: 18 OCT 2026
# ============================================================================
"""
Schema Generation Tests

No database needed: statements are rendered with as_string(None).

Run with:
    pytest tests/test_schema.py -v
"""

import pytest
from pydantic import BaseModel

from core.models import (
    GenerationJob,
    ProjectResource,
    TABLE_MODELS,
    TriggerLog,
)
from core.schema.sql_generator import PydanticToSQL


def _ddl(stmt) -> str:
    return stmt.as_string(None)


# ============================================================================
# GENERATE ALL
# ============================================================================

class TestGenerateAll:
    def test_every_table_model_has_a_create_statement(self):
        generator = PydanticToSQL(schema_name="dialectic")
        ddl_text = " ".join(_ddl(s) for s in generator.generate_all())

        for model in TABLE_MODELS:
            assert f'"dialectic"."{model.__sql_table__}"' in ddl_text, model.__name__

    def test_schema_comes_first(self):
        statements = PydanticToSQL(schema_name="dialectic").generate_all()
        assert "CREATE SCHEMA" in _ddl(statements[0])

    def test_enums_created_before_tables(self):
        statements = [_ddl(s) for s in PydanticToSQL(schema_name="dialectic").generate_all()]

        first_table = next(i for i, s in enumerate(statements) if s.startswith("CREATE TABLE"))
        enum_positions = [i for i, s in enumerate(statements) if "AS ENUM" in s]

        assert enum_positions
        assert max(enum_positions) < first_table

    def test_registers_dialectic_enums(self):
        generator = PydanticToSQL(schema_name="dialectic")
        generator.generate_all()

        assert {"job_status", "job_type", "resource_type"} <= set(generator.enums)

    def test_updated_at_triggers(self):
        ddl_text = " ".join(_ddl(s) for s in PydanticToSQL(schema_name="dialectic").generate_all())
        assert "updated_at" in ddl_text
        assert "TRIGGER" in ddl_text


# ============================================================================
# TABLES
# ============================================================================

class TestGenerateTable:
    def test_generation_job_payload_is_jsonb(self):
        ddl = _ddl(PydanticToSQL().generate_table(GenerationJob))

        assert '"payload" JSONB NOT NULL' in ddl
        assert '"is_test_job" BOOLEAN NOT NULL DEFAULT false' in ddl
        assert 'PRIMARY KEY ("id")' in ddl

    def test_generation_job_status_uses_enum_type(self):
        ddl = _ddl(PydanticToSQL().generate_table(GenerationJob))
        assert '"status" "dialectic"."job_status"' in ddl

    def test_trigger_log_serial_key(self):
        ddl = _ddl(PydanticToSQL().generate_table(TriggerLog))

        assert '"log_id" SERIAL' in ddl
        assert '"data" JSONB NOT NULL DEFAULT' in ddl

    def test_resource_type_enum_column(self):
        generator = PydanticToSQL()
        ddl = _ddl(generator.generate_table(ProjectResource))

        assert '"resource_type" "dialectic"."resource_type" NOT NULL' in ddl
        assert "resource_type" in generator.enums

    def test_indexes_from_metadata(self):
        indexes = [_ddl(s) for s in PydanticToSQL().generate_indexes(GenerationJob)]
        assert any("idx_generation_jobs_session" in s for s in indexes)

    def test_model_without_table_rejected(self):
        class Untabled(BaseModel):
            name: str

        with pytest.raises(ValueError, match="missing __sql_table__"):
            PydanticToSQL().generate_table(Untabled)
