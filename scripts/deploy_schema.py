#!/usr/bin/env python
# ============================================================================
# SCHEMA DEPLOYMENT SCRIPT
# ============================================================================
# EPOCH: 1 - DIALECTIC ORCHESTRATION
# PURPOSE: Deploy dialectic schema to PostgreSQL using PydanticToSQL
# USAGE:
#   python scripts/deploy_schema.py --dry-run    # Print SQL
#   python scripts/deploy_schema.py              # Execute deployment
# ============================================================================

import argparse
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import psycopg

from core.schema import PydanticToSQL
from repositories.database import SCHEMA, get_connection_string


def main():
    parser = argparse.ArgumentParser(
        description="Deploy the dialectic schema to PostgreSQL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  DATABASE_URL          Full PostgreSQL connection string
  POSTGRES_HOST         Database host (default: localhost)
  POSTGRES_DB           Database name (default: postgres)
  POSTGRES_USER         Database user (default: postgres)
  POSTGRES_PASSWORD     Database password
  POSTGRES_PORT         Database port (default: 5432)
  POSTGRES_SSLMODE      SSL mode (default: require)
        """
    )
    parser.add_argument("--dry-run", action="store_true", help="Print DDL without executing")
    parser.add_argument("--connection", type=str, help="PostgreSQL connection string (overrides environment)")
    parser.add_argument("--destructive", action="store_true", help="Drop and recreate enum types")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    generator = PydanticToSQL(schema_name=SCHEMA, destructive=args.destructive)
    conninfo = args.connection or get_connection_string()

    print("=" * 70)
    print(f"DIALECTIC - Schema Deployment ({'DRY RUN' if args.dry_run else 'EXECUTE'})")
    print("=" * 70)

    with psycopg.connect(conninfo, autocommit=True) as conn:
        if args.dry_run:
            for stmt in generator.generate_all():
                print(stmt.as_string(conn).strip() + ";\n")
            return

        count = generator.execute(conn)

    print(f"Executed {count} DDL statements for schema {SCHEMA}")


if __name__ == "__main__":
    main()
