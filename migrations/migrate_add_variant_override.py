#!/usr/bin/env python3
"""Migration script to add variant_override column to movement_concepts table.

This migration adds a variant_override column to the movement_concepts table:
- variant_override (VARCHAR(32), nullable)
  - NULL = the variant follows from view_mode and names
  - a form variant value (e.g. "subcontratos") forces that variant

The migration backfills the two subcategories that used to be recognised by
their hard-coded ids:
- f40a8fda-69e6-4e81-bc8a-464359cd8498 -> "subcontratos"
- 7ef27d3f-ef17-49c3-a392-55282b3576ff -> "personal"

Usage:
    python migrations/migrate_add_variant_override.py [--db-path PATH]
"""

import sys
from pathlib import Path

# Add src to path so we can import movekit modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import text, inspect
from movekit.database.factories import create_sqlite_database
from movekit.domain.variants import LEGACY_VARIANT_OVERRIDES


def column_exists(engine, table_name: str, column_name: str) -> bool:
    """Check if a column exists in a table."""
    inspector = inspect(engine)
    columns = [col["name"] for col in inspector.get_columns(table_name)]
    return column_name in columns


def migrate_database(database_path: str | None = None) -> None:
    """Migrate database to add variant_override column and backfill it.

    Args:
        database_path: Path to database file. If None, uses default location.

    Raises:
        RuntimeError: If the concepts table is missing
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()

    try:
        session = db.session_factory()
        try:
            engine = session.bind
            if engine is None:
                raise RuntimeError("Could not get database engine from session")
        finally:
            session.close()

        inspector = inspect(engine)
        if "movement_concepts" not in inspector.get_table_names():
            raise RuntimeError(
                "Table 'movement_concepts' does not exist. Please initialize the database schema first."
            )

        if column_exists(engine, "movement_concepts", "variant_override"):
            print("Column already present: variant_override exists in movement_concepts table")
        else:
            print("Starting migration: adding variant_override column...")
            with engine.begin() as conn:
                conn.execute(text("ALTER TABLE movement_concepts ADD COLUMN variant_override VARCHAR(32)"))
            print("  Added column: variant_override")

        print("Backfilling overrides of legacy subcategories...")
        with engine.begin() as conn:
            for concept_id, variant in LEGACY_VARIANT_OVERRIDES.items():
                result = conn.execute(
                    text(
                        "UPDATE movement_concepts SET variant_override = :variant "
                        "WHERE id = :concept_id AND variant_override IS NULL"
                    ),
                    {"variant": variant.value, "concept_id": concept_id},
                )
                print(f"  {concept_id}: {result.rowcount} concept(s) set to '{variant.value}'")

        print("Migration completed successfully!")

    except Exception as e:
        print(f"Migration failed: {e}")
        raise
    finally:
        db.disconnect()


def main():
    """Main entry point for migration script."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Migrate database to add variant_override column"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to database file (overrides MOVEKIT_DB_PATH environment variable)",
    )
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path)
        return 0
    except Exception as e:
        print(f"\nMigration failed: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
