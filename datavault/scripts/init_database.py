"""Initialize the DataVault database schema.

Creates every table defined in the SQLAlchemy models.

Usage:
    python -m datavault.scripts.init_database
    python -m datavault.scripts.init_database --drop   # Drop and recreate
    python -m datavault.scripts.init_database --check  # Connectivity only
"""

import argparse
import sys

from sqlalchemy import inspect

from datavault.database import Database
from datavault.settings import settings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(description="Initialize DataVault database schema")
    add_arguments(parser)
    return parser.parse_args(argv)


def add_arguments(parser: argparse.ArgumentParser) -> None:
    """Register the script's options on a parser."""
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop existing tables before creating (destroys all data)",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only check connection, don't modify schema",
    )


def print_table_summary(db: Database) -> None:
    """List the tables present in the store.

    Args:
        db: Store handle.
    """
    tables = sorted(inspect(db.engine).get_table_names())
    print("\n📊 Database Tables:")
    print("-" * 40)
    for table in tables:
        print(f"   • {table}")
    print("-" * 40)
    print(f"   Total: {len(tables)} tables")


def _print_banner(db: Database) -> None:
    print("=" * 50)
    print("🔐 DataVault Database Initialization")
    print("=" * 50)
    print(f"   Backend: {db.engine.dialect.name}")
    print(f"   Environment: {settings.environment}")
    print("=" * 50)


def run(db: Database, args: argparse.Namespace) -> int:
    """Check, drop or create the schema as requested.

    Args:
        db: Store handle.
        args: Parsed options.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    _print_banner(db)

    if not db.check_connection():
        print("❌ Cannot connect to database")
        print("   Check DATABASE_URL or the POSTGRES_* settings")
        return 1
    print("✅ Database connection successful")

    if args.check:
        print_table_summary(db)
        return 0

    if args.drop:
        print("🗑️  Dropping existing tables...")
        db.drop_all()
        print("✅ Tables dropped")

    print("📋 Creating tables...")
    db.create_all()
    print("✅ Tables created")

    print_table_summary(db)
    print("\n✅ Database initialization complete!")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    args = parse_args(argv)
    settings.paths.ensure_directories()
    db = Database.from_settings()
    try:
        return run(db, args)
    finally:
        db.dispose()


if __name__ == "__main__":
    sys.exit(main())
