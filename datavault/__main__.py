"""DataVault command line. Allows python -m datavault."""

import argparse
import sys
from pathlib import Path


def run_init_db(args: argparse.Namespace) -> int:
    """Create (or check) the database schema."""
    from datavault.database import Database
    from datavault.scripts.init_database import run

    db = Database.from_settings()
    try:
        return run(db, args)
    finally:
        db.dispose()


def run_api() -> int:
    """Start the FastAPI server."""
    import uvicorn

    from datavault.settings import settings

    print("🌐 Starting DataVault API...")
    uvicorn.run(
        "datavault.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.reload,
    )
    return 0


def run_export(owner_id: str, fmt: str, output: Path | None, audit: bool) -> int:
    """Export an owner's personal data or audit trail to a file."""
    from datavault.database import Database
    from datavault.services import AuditContext, ServiceContainer
    from datavault.settings import settings

    db = Database.from_settings()
    try:
        services = ServiceContainer.build(db)
        context = AuditContext(user_agent="datavault-cli")
        if audit:
            payload = services.audit.export(owner_id, fmt, context=context)
        else:
            payload = services.lifecycle.export_all(owner_id, fmt, context=context)
    finally:
        db.dispose()

    if output is None:
        settings.paths.ensure_directories()
        output = settings.paths.exports_dir / payload.filename
    output.write_text(payload.content, encoding="utf-8")
    print(f"✅ Exported {payload.item_count} records to {output}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    from datavault.scripts.init_database import add_arguments

    parser = argparse.ArgumentParser(
        prog="datavault",
        description="DataVault - personal data, consent and audit lifecycle",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m datavault init-db                      # Create tables
  python -m datavault init-db --drop               # Recreate tables
  python -m datavault api                          # FastAPI server
  python -m datavault export OWNER --format csv    # Portability export
  python -m datavault export OWNER --audit         # Audit trail export
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command")

    init_parser = subparsers.add_parser("init-db", help="Create database schema")
    add_arguments(init_parser)

    subparsers.add_parser("api", help="FastAPI server")

    export_parser = subparsers.add_parser("export", help="Export an owner's data")
    export_parser.add_argument("owner_id", help="Owner whose data is exported")
    export_parser.add_argument("--format", dest="fmt", choices=["json", "csv"], default="json")
    export_parser.add_argument("--output", type=Path, help="Destination file")
    export_parser.add_argument("--audit", action="store_true", help="Export the audit trail instead")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    from datavault.errors import DataVaultError

    try:
        if args.command == "init-db":
            code = run_init_db(args)
        elif args.command == "api":
            code = run_api()
        else:
            code = run_export(args.owner_id, args.fmt, args.output, args.audit)
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted")
        sys.exit(130)
    except DataVaultError as e:
        print(f"\n❌ ERROR: {e.message}")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
