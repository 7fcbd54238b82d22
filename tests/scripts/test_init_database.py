"""Tests for the schema initialization script."""

from sqlalchemy import inspect

from datavault.database import Database
from datavault.scripts.init_database import parse_args, run


class TestParseArgs:
    @staticmethod
    def test_defaults() -> None:
        args = parse_args([])
        assert args.drop is False
        assert args.check is False

    @staticmethod
    def test_flags() -> None:
        args = parse_args(["--drop", "--check"])
        assert args.drop is True
        assert args.check is True


class TestRun:
    @staticmethod
    def test_creates_tables(tmp_path, capsys) -> None:
        db = Database(f"sqlite:///{tmp_path / 'init.db'}")
        try:
            assert run(db, parse_args([])) == 0
            tables = set(inspect(db.engine).get_table_names())
        finally:
            db.dispose()

        assert {"personal_data_items", "consent_records", "audit_entries"} <= tables
        assert "initialization complete" in capsys.readouterr().out

    @staticmethod
    def test_check_leaves_schema_untouched(tmp_path) -> None:
        db = Database(f"sqlite:///{tmp_path / 'check.db'}")
        try:
            assert run(db, parse_args(["--check"])) == 0
            assert inspect(db.engine).get_table_names() == []
        finally:
            db.dispose()
