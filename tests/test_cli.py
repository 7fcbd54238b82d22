"""Tests for the ``python -m datavault`` command line."""

import json

import pytest

from datavault.__main__ import build_parser, main
from datavault.database import Database
from datavault.services import ServiceContainer
from tests.conftest import OWNER_ID, make_item_data


@pytest.fixture
def cli_database(tmp_path, monkeypatch: pytest.MonkeyPatch) -> str:
    """File store that the CLI opens through ``Database.from_settings``."""
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setattr(Database, "from_settings", classmethod(lambda cls, db_settings=None: cls(url)))
    return url


class TestParser:
    @staticmethod
    def test_export_defaults() -> None:
        args = build_parser().parse_args(["export", OWNER_ID])

        assert args.fmt == "json"
        assert args.audit is False
        assert args.output is None

    @staticmethod
    def test_rejects_unknown_format() -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["export", OWNER_ID, "--format", "xml"])


class TestMain:
    @staticmethod
    def test_no_command_exits_with_help() -> None:
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 1

    @staticmethod
    def test_init_db(cli_database: str) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["init-db"])
        assert exc.value.code == 0

    @staticmethod
    def test_export_writes_file(cli_database: str, tmp_path) -> None:
        db = Database(cli_database)
        db.create_all()
        ServiceContainer.build(db).registry.create(OWNER_ID, make_item_data())
        db.dispose()
        output = tmp_path / "export.json"

        with pytest.raises(SystemExit) as exc:
            main(["export", OWNER_ID, "--output", str(output)])

        assert exc.value.code == 0
        document = json.loads(output.read_text(encoding="utf-8"))
        assert document["itemCount"] == 1

    @staticmethod
    def test_domain_error_exits_nonzero(cli_database: str, capsys) -> None:
        # No schema: the store query fails and surfaces as StoreUnavailable
        with pytest.raises(SystemExit) as exc:
            main(["export", OWNER_ID, "--audit"])

        assert exc.value.code == 1
        assert "ERROR" in capsys.readouterr().out
