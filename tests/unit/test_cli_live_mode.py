from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from pos_import.cli.__main__ import main as cli_main
from pos_import.db.store import InMemoryStore


def _mock_connection() -> tuple[MagicMock, MagicMock]:
    conn = MagicMock()
    cursor = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    return conn, cursor


def _suppliers_file(workbook, temp_workdir: Path) -> Path:
    path = temp_workdir / "data" / "proveedores.xlsx"
    path.write_bytes(workbook("suppliers", [["ACME", None, "30-1"] + [None] * 7]))
    return path


def test_cli_live_mode_commits(temp_workdir: Path, write_config: Path, workbook, monkeypatch, capsys):
    """Live path with a mocked connection: one transaction, committed, then closed."""
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    for var in ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE"):
        monkeypatch.delenv(var, raising=False)
    conn, cursor = _mock_connection()
    seen: list[object] = []

    def fake_store(cur):
        seen.append(cur)
        return InMemoryStore()

    path = _suppliers_file(workbook, temp_workdir)
    with patch("pos_import.cli.__main__.psycopg2.connect", return_value=conn) as connect, \
         patch("pos_import.cli.__main__.PostgresStore", side_effect=fake_store):
        code = cli_main(["import", str(path), "--type", "suppliers"])

    out = capsys.readouterr().out
    assert code == 0
    assert "mode=live" in out
    assert seen == [cursor]
    assert connect.call_args.args[0] == "host=localhost port=5432 user=appuser dbname=posdb password=secret"
    assert conn.autocommit is False
    conn.commit.assert_called_once()
    conn.rollback.assert_not_called()
    conn.close.assert_called_once()


def test_cli_live_mode_rolls_back_on_crash(temp_workdir: Path, write_config: Path, workbook, monkeypatch):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    conn, _ = _mock_connection()

    path = _suppliers_file(workbook, temp_workdir)
    with patch("pos_import.cli.__main__.psycopg2.connect", return_value=conn), \
         patch("pos_import.cli.__main__._import_with", side_effect=RuntimeError("boom")):
        with pytest.raises(RuntimeError):
            cli_main(["import", str(path), "--type", "suppliers"])

    conn.commit.assert_not_called()
    conn.rollback.assert_called_once()
    conn.close.assert_called_once()
