"""Tests for choosing and creating the ledger database file."""

from pathlib import Path

from hisab.database.factories import (
    DB_PATH_ENV,
    create_sqlite_database,
    resolve_database_path,
)


def test_explicit_path_wins(monkeypatch, tmp_path):
    monkeypatch.setenv(DB_PATH_ENV, str(tmp_path / "env.db"))
    assert resolve_database_path(str(tmp_path / "cli.db")) == tmp_path / "cli.db"


def test_env_path(monkeypatch, tmp_path):
    monkeypatch.setenv(DB_PATH_ENV, str(tmp_path / "env.db"))
    assert resolve_database_path() == tmp_path / "env.db"


def test_empty_env_falls_back_to_home(monkeypatch, tmp_path):
    monkeypatch.setenv(DB_PATH_ENV, "")
    monkeypatch.setenv("HOME", str(tmp_path))
    assert resolve_database_path() == tmp_path / ".hisab" / "hisab.db"


def test_tilde_is_expanded(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    assert resolve_database_path("~/books/shop.db") == tmp_path / "books" / "shop.db"


def test_missing_directory_is_created(tmp_path):
    target = tmp_path / "nested" / "ledger.db"
    db = create_sqlite_database(str(target))
    try:
        assert target.parent.is_dir()
        assert Path(db.database_url.removeprefix("sqlite:///")) == target
    finally:
        db.disconnect()
