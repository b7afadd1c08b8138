"""
Tests for the command-line entry point.

Tests cover:
- purchases command output and CSV export
- Argument parsing and exit codes
"""

import csv
import sys
from datetime import date, datetime

import pytest

import src.main as cli
from src.services import purchase_service


@pytest.fixture
def cli_db(test_db, monkeypatch, organization, storage_location, items):
    """Committed purchases in the test database; real database setup skipped."""
    monkeypatch.setattr(cli, "initialize_app_database", lambda: None)
    session = test_db()
    for issued_at, comment in [
        (datetime(2026, 1, 5), "January"),
        (datetime(2026, 1, 20), "Late January"),
        (datetime(2026, 2, 2), "February"),
    ]:
        purchase_service.create_purchase(
            organization.id,
            storage_location.id,
            [(items[0].id, 3)],
            issued_at=issued_at,
            comment=comment,
            session=session,
        )
    session.commit()
    return session


def test_purchases_cmd_prints_range(cli_db, capsys):
    assert cli.purchases_cmd(date(2026, 1, 1), date(2026, 1, 31)) == 0

    out = capsys.readouterr().out
    assert "Late January" in out
    assert "February" not in out
    assert "2 purchase(s)" in out


def test_purchases_cmd_csv(cli_db, tmp_path, capsys):
    path = tmp_path / "jan.csv"

    assert cli.purchases_cmd(date(2026, 1, 1), date(2026, 2, 28), csv_path=str(path)) == 0

    assert "Exported 3 purchase(s)" in capsys.readouterr().out
    with open(path, newline="", encoding="utf-8") as fh:
        assert len(list(csv.reader(fh))) == 4


def test_main_without_command(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["essentials-tracker"])
    assert cli.main() == 1


def test_main_rejects_bad_date(monkeypatch):
    monkeypatch.setattr(sys, "argv", ["essentials-tracker", "purchases", "--start", "01/02/2026", "--end", "2026-02-01"])
    with pytest.raises(SystemExit) as exc_info:
        cli.main()
    assert exc_info.value.code == 2


def test_main_dispatches_purchases(cli_db, monkeypatch, capsys):
    monkeypatch.setattr(
        sys, "argv", ["essentials-tracker", "purchases", "--start", "2026-02-01", "--end", "2026-02-28"]
    )
    assert cli.main() == 0
    assert "1 purchase(s)" in capsys.readouterr().out
