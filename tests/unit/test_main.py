"""Unit tests for the command-line entry point."""

from pathlib import Path

import pytest

from invoice_tracker.output_handler import DatabaseHandler
from invoice_tracker.utils.exceptions import (
    DatabaseError,
    InputError,
    OutputError,
    UnsupportedFileTypeError,
)
from main import collect_documents, main, parse_arguments


def test_collect_documents_filters_directory(tmp_path: Path) -> None:
    """Test only .txt files in a directory are collected, in name order."""
    (tmp_path / "b.txt").write_text("b", encoding="utf-8")
    (tmp_path / "a.TXT").write_text("a", encoding="utf-8")
    (tmp_path / "scan.pdf").write_bytes(b"%PDF")

    assert [p.name for p in collect_documents(str(tmp_path))] == ["a.TXT", "b.txt"]


def test_collect_documents_rejects_unsupported_file(tmp_path: Path) -> None:
    """Test a single file of an unsupported type is rejected."""
    scan = tmp_path / "scan.pdf"
    scan.write_bytes(b"%PDF")

    with pytest.raises(UnsupportedFileTypeError):
        collect_documents(str(scan))


def test_collect_documents_missing_path(tmp_path: Path) -> None:
    """Test a missing input path is reported."""
    with pytest.raises(FileNotFoundError):
        collect_documents(str(tmp_path / "nowhere"))


def test_arguments_require_an_action() -> None:
    """Test running with no action exits with a usage error."""
    with pytest.raises(SystemExit):
        parse_arguments([])


def test_today_argument_is_parsed() -> None:
    """Test --today becomes a date."""
    args = parse_arguments(["--cleanup", "--today", "2024-10-15"])

    assert args.today.isoformat() == "2024-10-15"


def test_main_processes_directory(tmp_path: Path, managed_services_invoice: str) -> None:
    """Test a full run stores the invoice, forecasts it and writes Excel."""
    inbox = tmp_path / "inbox"
    inbox.mkdir()
    (inbox / "Acme Health_4600123.txt").write_text(managed_services_invoice, encoding="utf-8")
    database = tmp_path / "tracker.db"
    excel = tmp_path / "report.xlsx"

    code = main([
        "--input", str(inbox),
        "--database", str(database),
        "--excel", str(excel),
        "--today", "2024-10-15",
    ])

    assert code == 0
    assert excel.exists()
    store = DatabaseHandler(str(database))
    assert [row['invoice_number'] for row in store.get_invoice_rows()] == ["4600123"]
    assert len(store.get_expected_invoices()) == 1


def test_main_reports_missing_input(tmp_path: Path) -> None:
    """Test a missing input path exits with status 1."""
    code = main(["--input", str(tmp_path / "nowhere"), "--database", str(tmp_path / "t.db")])

    assert code == 1


def test_input_errors_share_a_base() -> None:
    """Test input problems can be caught as one family."""
    assert issubclass(UnsupportedFileTypeError, InputError)
    assert issubclass(DatabaseError, OutputError)
