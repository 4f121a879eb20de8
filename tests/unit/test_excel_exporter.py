"""Unit tests for ExcelExporter."""

from datetime import date
from decimal import Decimal

import pytest
from openpyxl import load_workbook

from invoice_tracker.extraction import Frequency, InvoiceType
from invoice_tracker.forecasting import ExpectedInvoice
from invoice_tracker.output_handler import ExcelExporter

INVOICE_ROW = {
    'invoice_number': "4600123",
    'client': "Acme Health",
    'invoice_date': "2024-08-23",
    'due_date': "2024-09-22",
    'amount_due': "1200.00",
    'currency': "AUD",
    'services': "Monthly Managed Services",
    'customer_contract': None,
    'oracle_contract': None,
    'po_number': "4500012345",
    'invoice_type': "MS",
    'frequency': "monthly",
    'source_file': "scan_001.txt",
}


@pytest.fixture
def expected() -> ExpectedInvoice:
    return ExpectedInvoice(
        client="Acme Health",
        customer_contract=None,
        invoice_type=InvoiceType.MS,
        expected_amount=Decimal("1200.00"),
        currency="AUD",
        expected_date=date(2024, 9, 23),
        frequency=Frequency.MONTHLY,
        last_invoice_number="4600123",
        last_invoice_date="2024-08-23",
    )


def test_export_writes_both_sheets(tmp_path, expected: ExpectedInvoice) -> None:
    """Test invoices and forecasts land on their own sheets."""
    path = ExcelExporter().export([INVOICE_ROW], [expected], str(tmp_path / "report.xlsx"))

    workbook = load_workbook(path)
    assert workbook.sheetnames == ["Invoices", "Expected Invoices"]

    invoices = workbook["Invoices"]
    assert invoices["A1"].value == "Invoice Number"
    assert invoices["A2"].value == "4600123"
    assert invoices["C2"].value == "23-Aug-24"
    assert invoices["E2"].value == 1200.0
    assert invoices.freeze_panes == "A2"

    forecasts = workbook["Expected Invoices"]
    assert forecasts["F2"].value == "23-Sep-24"
    assert forecasts["J2"].value == "No"


def test_export_without_rows(tmp_path) -> None:
    """Test an empty store still produces headers."""
    path = ExcelExporter().export([], None, str(tmp_path / "empty.xlsx"))

    workbook = load_workbook(path)
    assert workbook["Expected Invoices"].max_row == 1


def test_control_characters_are_stripped(tmp_path) -> None:
    """Test control characters from scanned text do not break the export."""
    row = dict(INVOICE_ROW, client="Acme\x0bHealth", services="Hosting\x00 fees")

    path = ExcelExporter().export([row], [], str(tmp_path / "scanned.xlsx"))

    invoices = load_workbook(path)["Invoices"]
    assert invoices["B2"].value == "AcmeHealth"
    assert invoices["L2"].value == "Hosting fees"


def test_default_filename() -> None:
    """Test the configured filename pattern is timestamped."""
    name = ExcelExporter().get_default_filename()

    assert name.startswith("invoices_")
    assert name.endswith(".xlsx")
