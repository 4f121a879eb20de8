"""Unit tests for FieldExtractor and its strategy functions.

Tests cover:
- Full extraction of a typical invoice
- Fallbacks when fields are missing
- Each client strategy in isolation
- Currency, contract and PO identifiers
- Service description capture, cleaning and rejection
"""

from datetime import date, timedelta
from decimal import Decimal

from invoice_tracker.extraction import FieldExtractor
from invoice_tracker.extraction.field_extractor import (
    CLIENT_STRATEGIES,
    clean_services,
    client_from_bill_to,
    client_from_filename,
    client_from_label,
    client_from_to_line,
    looks_like_address,
    services_from_item_table,
)


def test_extracts_typical_invoice(extractor: FieldExtractor, managed_services_invoice: str) -> None:
    """Test every field of a well-formed invoice."""
    fields = extractor.extract(managed_services_invoice, "scan_001.txt")

    assert fields.invoice_number == "4600123"
    assert fields.client == "Acme Health Pty Ltd"
    assert fields.currency == "AUD"
    assert fields.invoice_date == date(2024, 8, 23)
    assert fields.due_date == date(2024, 9, 22)
    assert fields.amount_due == Decimal("1200.00")
    assert fields.customer_contract == "CC-2024-01"
    assert fields.oracle_contract is None
    assert fields.po_number == "4500012345"
    assert fields.services == "Monthly Managed Services for August"
    assert fields.source_file == "scan_001.txt"
    assert fields.warnings == []


def test_missing_dates_default_to_today(extractor: FieldExtractor, bare_document: str, today: date) -> None:
    """Test no recognizable dates gives today and today + 30 days."""
    fields = extractor.extract(bare_document, "doc_1.txt")

    assert fields.invoice_date == today
    assert fields.due_date == today + timedelta(days=30)
    assert "invoice_date defaulted to today" in fields.warnings


def test_unresolvable_client_is_sentinel(extractor: FieldExtractor, bare_document: str) -> None:
    """Test no BILL TO, no label and an uninformative filename."""
    fields = extractor.extract(bare_document, "doc_1.txt")

    assert fields.client == "Unknown Client"
    assert "client not found" in fields.warnings


def test_missing_fields_never_raise(extractor: FieldExtractor) -> None:
    """Test empty text still yields a complete record."""
    fields = extractor.extract("", "")

    assert fields.invoice_number == ""
    assert fields.client == "Unknown Client"
    assert fields.amount_due == Decimal("0")
    assert fields.currency == "USD"
    assert fields.services == "No service description found"


def test_single_date_serves_as_due_date(extractor: FieldExtractor) -> None:
    """Test the only date token is used for both dates."""
    fields = extractor.extract("Invoice # 4012345\nDate: 13-05-2024\n", "")

    assert fields.invoice_date == date(2024, 5, 13)
    assert fields.due_date == date(2024, 5, 13)


def test_dates_follow_invoice_series(extractor: FieldExtractor) -> None:
    """Test ambiguous dates on a US-series invoice are month first."""
    text = "Invoice No: 4712345\nDate: 04/05/2024\nDue: 05/04/2024\n"
    fields = extractor.extract(text, "")

    assert fields.invoice_date == date(2024, 4, 5)
    assert fields.due_date == date(2024, 5, 4)


# =============================================================================
# INVOICE NUMBER
# =============================================================================

def test_invoice_number_rejects_total(extractor: FieldExtractor) -> None:
    """Test "Invoice Total" is never read as an invoice number."""
    assert extractor.extract_invoice_number("Invoice Total: $5.00") == ""


def test_invoice_number_from_tax_invoice(extractor: FieldExtractor) -> None:
    """Test the "Tax Invoice <number>" layout."""
    assert extractor.extract_invoice_number("Tax Invoice 86001234\n") == "86001234"


def test_invoice_number_from_credit_memo(extractor: FieldExtractor) -> None:
    """Test credit memos are numbered by their own label."""
    assert extractor.extract_invoice_number("Credit Memo 4012345\n") == "4012345"


# =============================================================================
# CLIENT STRATEGIES
# =============================================================================

def test_client_strategies_are_ordered() -> None:
    """Test the cascade order: BILL TO, label, TO line, filename."""
    assert [name for name, _ in CLIENT_STRATEGIES] == ['bill_to', 'label', 'to_line', 'filename']


def test_bill_to_minister_for_health() -> None:
    """Test the alias prefix is stripped and the continuation line joined."""
    text = (
        "BILL TO:\n"
        "Minister for Health aka SA\n"
        "Health\n"
        "GPO Box 287\n"
        "Adelaide SA 5001\n"
        "Description:\n"
        "Annual Support and Maintenance\n"
    )

    assert client_from_bill_to(text) == "SA Health"


def test_bill_to_skips_noise_lines() -> None:
    """Test attention, care-of, PO box and street lines are skipped."""
    text = (
        "BILL TO:\n"
        "ATTN: Finance Team\n"
        "c/o Shared Services\n"
        "PO BOX 99\n"
        "12 King William St\n"
        "Department of Treasury\n"
        "Transaction Type\n"
    )

    assert client_from_bill_to(text) == "Department of Treasury"


def test_bill_to_keeps_punctuation() -> None:
    """Test the BILL TO strategy does not strip punctuation."""
    text = "BILL TO:\nSmith & Sons (Holdings)\nSpecial Instructions\n"

    assert client_from_bill_to(text) == "Smith & Sons (Holdings)"


def test_bill_to_absent() -> None:
    """Test the strategy reports failure when there is no BILL TO block."""
    assert client_from_bill_to("Invoice Number: 1") is None


def test_client_label_skips_field_names() -> None:
    """Test "Customer Number:" is skipped in favour of a later label."""
    text = "Customer Number: 123\nClient: Initech\n"

    assert client_from_label(text) == "Initech"


def test_client_label_strips_punctuation() -> None:
    """Test label captures keep only words, spaces, '&' and '-'."""
    assert client_from_label("Customer: Globex Corporation!\n") == "Globex Corporation"


def test_client_after_to_line() -> None:
    """Test the line after a bare TO: label."""
    assert client_from_to_line("INVOICE\nTO:\nWayne Enterprises\n") == "Wayne Enterprises"


def test_client_to_line_skips_headers() -> None:
    """Test a header on the line after TO: is not a client."""
    assert client_from_to_line("TO:\nSHIP TO:\n") is None


def test_client_from_filename() -> None:
    """Test the client prefix of an uploaded filename."""
    assert client_from_filename("", "Acme Health_4600123.pdf") == "Acme Health"


def test_client_from_generic_filename() -> None:
    """Test generic document words are not client names."""
    assert client_from_filename("", "Invoice_4600123.pdf") is None
    assert client_from_filename("", "doc_1.txt") is None


def test_client_is_truncated(extractor: FieldExtractor) -> None:
    """Test client names are bounded to 100 characters."""
    text = "Customer: " + "A" * 150 + "\n"

    assert len(extractor.extract_client(text)) == 100


# =============================================================================
# CURRENCY AND IDENTIFIERS
# =============================================================================

def test_currency_detection(extractor: FieldExtractor) -> None:
    """Test ISO codes win, then symbols, then the default."""
    assert extractor.extract_currency("Amount in SGD") == "SGD"
    assert extractor.extract_currency("Total € 100") == "EUR"
    assert extractor.extract_currency("Total £50") == "GBP"
    assert extractor.extract_currency("Total $50") == "USD"
    assert extractor.extract_currency("Total 50") == "USD"


def test_dollar_with_aud_mention_is_aud(extractor: FieldExtractor) -> None:
    """Test a dollar amount beside an embedded AUD mention is Australian."""
    assert extractor.extract_currency("Amount $50 (AUDIT ref)") == "AUD"
    assert extractor.extract_currency("Total $500 AUD") == "AUD"


def test_oracle_and_customer_contracts(extractor: FieldExtractor) -> None:
    """Test the Oracle contract is not mistaken for the customer contract."""
    fields = extractor.extract("Oracle Contract: OC-778\nContract #: 55123\n", "")

    assert fields.oracle_contract == "OC-778"
    assert fields.customer_contract == "55123"


def test_bare_po_label(extractor: FieldExtractor) -> None:
    """Test "PO:" at the start of a line."""
    fields = extractor.extract("PO: 4500098765\n", "")

    assert fields.po_number == "4500098765"


def test_po_box_is_not_a_po_number(extractor: FieldExtractor) -> None:
    """Test identifiers must contain a digit."""
    fields = extractor.extract("PO Box Adelaide\n", "")

    assert fields.po_number is None


# =============================================================================
# SERVICES
# =============================================================================

def test_services_from_item_table() -> None:
    """Test capture below the Week Ending Date table header."""
    text = (
        "Description Week Ending Date Qty UOM Unit Price Taxable Extended Price\n"
        "1 Professional Services - Consultant 31-Aug-2024 10 Hours $150.00 No $1,500.00\n"
        "Item Subtotal $1,500.00\n"
    )

    captured = services_from_item_table(text)
    cleaned = clean_services(captured)

    assert captured.startswith("1 Professional Services")
    assert cleaned.startswith("Professional Services - Consultant")
    assert "No $1,500.00" not in cleaned
    assert " 10 " not in cleaned


def test_clean_services_keeps_periods() -> None:
    """Test quantities are dropped but numbers of months are kept."""
    cleaned = clean_services("Annual Support every 3 months 2 licenses")

    assert cleaned == "Annual Support every 3 months licenses"


def test_clean_services_keeps_periods_across_whitespace() -> None:
    """Test a period split by extra spaces or a tab is kept."""
    assert clean_services("Support billed every 3  months") == "Support billed every 3 months"
    assert clean_services("Support billed every 3\tmonths") == "Support billed every 3 months"


def test_clean_services_cuts_repeated_header() -> None:
    """Test text after a repeated "Invoice Number:" header is dropped."""
    cleaned = clean_services("Hosting fees for August\nInvoice Number: 4600123 Invoice Date: 23-08-2024")

    assert cleaned == "Hosting fees for August"


def test_address_boilerplate_detection() -> None:
    """Test address captures are rejected unless they mention a service."""
    assert looks_like_address("SHIP TO: 1 Main Road GPO Box 5")
    assert not looks_like_address("BILL TO reference - Annual Subscription")


def test_address_capture_gives_sentinel(extractor: FieldExtractor) -> None:
    """Test a rejected capture falls back to the sentinel."""
    text = "Description:\nSHIP TO: Level 5, GPO Box 99\nItem Subtotal\n"

    assert extractor.extract_services(text) == "No service description found"


def test_services_are_truncated(extractor: FieldExtractor) -> None:
    """Test service descriptions are bounded to 500 characters."""
    text = "Services:\n" + "Consulting " * 70 + "\nItem Subtotal\n"

    assert len(extractor.extract_services(text)) == 500


def test_services_starting_with_total_are_kept(extractor: FieldExtractor) -> None:
    """Test a description beginning with the word Total is captured whole."""
    text = "Description:\nTotal Care Support - Monthly\nItem Subtotal\nInvoice Total: $500.00\n"

    assert extractor.extract_services(text) == "Total Care Support - Monthly"


def test_services_stop_at_total_line(extractor: FieldExtractor) -> None:
    """Test a Total label on its own line ends the description."""
    text = "Description:\nMonthly hosting\nTotal: $80.00\n"

    assert extractor.extract_services(text) == "Monthly hosting"
