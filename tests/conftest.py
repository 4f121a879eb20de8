"""Shared fixtures for the invoice tracker test suite."""

from datetime import date

import pytest

from config import ConfigurationManager
from invoice_tracker.extraction import FieldExtractor
from invoice_tracker.output_handler import DatabaseHandler
from invoice_tracker.pipeline import ExtractionPipeline

MANAGED_SERVICES_INVOICE = """TAX INVOICE
Invoice Number: 4600123
Invoice Date: 23-Aug-2024
Due Date: 22-Sep-2024
Customer Contract: CC-2024-01
PO Number: 4500012345

BILL TO:
Acme Health Pty
Ltd
ATTN: Accounts Payable
PO Box 123
Adelaide 5001
AU
Description:
Monthly Managed Services for August
Item Subtotal
Invoice Total: $1,200.00
Currency: AUD
"""

BARE_DOCUMENT = """Thank you for your business.
One-time setup fee
Total: $250.00
"""


@pytest.fixture(autouse=True)
def reset_config():
    """Give every test a freshly loaded configuration."""
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


@pytest.fixture
def today() -> date:
    return date(2024, 10, 15)


@pytest.fixture
def extractor(today: date) -> FieldExtractor:
    return FieldExtractor(clock=lambda: today)


@pytest.fixture
def pipeline(extractor: FieldExtractor) -> ExtractionPipeline:
    return ExtractionPipeline(extractor=extractor)


@pytest.fixture
def store(tmp_path) -> DatabaseHandler:
    return DatabaseHandler(str(tmp_path / "tracker.db"))


@pytest.fixture
def managed_services_invoice() -> str:
    return MANAGED_SERVICES_INVOICE


@pytest.fixture
def bare_document() -> str:
    return BARE_DOCUMENT
