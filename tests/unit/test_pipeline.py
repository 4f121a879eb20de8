"""Unit tests for ExtractionPipeline."""

import json
from datetime import timedelta
from decimal import Decimal

from invoice_tracker.extraction import Frequency, InvoiceFields, InvoiceType
from invoice_tracker.pipeline import ExtractionPipeline


def test_pipeline_classifies_extracted_fields(pipeline: ExtractionPipeline, managed_services_invoice: str) -> None:
    """Test extraction and classification run as one step."""
    fields = pipeline.extract(managed_services_invoice, "scan_001.txt")

    assert fields.invoice_number == "4600123"
    assert fields.invoice_type is InvoiceType.MS
    assert fields.frequency is Frequency.MONTHLY
    assert fields.is_recurring


def test_pipeline_returns_complete_record(pipeline: ExtractionPipeline, bare_document: str, today) -> None:
    """Test a document with almost nothing in it still yields every field."""
    fields = pipeline.extract(bare_document, "doc_1.txt")

    assert fields.client == "Unknown Client"
    assert fields.amount_due == Decimal("250.00")
    assert fields.due_date == today + timedelta(days=30)
    assert fields.invoice_type is InvoiceType.PS
    assert fields.frequency is Frequency.ADHOC


def test_negative_total_is_credit_memo(pipeline: ExtractionPipeline) -> None:
    """Test a credit total forces the credit memo type."""
    text = "Credit Memo 4012345\nDescription:\nMonthly hosting\nItem Subtotal\nTotal: ($300.00)\n"
    fields = pipeline.extract(text, "")

    assert fields.amount_due == Decimal("-300.00")
    assert fields.is_credit_memo


def test_fields_survive_dict_conversion(pipeline: ExtractionPipeline, managed_services_invoice: str) -> None:
    """Test the dictionary form restores an equal record."""
    fields = pipeline.extract(managed_services_invoice, "scan_001.txt")

    restored = InvoiceFields.from_dict(fields.to_dict())

    assert restored == fields
    assert fields.to_dict()["invoice_type"] == "MS"


def test_fields_as_json(pipeline: ExtractionPipeline, managed_services_invoice: str) -> None:
    """Test the JSON form carries plain values."""
    data = json.loads(pipeline.extract(managed_services_invoice, "scan_001.txt").to_json())

    assert data["amount_due"] == "1200.00"
    assert data["invoice_date"] == "2024-08-23"
    assert data["frequency"] == "monthly"


def test_period_with_extra_spacing_is_quarterly(pipeline: ExtractionPipeline) -> None:
    """Test "every 3  months" still classifies as quarterly."""
    text = "Description:\nSupport billed every 3  months\nItem Subtotal\nTotal: $900.00\n"
    fields = pipeline.extract(text, "")

    assert fields.services == "Support billed every 3 months"
    assert fields.frequency is Frequency.QUARTERLY


def test_service_text_beginning_with_total(pipeline: ExtractionPipeline) -> None:
    """Test a description that starts with "Total" keeps its frequency."""
    text = "Description:\nTotal Care Support - Monthly\nItem Subtotal\nInvoice Total: $500.00\n"
    fields = pipeline.extract(text, "")

    assert fields.services == "Total Care Support - Monthly"
    assert fields.frequency is Frequency.MONTHLY
