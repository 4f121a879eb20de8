"""
Invoice Fields Data Class.

This module defines the record produced for every extracted document,
along with the invoice-type and frequency tags assigned by the
classifier.
"""

import json
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from invoice_tracker.utils.helpers import parse_iso_date


class InvoiceType(str, Enum):
    """Short classification tag summarizing what an invoice bills for."""

    PS = "PS"
    MAINT = "Maint"
    SUB = "Sub"
    HOSTING = "Hosting"
    MS = "MS"
    HW = "HW"
    THIRD_PARTY = "3PP"
    CREDIT_MEMO = "Credit Memo"


class Frequency(str, Enum):
    """Recurrence cadence inferred from an invoice's service text."""

    ADHOC = "adhoc"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    BI_ANNUAL = "bi-annual"
    TRI_ANNUAL = "tri-annual"
    ANNUAL = "annual"


SUPPORTED_CURRENCIES = ("USD", "AUD", "EUR", "GBP", "SGD")


@dataclass
class InvoiceFields:
    """
    Represents the fields extracted from one invoice document.

    Every field has a defined value even when extraction found nothing,
    so a record is always complete and storable.

    Attributes:
        invoice_number: Invoice identifier, empty when no label matched
        client: Billed client name, "Unknown Client" when unresolved
        invoice_date: Issue date, today when unresolved
        due_date: Payment due date, today + 30 days when unresolved
        amount_due: Signed total, negative for credit memos
        currency: ISO currency code
        services: Service description excerpt
        customer_contract: Customer contract identifier
        oracle_contract: Oracle contract identifier
        po_number: Purchase order number
        invoice_type: Classification tag
        frequency: Recurrence tag
        source_file: Original filename of the document
        warnings: Fields that fell back to their defaults

    Example:
        >>> fields = InvoiceFields(invoice_number="4600123", client="Acme Health")
        >>> fields.to_dict()["invoice_type"]
        'PS'
    """
    invoice_number: str = ""
    client: str = "Unknown Client"
    invoice_date: date = field(default_factory=date.today)
    due_date: date = field(default_factory=lambda: date.today() + timedelta(days=30))
    amount_due: Decimal = Decimal("0")
    currency: str = "USD"
    services: str = "No service description found"
    customer_contract: Optional[str] = None
    oracle_contract: Optional[str] = None
    po_number: Optional[str] = None
    invoice_type: InvoiceType = InvoiceType.PS
    frequency: Frequency = Frequency.ADHOC

    source_file: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def is_credit_memo(self) -> bool:
        return self.invoice_type is InvoiceType.CREDIT_MEMO

    @property
    def is_recurring(self) -> bool:
        return self.frequency is not Frequency.ADHOC

    def add_warning(self, warning: str) -> None:
        """Add a warning message."""
        self.warnings.append(warning)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to a JSON-friendly dictionary.

        Dates become ISO strings, the amount a string to keep its precision
        and the tags their plain values.
        """
        return {
            'invoice_number': self.invoice_number,
            'client': self.client,
            'invoice_date': self.invoice_date.isoformat(),
            'due_date': self.due_date.isoformat(),
            'amount_due': str(self.amount_due),
            'currency': self.currency,
            'services': self.services,
            'customer_contract': self.customer_contract,
            'oracle_contract': self.oracle_contract,
            'po_number': self.po_number,
            'invoice_type': self.invoice_type.value,
            'frequency': self.frequency.value,
            'source_file': self.source_file,
            'warnings': list(self.warnings),
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'InvoiceFields':
        """
        Create InvoiceFields from a dictionary produced by ``to_dict``.

        Missing or malformed dates fall back to the same defaults used
        during extraction.
        """
        today = date.today()
        invoice_date = parse_iso_date(data.get('invoice_date')) or today
        due_date = parse_iso_date(data.get('due_date')) or today + timedelta(days=30)

        return cls(
            invoice_number=data.get('invoice_number') or "",
            client=data.get('client') or "Unknown Client",
            invoice_date=invoice_date,
            due_date=due_date,
            amount_due=Decimal(str(data.get('amount_due') or "0")),
            currency=data.get('currency') or "USD",
            services=data.get('services') or "No service description found",
            customer_contract=data.get('customer_contract') or None,
            oracle_contract=data.get('oracle_contract') or None,
            po_number=data.get('po_number') or None,
            invoice_type=InvoiceType(data.get('invoice_type') or InvoiceType.PS.value),
            frequency=Frequency(data.get('frequency') or Frequency.ADHOC.value),
            source_file=data.get('source_file'),
            warnings=list(data.get('warnings') or []),
        )

    def __repr__(self) -> str:
        return (
            f"InvoiceFields("
            f"invoice={self.invoice_number or 'N/A'}, "
            f"client={self.client}, "
            f"amount={self.amount_due} {self.currency}, "
            f"type={self.invoice_type.value}, "
            f"frequency={self.frequency.value})"
        )
