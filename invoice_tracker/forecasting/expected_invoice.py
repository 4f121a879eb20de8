"""
Forecast Record Types.

This module defines the records exchanged with the recurrence forecaster:
    - InvoiceSnapshot: a posted invoice as the store holds it
    - ExpectedInvoice: a forecast of the next instance of a recurring invoice
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

from invoice_tracker.extraction.invoice_fields import Frequency, InvoiceFields, InvoiceType
from invoice_tracker.utils.helpers import parse_iso_date


@dataclass
class InvoiceSnapshot:
    """
    A stored invoice, reduced to what forecasting needs.

    ``invoice_date`` is kept as the stored ISO text; the forecaster
    parses it and skips the group if it is malformed.
    """
    invoice_number: str
    client: str
    customer_contract: Optional[str]
    invoice_type: InvoiceType
    amount_due: Decimal
    currency: str
    invoice_date: str
    frequency: Frequency

    @property
    def contract_key(self) -> str:
        return self.customer_contract or ""

    @classmethod
    def from_fields(cls, fields: InvoiceFields) -> 'InvoiceSnapshot':
        """Build a snapshot from a freshly extracted record."""
        return cls(
            invoice_number=fields.invoice_number,
            client=fields.client,
            customer_contract=fields.customer_contract,
            invoice_type=fields.invoice_type,
            amount_due=fields.amount_due,
            currency=fields.currency,
            invoice_date=fields.invoice_date.isoformat(),
            frequency=fields.frequency,
        )


@dataclass
class ExpectedInvoice:
    """
    Forecast of a recurring invoice believed to be due.

    Attributes:
        client: Client copied from the most recent invoice of the group
        customer_contract: Contract copied from that invoice, None if it had none
        invoice_type: Type copied from that invoice
        expected_amount: Amount copied from that invoice (not recomputed)
        currency: Currency copied from that invoice
        expected_date: Last invoice date plus the frequency interval
        frequency: Recurrence frequency of the group
        last_invoice_number: Provenance
        last_invoice_date: Provenance, as stored ISO text
        acknowledged: Whether a user has acknowledged the forecast
        acknowledged_date: When it was acknowledged
        id: Generated identifier
        created_date: When the forecast was created
    """
    client: str
    customer_contract: Optional[str]
    invoice_type: InvoiceType
    expected_amount: Decimal
    currency: str
    expected_date: date
    frequency: Frequency
    last_invoice_number: str
    last_invoice_date: str
    acknowledged: bool = False
    acknowledged_date: Optional[date] = None
    id: str = field(default_factory=lambda: uuid4().hex)
    created_date: date = field(default_factory=date.today)

    @property
    def identity_key(self) -> Tuple[str, str, date]:
        """Two forecasts with the same key are duplicates."""
        return self.client, self.customer_contract or "", self.expected_date

    def is_stale(self, today: date, retention_days: int = 7) -> bool:
        """True if acknowledged more than ``retention_days`` before ``today``."""
        if not self.acknowledged or self.acknowledged_date is None:
            return False
        return self.acknowledged_date < today - timedelta(days=retention_days)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'client': self.client,
            'customer_contract': self.customer_contract,
            'invoice_type': self.invoice_type.value,
            'expected_amount': str(self.expected_amount),
            'currency': self.currency,
            'expected_date': self.expected_date.isoformat(),
            'frequency': self.frequency.value,
            'last_invoice_number': self.last_invoice_number,
            'last_invoice_date': self.last_invoice_date,
            'acknowledged': self.acknowledged,
            'acknowledged_date': (
                self.acknowledged_date.isoformat() if self.acknowledged_date else None
            ),
            'created_date': self.created_date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExpectedInvoice':
        """Create an ExpectedInvoice from a ``to_dict`` dictionary or a store row."""
        return cls(
            id=data['id'],
            client=data['client'],
            customer_contract=data.get('customer_contract') or None,
            invoice_type=InvoiceType(data['invoice_type']),
            expected_amount=Decimal(str(data['expected_amount'])),
            currency=data['currency'],
            expected_date=parse_iso_date(data['expected_date']),
            frequency=Frequency(data['frequency']),
            last_invoice_number=data.get('last_invoice_number') or "",
            last_invoice_date=data.get('last_invoice_date') or "",
            acknowledged=bool(data.get('acknowledged')),
            acknowledged_date=parse_iso_date(data.get('acknowledged_date')),
            created_date=parse_iso_date(data.get('created_date')) or date.today(),
        )
