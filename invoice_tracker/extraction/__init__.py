"""
Extraction Module for the Invoice Tracker.

This module provides the invoice record types and the field extractor
that fills them from document text.
"""

from .invoice_fields import InvoiceFields, InvoiceType, Frequency, SUPPORTED_CURRENCIES
from .field_extractor import FieldExtractor, CLIENT_STRATEGIES, SERVICE_STRATEGIES

__all__ = [
    'InvoiceFields',
    'InvoiceType',
    'Frequency',
    'SUPPORTED_CURRENCIES',
    'FieldExtractor',
    'CLIENT_STRATEGIES',
    'SERVICE_STRATEGIES',
]
