"""
Forecasting Module for the Invoice Tracker.

This module predicts when recurring invoices are next due.
"""

from .expected_invoice import ExpectedInvoice, InvoiceSnapshot
from .forecaster import RecurrenceForecaster

__all__ = ['ExpectedInvoice', 'InvoiceSnapshot', 'RecurrenceForecaster']
