"""
Invoice Tracker.

Extracts structured fields from invoice text, classifies invoices by
type and recurrence, and forecasts the next instance of recurring
invoices.

Modules:
    - resolvers: Date and amount resolution
    - extraction: Invoice records and field extraction
    - classification: Type and frequency tagging
    - forecasting: Expected-invoice forecasts
    - output_handler: SQLite store and Excel export
    - pipeline / batch_processor: Orchestration
    - utils: Logging, exceptions, helpers
"""

__version__ = "1.0.0"
