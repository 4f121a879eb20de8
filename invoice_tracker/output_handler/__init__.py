"""
Output Handler Module for the Invoice Tracker.

This module provides persistence and export:
    - DatabaseHandler: SQLite store for invoices and forecasts
    - ExcelExporter: Excel workbook export
"""

from .database_handler import DatabaseHandler
from .excel_exporter import ExcelExporter

__all__ = ['DatabaseHandler', 'ExcelExporter']
