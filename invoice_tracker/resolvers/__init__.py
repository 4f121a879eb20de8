"""
Resolver Module for the Invoice Tracker.

This module turns raw tokens found in document text into values:
    - DateResolver: day/month disambiguation and date construction
    - AmountResolver: signed invoice totals
"""

from .date_resolver import DateResolver, US_FORMAT, INTERNATIONAL_FORMAT
from .amount_resolver import AmountResolver

__all__ = ['DateResolver', 'AmountResolver', 'US_FORMAT', 'INTERNATIONAL_FORMAT']
