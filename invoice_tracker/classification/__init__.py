"""
Classification Module for the Invoice Tracker.

This module assigns invoice-type and frequency tags from service text.
"""

from .classifier import Classifier, KeywordRule, TYPE_RULES, FREQUENCY_RULES

__all__ = ['Classifier', 'KeywordRule', 'TYPE_RULES', 'FREQUENCY_RULES']
