"""
Amount Resolver Module.

Locates the invoice total in free text and determines its sign.

Patterns are tried from most to least specific and the first pattern
that matches anywhere in the text wins. A total written with a minus
sign or inside parentheses is a credit and resolves negative.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Pattern, Tuple

from invoice_tracker.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

# Signed or parenthesized number with optional currency symbol, e.g.
# "$1,234.56", "-$50.00", "($1,200)", "- 75", "€ 99.90"
_AMOUNT = r'(?P<amount>\(?\s*-?\s*[$€£]?\s*-?\s*\d[\d,]*(?:\.\d+)?\s*\)?)'


class AmountResolver:
    """
    Resolves the signed total of an invoice.

    Example:
        >>> resolver = AmountResolver()
        >>> resolver.resolve("Invoice Total: $1,234.56")
        Decimal('1234.56')
        >>> resolver.resolve("Amount Due: ($200.00)")
        Decimal('-200.00')
        >>> resolver.resolve("nothing here")
        Decimal('0')
    """

    # (name, pattern) in priority order
    PATTERNS: List[Tuple[str, Pattern]] = [
        ('invoice_total', re.compile(r'Invoice\s*Total[\s:]*' + _AMOUNT, re.IGNORECASE)),
        ('amount_due', re.compile(r'(?:Amount|Balance)\s*Due[\s:]*' + _AMOUNT, re.IGNORECASE)),
        ('credit', re.compile(r'(?:Open\s*Credit|Credit\s*Amount)[\s:]*' + _AMOUNT, re.IGNORECASE)),
        ('total', re.compile(r'\bTotal(?:\s*(?:Due|Amount))?[\s:]*' + _AMOUNT, re.IGNORECASE)),
        ('signed', re.compile(
            r'(?P<amount>\(\s*-?\s*\$?\s*\d[\d,]*(?:\.\d+)?\s*\)|(?<![\w-])-\s?\$?\d[\d,]*(?:\.\d+)?)'
        )),
        ('dollar', re.compile(r'(?P<amount>-?\s*\$\s*-?\s*\d[\d,]*(?:\.\d+)?)')),
    ]

    ZERO = Decimal("0")

    def resolve(self, text: Optional[str]) -> Decimal:
        """
        Resolve the signed total in a document.

        Args:
            text: Document text.

        Returns:
            Signed total, or ``Decimal("0")`` if no amount was found.
            Zero therefore means "unknown", not a zero-value invoice.
        """
        if not text:
            return self.ZERO

        for name, pattern in self.PATTERNS:
            match = pattern.search(text)
            if not match:
                continue

            raw = match.group('amount')
            amount = self.parse(raw)
            if amount is None:
                continue

            logger.debug(f"Amount matched by '{name}' pattern: '{raw.strip()}' -> {amount}")
            return amount

        logger.debug("No amount pattern matched")
        return self.ZERO

    @staticmethod
    def is_negative(raw: str) -> bool:
        """A matched amount is negative if it has a minus sign or is parenthesized."""
        stripped = raw.strip()
        return '-' in stripped or (stripped.startswith('(') and stripped.endswith(')'))

    @classmethod
    def parse(cls, raw: str) -> Optional[Decimal]:
        """
        Parse a matched amount string into a signed Decimal.

        Args:
            raw: Matched text such as "($1,200.00)".

        Returns:
            Signed Decimal, or None if no number remains after cleaning.
        """
        digits = re.sub(r'[^\d.]', '', raw)
        if not digits:
            return None

        try:
            value = Decimal(digits)
        except InvalidOperation:
            logger.debug(f"Could not parse amount: {raw}")
            return None

        return -value if cls.is_negative(raw) else value
