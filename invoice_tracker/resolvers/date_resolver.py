"""
Date Resolver Module.

This module turns date tokens found in invoice text into calendar dates.

Supported token shapes:
    - Named month: 23-Aug-2024, 23 August 24, 5/Sept/2024
    - Numeric: 13-05-2024, 04/05/24

Numeric tokens where both leading parts are <= 12 are ambiguous. They
are resolved with the invoice number: each invoice series was issued
from a system that writes dates either US style (MM-DD-YYYY) or
international style (DD-MM-YYYY), and the series is recognizable from
the first two digits of the invoice number.
"""

import re
from datetime import date
from typing import Iterable, List, Optional, Tuple

from config import get_config
from invoice_tracker.utils.exceptions import ConfigurationError
from invoice_tracker.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

US_FORMAT = "us"
INTERNATIONAL_FORMAT = "international"


class DateResolver:
    """
    Resolves free-text date tokens to ``date`` objects.

    Attributes:
        us_prefixes: Invoice number prefixes whose dates are MM-DD-YYYY
        international_prefixes: Invoice number prefixes whose dates are DD-MM-YYYY

    Example:
        >>> resolver = DateResolver()
        >>> resolver.resolve("23-Aug-2024")
        datetime.date(2024, 8, 23)
        >>> resolver.resolve("04-05-2024", invoice_number="4712345")
        datetime.date(2024, 4, 5)
        >>> resolver.resolve("04-05-2024", invoice_number="4012345")
        datetime.date(2024, 5, 4)
    """

    MONTHS = {
        'jan': 1, 'january': 1,
        'feb': 2, 'february': 2,
        'mar': 3, 'march': 3,
        'apr': 4, 'april': 4,
        'may': 5,
        'jun': 6, 'june': 6,
        'jul': 7, 'july': 7,
        'aug': 8, 'august': 8,
        'sep': 9, 'sept': 9, 'september': 9,
        'oct': 10, 'october': 10,
        'nov': 11, 'november': 11,
        'dec': 12, 'december': 12,
    }

    DEFAULT_US_PREFIXES = ('46', '47', '48', '49')
    DEFAULT_INTERNATIONAL_PREFIXES = (
        '40', '41', '42', '43', '44', '45', '60', '61', '11', '12', '86'
    )

    NAMED_MONTH_PATTERN = re.compile(r'(\d{1,2})[-/\s]([a-z]+)[-/\s](\d{2,4})', re.IGNORECASE)

    # Longest names first so "september" wins over "sep"
    _MONTH_ALTERNATION = '|'.join(sorted(MONTHS, key=len, reverse=True))
    TOKEN_PATTERN = re.compile(
        rf'\b\d{{1,2}}[-/ ](?:{_MONTH_ALTERNATION})[-/ ]\d{{2,4}}\b'
        r'|\b\d{1,2}[-/]\d{1,2}[-/]\d{2,4}\b',
        re.IGNORECASE
    )

    DISPLAY_MONTHS = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                      'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')

    def __init__(
        self,
        us_prefixes: Optional[Iterable[str]] = None,
        international_prefixes: Optional[Iterable[str]] = None
    ) -> None:
        """
        Initialize the resolver with its prefix tables.

        Args:
            us_prefixes: Prefixes read as MM-DD-YYYY. Defaults to configuration.
            international_prefixes: Prefixes read as DD-MM-YYYY. Defaults to configuration.

        Raises:
            ConfigurationError: If a table is not a list or both tables share a prefix.
        """
        if us_prefixes is None:
            us_prefixes = get_config("dates.us_prefixes", self.DEFAULT_US_PREFIXES)
        if international_prefixes is None:
            international_prefixes = get_config(
                "dates.international_prefixes",
                self.DEFAULT_INTERNATIONAL_PREFIXES
            )

        for key, table in (("dates.us_prefixes", us_prefixes),
                           ("dates.international_prefixes", international_prefixes)):
            if isinstance(table, (str, bytes)) or not isinstance(table, Iterable):
                raise ConfigurationError(key, "expected a list of invoice number prefixes")

        self.us_prefixes: Tuple[str, ...] = tuple(str(p) for p in us_prefixes)
        self.international_prefixes: Tuple[str, ...] = tuple(
            str(p) for p in international_prefixes
        )

        shared = set(self.us_prefixes) & set(self.international_prefixes)
        if shared:
            raise ConfigurationError("dates", f"prefixes in both tables: {sorted(shared)}")

        logger.debug(
            f"DateResolver initialized ({len(self.us_prefixes)} US prefixes, "
            f"{len(self.international_prefixes)} international prefixes)"
        )

    def date_format_for(self, invoice_number: Optional[str]) -> str:
        """
        Determine which numeric date layout an invoice series uses.

        Args:
            invoice_number: Invoice number, possibly empty.

        Returns:
            ``"us"`` or ``"international"``. Unknown series are international.
        """
        if not invoice_number:
            return INTERNATIONAL_FORMAT

        number = str(invoice_number)
        if number.startswith(self.us_prefixes):
            return US_FORMAT
        if number.startswith(self.international_prefixes):
            return INTERNATIONAL_FORMAT
        return INTERNATIONAL_FORMAT

    def resolve(self, token: Optional[str], invoice_number: Optional[str] = "") -> Optional[date]:
        """
        Resolve a single date token.

        Args:
            token: Date token such as "23-Aug-2024" or "04/05/2024".
            invoice_number: Invoice number used to break day/month ties.

        Returns:
            Resolved date, or None if the token is not a valid date.
        """
        if not token:
            return None

        cleaned = token.strip()

        named = self.NAMED_MONTH_PATTERN.search(cleaned)
        if named:
            return self._resolve_named(named)

        return self._resolve_numeric(cleaned, invoice_number)

    def _resolve_named(self, match: re.Match) -> Optional[date]:
        """Resolve a day / month-name / year match."""
        month = self.MONTHS.get(match.group(2).lower())
        if month is None:
            logger.debug(f"Unrecognized month name: {match.group(2)}")
            return None

        day = int(match.group(1))
        year = self._expand_year(int(match.group(3)))
        return self._build(year, month, day)

    def _resolve_numeric(self, cleaned: str, invoice_number: Optional[str]) -> Optional[date]:
        """Resolve a three-part numeric date."""
        parts = [p.strip() for p in re.split(r'[-/]', cleaned)]
        if len(parts) != 3 or not all(p.isdigit() for p in parts):
            return None

        first, second, third = (int(p) for p in parts)
        year = self._expand_year(third)

        if first > 12:
            day, month = first, second
        elif second > 12:
            month, day = first, second
        elif self.date_format_for(invoice_number) == US_FORMAT:
            month, day = first, second
        else:
            day, month = first, second

        return self._build(year, month, day)

    @staticmethod
    def _expand_year(year: int) -> int:
        return year + 2000 if year < 100 else year

    @staticmethod
    def _build(year: int, month: int, day: int) -> Optional[date]:
        """Construct a date after range checks, None if it does not exist."""
        if not 1 <= month <= 12 or not 1 <= day <= 31:
            return None
        try:
            return date(year, month, day)
        except ValueError:
            logger.debug(f"Invalid calendar date: {year}-{month}-{day}")
            return None

    def find_tokens(self, text: str) -> List[str]:
        """
        Find date tokens in text, in order of appearance.

        Args:
            text: Document text.

        Returns:
            List of raw date tokens.
        """
        if not text:
            return []
        return [m.group(0) for m in self.TOKEN_PATTERN.finditer(text)]

    @classmethod
    def format_for_display(cls, value: Optional[date]) -> str:
        """
        Format a date as DD-Mon-YY, the layout used on invoice listings.

        Example:
            >>> DateResolver.format_for_display(date(2024, 8, 3))
            '03-Aug-24'
        """
        if value is None:
            return ''
        return f"{value.day:02d}-{cls.DISPLAY_MONTHS[value.month - 1]}-{value.year % 100:02d}"
