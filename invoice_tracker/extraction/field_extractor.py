"""
Field Extractor Module.

This module pulls invoice header fields out of plain document text with
ordered regular-expression passes.

Fields:
    - Invoice number, currency, contract and PO identifiers
    - Client name (cascading strategies)
    - Invoice and due dates (via DateResolver)
    - Signed total (via AmountResolver)
    - Service description excerpt (cascading strategies)

Client and service heuristics are plain functions taking the document
text and returning a candidate or None. The extractor runs them in
order and keeps the first success, so each heuristic can be exercised
on its own and the priority order is the order of the lists at the
bottom of this module.
"""

import re
from datetime import date, timedelta
from typing import Callable, List, Optional, Pattern, Sequence, Tuple

from config import get_config, get_config_int
from invoice_tracker.resolvers import AmountResolver, DateResolver
from invoice_tracker.utils.helpers import collapse_whitespace
from invoice_tracker.utils.logger import get_logger
from .invoice_fields import InvoiceFields, SUPPORTED_CURRENCIES

# Initialize module logger
logger = get_logger(__name__)

# A strategy receives (text, original_filename) and returns a candidate
ClientStrategy = Callable[[str, str], Optional[str]]
ServiceStrategy = Callable[[str], Optional[str]]

# =============================================================================
# IDENTIFIERS
# =============================================================================

_TOKEN = r'([A-Z0-9][A-Z0-9-]*)'

INVOICE_NUMBER_PATTERNS: List[Pattern] = [
    re.compile(r'Invoice\s*(?:#|No\.?|Number)\s*[:\s]*' + _TOKEN, re.IGNORECASE),
    re.compile(r'Tax\s*Invoice\s*[:\s#]*' + _TOKEN, re.IGNORECASE),
    re.compile(r'Credit\s*Memo\s*(?:#|No\.?|Number)?\s*[:\s#]*' + _TOKEN, re.IGNORECASE),
    re.compile(r'Invoice\s+' + _TOKEN, re.IGNORECASE),
]

INVOICE_NUMBER_FALSE_POSITIVES = frozenset({'TOTAL'})

CUSTOMER_CONTRACT_PATTERNS: List[Pattern] = [
    re.compile(r'Customer\s*Contract\s*(?:#|No\.?|Number)?[:\s]*' + _TOKEN, re.IGNORECASE),
    re.compile(r'(?<!Oracle )Contract\s*(?:#|No\.?|Number)?[:\s]*' + _TOKEN, re.IGNORECASE),
]

ORACLE_CONTRACT_PATTERNS: List[Pattern] = [
    re.compile(r'Oracle\s*Contract\s*(?:#|No\.?|Number)?[:\s]*' + _TOKEN, re.IGNORECASE),
]

PO_NUMBER_PATTERNS: List[Pattern] = [
    re.compile(r'PO\s*Number[:\s]*' + _TOKEN, re.IGNORECASE),
    re.compile(r'(?:^|\s)PO(?:[:#]|\s)[:\s#]*' + _TOKEN, re.IGNORECASE | re.MULTILINE),
]

CURRENCY_CODE_PATTERN = re.compile(
    r'\b(' + '|'.join(SUPPORTED_CURRENCIES) + r')\b', re.IGNORECASE
)


def first_identifier(
    patterns: Sequence[Pattern],
    text: str,
    reject: frozenset = frozenset()
) -> Optional[str]:
    """
    Return the first captured token that contains a digit.

    Patterns are tried in order; within a pattern every match is tried
    in order of appearance.

    Args:
        patterns: Compiled patterns with one capture group.
        text: Document text.
        reject: Upper-cased tokens that are never identifiers.

    Returns:
        The identifier, or None.
    """
    for pattern in patterns:
        for match in pattern.finditer(text):
            token = match.group(1).strip().strip('-')
            if not token or token.upper() in reject:
                continue
            if re.search(r'\d', token):
                return token
    return None


# =============================================================================
# CLIENT STRATEGIES
# =============================================================================

BILL_TO_PATTERN = re.compile(
    r'BILL\s*TO:?\s*([\s\S]{0,400}?)'
    r'(?:Transaction\s+Type|Description|Week\s+Ending|Special\s+Instructions|\Z)',
    re.IGNORECASE
)

MINISTER_PATTERN = re.compile(r'Minister\s+for\s+Health', re.IGNORECASE)
MINISTER_ALIAS_PREFIX = re.compile(r'^Minister\s+for\s+Health\s+aka\s+', re.IGNORECASE)

# A line that completes the client name on the line above it
CONTINUATION_PATTERN = re.compile(
    r'^(?:Health|(?:Pty|Ltd|Limited|Inc|Corporation)\.?)$', re.IGNORECASE
)

BILL_TO_NOISE_PATTERNS: List[Pattern] = [
    re.compile(r'^ATTN:', re.IGNORECASE),
    re.compile(r'^PO\s*BOX', re.IGNORECASE),
    re.compile(r'^c/o\s+', re.IGNORECASE),
    re.compile(r'^[A-Z]{2}$'),  # country code
    re.compile(r'^SHIP\s*TO', re.IGNORECASE),
    re.compile(r'^Remittance$', re.IGNORECASE),
    re.compile(r'^\d{4,}$'),  # postal code
    re.compile(r'^[A-Za-z]+\s+\d{4}$'),  # "Adelaide 5001"
    re.compile(r'^GPO\s+Box', re.IGNORECASE),
    re.compile(r'^(?:Application|Digital|Shared)\s+(?:Services|Health)', re.IGNORECASE),
    re.compile(r'^(?:DHW-|Accounts\s+Payable$)', re.IGNORECASE),
    re.compile(
        r'\b(?:Dr|St|Ave|Road|Street|Boulevard|Drive|Avenue)\b\.?\s+(?:corner|and|\d)',
        re.IGNORECASE
    ),
    re.compile(r'^\d'),
    re.compile(r'^(?:Bonifacio|Taguig|Adelaide|Sydney|Melbourne|Brisbane)', re.IGNORECASE),
]

CLIENT_LABEL_PATTERN = re.compile(r'(?:Customer|Client|Company)[:\s]+([^\n]+)', re.IGNORECASE)
CLIENT_LABEL_FIELD_NAMES = re.compile(
    r'^(?:#|(?:Number|No|Contract|ID|Code|Reference|Ref|PO|Name)\b)', re.IGNORECASE
)

TO_LABEL_PATTERN = re.compile(r'(?:^|\n)TO:\s*\n([^\n]+)', re.IGNORECASE)
TO_LABEL_HEADERS = re.compile(r'^(?:SHIP|BILL|SOLD|SEND)\s+TO:?$', re.IGNORECASE)

FILENAME_CLIENT_PATTERN = re.compile(r'([A-Za-z\s&]{6,})_')
FILENAME_GENERIC_WORDS = frozenset({
    'invoice', 'invoices', 'tax invoice', 'credit memo', 'document', 'statement', 'scanned',
})


def _strip_non_word(value: str) -> str:
    return re.sub(r'[^\w\s&-]', '', value).strip()


def _with_continuation(lines: List[str], index: int, candidate: str) -> str:
    """Join the next line when it finishes the name ("Health", "Pty", "Ltd" ...)."""
    if index + 1 < len(lines) and CONTINUATION_PATTERN.match(lines[index + 1]):
        return f"{candidate} {lines[index + 1]}"
    return candidate


def _is_bill_to_noise(line: str) -> bool:
    return any(pattern.search(line) for pattern in BILL_TO_NOISE_PATTERNS)


def client_from_bill_to(text: str, original_filename: str = "") -> Optional[str]:
    """
    Take the client from the BILL TO block.

    The "Minister for Health" line wins when present, with its alias
    prefix removed. Otherwise the first line that is not an address,
    attention line or department name is used.
    """
    block = BILL_TO_PATTERN.search(text)
    if not block:
        return None

    lines = [line.strip() for line in block.group(1).split('\n') if line.strip()]

    for i, line in enumerate(lines):
        if MINISTER_PATTERN.search(line):
            candidate = _with_continuation(lines, i, MINISTER_ALIAS_PREFIX.sub('', line).strip())
            if len(candidate) > 3:
                return candidate

    for i, line in enumerate(lines):
        if _is_bill_to_noise(line):
            continue
        if len(line) > 3:
            return _with_continuation(lines, i, line)

    return None


def client_from_label(text: str, original_filename: str = "") -> Optional[str]:
    """Take the client from a "Customer:", "Client:" or "Company:" label."""
    for match in CLIENT_LABEL_PATTERN.finditer(text):
        value = match.group(1).strip()
        if CLIENT_LABEL_FIELD_NAMES.match(value):
            continue
        cleaned = _strip_non_word(value)
        if len(cleaned) > 3:
            return cleaned
    return None


def client_from_to_line(text: str, original_filename: str = "") -> Optional[str]:
    """Take the client from the line after a bare "TO:" label."""
    match = TO_LABEL_PATTERN.search(text)
    if not match:
        return None

    value = match.group(1).strip()
    if TO_LABEL_HEADERS.match(value):
        return None
    return _strip_non_word(value) or None


def client_from_filename(text: str, original_filename: str = "") -> Optional[str]:
    """Take the client from an uploaded filename such as "Acme Health_4600123.pdf"."""
    if not original_filename:
        return None

    match = FILENAME_CLIENT_PATTERN.search(original_filename)
    if not match:
        return None

    value = _strip_non_word(match.group(1))
    if not value or value.lower() in FILENAME_GENERIC_WORDS:
        return None
    return value


CLIENT_STRATEGIES: List[Tuple[str, ClientStrategy]] = [
    ('bill_to', client_from_bill_to),
    ('label', client_from_label),
    ('to_line', client_from_to_line),
    ('filename', client_from_filename),
]

# =============================================================================
# SERVICE DESCRIPTION STRATEGIES
# =============================================================================

ITEM_TABLE_PATTERN = re.compile(
    r'Description[\s\S]{0,150}?Week\s+Ending\s+Date[\s\S]{0,150}?Qty[\s\S]{0,150}?'
    r'UOM[\s\S]{0,150}?Unit\s+Price[\s\S]{0,150}?Taxable[\s\S]{0,150}?Extended\s+Price'
    r'([\s\S]{0,1500}?)(?:Item\s+Subtotal|Special\s+Instructions|Page\s+\d+)',
    re.IGNORECASE
)

QUANTITY_TABLE_PATTERN = re.compile(
    r'Quantity\s*Description\s*Taxable\s*Ext\s*Price([\s\S]{0,8000}?)Item\s+Subtotal',
    re.IGNORECASE
)

SERVICE_LABEL_PATTERN = re.compile(
    r'(?:Description|Services|Items)[:\s]*\n([\s\S]{0,800}?)'
    r'(?:Item\s+Subtotal|Special\s+Instructions|Transaction\s+Type|Page\s+\d+'
    r'|\n[ \t]*(?:Invoice\s+)?Total(?:\s+Due)?[ \t]*[:$(]|\Z)',
    re.IGNORECASE
)

TRANSACTION_SPAN_PATTERN = re.compile(
    r'Transaction\s+Type[\s\S]{0,300}?Currency[\s\S]{0,200}?([\s\S]{0,1000}?)'
    r'(?:Item\s+Subtotal|Special\s+Instructions|Page\s+\d+)',
    re.IGNORECASE
)


def _capture(pattern: Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    if match:
        return match.group(1).strip() or None
    return None


def services_from_item_table(text: str) -> Optional[str]:
    """Rows under the Description / Week Ending Date / ... / Extended Price header."""
    return _capture(ITEM_TABLE_PATTERN, text)


def services_from_quantity_table(text: str) -> Optional[str]:
    """Rows under the Quantity / Description / Taxable / Ext Price header."""
    return _capture(QUANTITY_TABLE_PATTERN, text)


def services_from_label(text: str) -> Optional[str]:
    """Text after a "Description:", "Services:" or "Items:" label."""
    return _capture(SERVICE_LABEL_PATTERN, text)


def services_from_transaction_span(text: str) -> Optional[str]:
    """Text between the Transaction Type / Currency header and the subtotal."""
    return _capture(TRANSACTION_SPAN_PATTERN, text)


SERVICE_STRATEGIES: List[Tuple[str, ServiceStrategy]] = [
    ('item_table', services_from_item_table),
    ('quantity_table', services_from_quantity_table),
    ('label', services_from_label),
    ('transaction_span', services_from_transaction_span),
]

SERVICE_HEADER_REMNANT = re.compile(
    r'^(?:Taxable\s*Extended\s*Price\s*'
    r'|Week\s+Ending\s+Date\s*Qty\s*UOM\s*Unit\s*Price\s*'
    r'|Quantity\s*Description\s*Taxable\s*Ext\s*Price\s*)',
    re.IGNORECASE
)
LINE_ITEM_FLAG_AMOUNT = re.compile(r'\s+(?:Yes|No)\s+\$[\d,]+(?:\.\d+)?')
LINE_ITEM_FLAG = re.compile(r'\s+(?:Yes|No)\s+')
# Quantities are dropped; numbers that belong to a period ("3 months") stay
LEADING_QUANTITY = re.compile(r'^\d+(?!\d|\s*(?:months?|years?)\b)\s+', re.MULTILINE | re.IGNORECASE)
STANDALONE_QUANTITY = re.compile(r'\s+\d+(?!\d|\s*(?:months?|years?)\b)\s+', re.IGNORECASE)
REPEATED_HEADER_REFERENCE = re.compile(
    r'Invoice\s+Number:\s*\d+\s+Invoice\s+Date:\s*[\d-]+', re.IGNORECASE
)

ADDRESS_BOILERPLATE = re.compile(
    r'(?:BILL\s+TO|SHIP\s+TO|ATTN:|GPO\s+Box|c/o\s+Shared\s+Services)', re.IGNORECASE
)
SERVICE_KEYWORDS = re.compile(
    r'(?:Professional\s+Services|Subscription|Maintenance|Support|License|Training'
    r'|Implementation|Integration|Annual|Monthly)',
    re.IGNORECASE
)


def clean_services(raw: str) -> str:
    """
    Strip table noise from a captured service description.

    Args:
        raw: Captured text.

    Returns:
        Single-line description, possibly empty.
    """
    services = raw

    repeated_header = services.find('Invoice Number:')
    if repeated_header > 0:
        services = services[:repeated_header]

    services = SERVICE_HEADER_REMNANT.sub('', services)
    services = LINE_ITEM_FLAG_AMOUNT.sub('', services)
    services = LINE_ITEM_FLAG.sub(' ', services)
    services = LEADING_QUANTITY.sub('', services)
    services = STANDALONE_QUANTITY.sub(' ', services)
    services = REPEATED_HEADER_REFERENCE.sub('', services)

    return collapse_whitespace(services)


def looks_like_address(services: str) -> bool:
    """
    True when the capture is address boilerplate rather than a description.

    Address markers must appear near the start and no service keyword may
    appear anywhere.
    """
    return bool(ADDRESS_BOILERPLATE.search(services[:200])) and not SERVICE_KEYWORDS.search(services)


# =============================================================================
# EXTRACTOR
# =============================================================================

class FieldExtractor:
    """
    Extracts invoice header fields from document text.

    Type and frequency are left at their defaults; the Classifier sets
    them from the extracted service description and amount.

    Attributes:
        date_resolver: DateResolver used for invoice and due dates
        amount_resolver: AmountResolver used for the total
        client_strategies: Ordered (name, strategy) pairs for the client
        service_strategies: Ordered (name, strategy) pairs for the services

    Example:
        >>> extractor = FieldExtractor()
        >>> fields = extractor.extract(text, "Acme Health_4600123.pdf")
        >>> fields.client
        'Acme Health'
    """

    def __init__(
        self,
        date_resolver: Optional[DateResolver] = None,
        amount_resolver: Optional[AmountResolver] = None,
        clock: Optional[Callable[[], date]] = None
    ) -> None:
        """
        Initialize the extractor.

        Args:
            date_resolver: Resolver for date tokens. Defaults to a configured one.
            amount_resolver: Resolver for the total.
            clock: Returns "today" for date fallbacks. Defaults to date.today.
        """
        self.date_resolver = date_resolver or DateResolver()
        self.amount_resolver = amount_resolver or AmountResolver()
        self.clock = clock or date.today

        self.client_strategies = list(CLIENT_STRATEGIES)
        self.service_strategies = list(SERVICE_STRATEGIES)

        self.client_sentinel = get_config("extraction.client.sentinel", "Unknown Client")
        self.client_max_length = get_config_int("extraction.client.max_length", 100)
        self.services_sentinel = get_config(
            "extraction.services.sentinel",
            "No service description found"
        )
        self.services_max_length = get_config_int("extraction.services.max_length", 500)
        self.default_currency = get_config("extraction.default_currency", "USD")
        self.due_days = get_config_int("extraction.due_days", 30)

        logger.debug("FieldExtractor initialized")

    def extract(self, text: str, original_filename: str = "") -> InvoiceFields:
        """
        Extract every header field from document text.

        Never raises for missing fields; each one falls back to its
        default and the fallback is recorded as a warning.

        Args:
            text: Plain document text.
            original_filename: Filename as uploaded.

        Returns:
            InvoiceFields with type and frequency unset.
        """
        text = text or ""
        fields = InvoiceFields(source_file=original_filename or None)

        fields.invoice_number = self.extract_invoice_number(text)
        if not fields.invoice_number:
            fields.add_warning("invoice_number not found")

        fields.client = self.extract_client(text, original_filename)
        if fields.client == self.client_sentinel:
            logger.warning(
                f"Could not extract client name for invoice "
                f"{fields.invoice_number or original_filename}; using '{self.client_sentinel}'"
            )
            fields.add_warning("client not found")

        fields.currency = self.extract_currency(text)

        invoice_date, due_date = self.extract_dates(text, fields.invoice_number)
        today = self.clock()
        if invoice_date is None:
            logger.warning(
                f"Could not extract invoice date for invoice "
                f"{fields.invoice_number or original_filename}; using today"
            )
            fields.add_warning("invoice_date defaulted to today")
            invoice_date = today
        if due_date is None:
            logger.warning(
                f"Could not extract due date for invoice "
                f"{fields.invoice_number or original_filename}; using today + {self.due_days} days"
            )
            fields.add_warning(f"due_date defaulted to today + {self.due_days} days")
            due_date = today + timedelta(days=self.due_days)
        fields.invoice_date = invoice_date
        fields.due_date = due_date

        fields.amount_due = self.amount_resolver.resolve(text)

        fields.customer_contract = first_identifier(CUSTOMER_CONTRACT_PATTERNS, text)
        fields.oracle_contract = first_identifier(ORACLE_CONTRACT_PATTERNS, text)
        fields.po_number = first_identifier(PO_NUMBER_PATTERNS, text)

        fields.services = self.extract_services(text)
        if fields.services == self.services_sentinel:
            fields.add_warning("services not found")

        return fields

    def extract_invoice_number(self, text: str) -> str:
        """Return the invoice number, or an empty string."""
        return first_identifier(
            INVOICE_NUMBER_PATTERNS, text, INVOICE_NUMBER_FALSE_POSITIVES
        ) or ""

    def extract_client(self, text: str, original_filename: str = "") -> str:
        """
        Run the client strategies in order and keep the first success.

        Returns:
            Client name truncated to the configured length, or the
            sentinel if nothing usable was found.
        """
        for name, strategy in self.client_strategies:
            candidate = strategy(text, original_filename)
            if candidate:
                logger.debug(f"Client matched by '{name}' strategy: {candidate}")
                if len(candidate) < 3:
                    break
                return candidate[:self.client_max_length]

        return self.client_sentinel

    def extract_currency(self, text: str) -> str:
        """
        Return the ISO currency code of the document.

        A spelled-out code wins; otherwise the currency is inferred from
        symbols.
        """
        match = CURRENCY_CODE_PATTERN.search(text)
        if match:
            return match.group(1).upper()
        if '$' in text and 'AUD' in text:
            return 'AUD'
        if '€' in text:
            return 'EUR'
        if '£' in text:
            return 'GBP'
        return self.default_currency

    def extract_dates(
        self,
        text: str,
        invoice_number: str = ""
    ) -> Tuple[Optional[date], Optional[date]]:
        """
        Resolve the invoice date and due date.

        The first date token in the text is the invoice date and the
        second is the due date. A single token serves as both.

        Returns:
            (invoice_date, due_date), either of which may be None.
        """
        tokens = self.date_resolver.find_tokens(text)
        if not tokens:
            return None, None

        invoice_date = self.date_resolver.resolve(tokens[0], invoice_number)
        due_token = tokens[1] if len(tokens) > 1 else tokens[0]
        due_date = self.date_resolver.resolve(due_token, invoice_number)
        return invoice_date, due_date

    def extract_services(self, text: str) -> str:
        """
        Run the service strategies in order, then clean the first capture.

        Returns:
            Description truncated to the configured length, or the sentinel.
        """
        raw = None
        for name, strategy in self.service_strategies:
            raw = strategy(text)
            if raw:
                logger.debug(f"Services captured by '{name}' strategy")
                break

        if not raw:
            return self.services_sentinel

        services = clean_services(raw)
        if not services:
            return self.services_sentinel

        if looks_like_address(services):
            logger.debug("Services capture rejected as address boilerplate")
            return self.services_sentinel

        return services[:self.services_max_length]
