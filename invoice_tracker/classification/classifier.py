"""
Invoice Classifier Module.

Assigns an invoice-type tag and a recurrence-frequency tag from the
extracted service description and the signed amount.

Both tags come from ordered keyword tables. The first rule that
matches wins, so the tables read top to bottom in priority order:
    - TYPE_RULES: Credit Memo > MS > Maint > Sub > Hosting > HW > 3PP > PS
    - FREQUENCY_RULES: monthly > quarterly > bi-annual > tri-annual > annual

Matching is case-insensitive substring matching on the service text.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Pattern, Sequence, Tuple, Union

from invoice_tracker.extraction.invoice_fields import Frequency, InvoiceType
from invoice_tracker.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


@dataclass(frozen=True)
class KeywordRule:
    """
    One row of a classification table.

    A rule matches when none of ``none_of`` appears and at least one of
    the following holds: a keyword from ``any_of`` appears, every keyword
    of one ``all_of`` group appears, or a ``patterns`` regex matches.

    Attributes:
        tag: Value assigned when the rule matches
        any_of: Keywords, any one of which is enough
        all_of: Keyword groups that must co-occur
        none_of: Keywords that veto the rule
        patterns: Regexes searched in the lower-cased text
    """
    tag: Union[InvoiceType, Frequency]
    any_of: Tuple[str, ...] = ()
    all_of: Tuple[Tuple[str, ...], ...] = ()
    none_of: Tuple[str, ...] = ()
    patterns: Tuple[Pattern, ...] = ()

    def matches(self, lower: str) -> bool:
        if any(word in lower for word in self.none_of):
            return False
        if any(word in lower for word in self.any_of):
            return True
        if any(all(word in lower for word in group) for group in self.all_of):
            return True
        return any(pattern.search(lower) for pattern in self.patterns)


TYPE_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(InvoiceType.CREDIT_MEMO, any_of=('credit', 'negative')),
    # "subscription" alongside "managed" is a managed service, not a subscription
    KeywordRule(
        InvoiceType.MS,
        any_of=('managed services', 'managed/outsourcing services'),
        all_of=(('managed', 'outsourcing'), ('subscription', 'managed')),
    ),
    KeywordRule(
        InvoiceType.MAINT,
        any_of=('maintenance', 'annual maintenance', 'support'),
        none_of=('managed',),
    ),
    KeywordRule(InvoiceType.SUB, any_of=('subscription', 'license', 'licence', 'saas')),
    KeywordRule(InvoiceType.HOSTING, any_of=('hosting', 'cloud services', 'infrastructure')),
    KeywordRule(InvoiceType.HW, any_of=('hardware', 'equipment', 'devices')),
    KeywordRule(InvoiceType.THIRD_PARTY, any_of=('third party',)),
    KeywordRule(
        InvoiceType.PS,
        any_of=('consulting', 'professional services', 'professional service fee',
                'penetration testing'),
    ),
)

FREQUENCY_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(Frequency.MONTHLY, any_of=('monthly',)),
    KeywordRule(
        Frequency.QUARTERLY,
        any_of=('quarterly', 'quarter', '3 month', 'three month', 'every 3 months'),
        patterns=(
            re.compile(r'\bq[1-4]\b'),
            re.compile(r'\b(?:jan|apr|jul|oct)[\s-]+(?:apr|jul|oct|jan)\b'),
        ),
    ),
    KeywordRule(
        Frequency.BI_ANNUAL,
        any_of=('bi-annual', 'semi-annual', '6 month', 'six month', 'every 6 months'),
    ),
    KeywordRule(
        Frequency.TRI_ANNUAL,
        any_of=('tri-annual', '4 month', 'four month', 'every 4 months'),
    ),
    KeywordRule(
        Frequency.ANNUAL,
        any_of=('annual', 'yearly'),
        none_of=('bi-annual', 'semi-annual', 'tri-annual'),
    ),
)


def first_match(rules: Sequence[KeywordRule], text: Optional[str]) -> Optional[KeywordRule]:
    """Return the first rule matching ``text``, or None."""
    if not text:
        return None
    lower = text.lower()
    for rule in rules:
        if rule.matches(lower):
            return rule
    return None


class Classifier:
    """
    Tags invoices with a type and a recurrence frequency.

    The classifier is stateless; the same instance may be shared across
    threads.

    Example:
        >>> classifier = Classifier()
        >>> classifier.classify("Monthly Managed Services", Decimal("1200"))
        (<InvoiceType.MS: 'MS'>, <Frequency.MONTHLY: 'monthly'>)
        >>> classifier.classify("Annual Maintenance", Decimal("-50"))
        (<InvoiceType.CREDIT_MEMO: 'Credit Memo'>, <Frequency.ANNUAL: 'annual'>)
    """

    def __init__(
        self,
        type_rules: Sequence[KeywordRule] = TYPE_RULES,
        frequency_rules: Sequence[KeywordRule] = FREQUENCY_RULES
    ) -> None:
        self.type_rules = tuple(type_rules)
        self.frequency_rules = tuple(frequency_rules)

    def classify(
        self,
        services: Optional[str],
        amount_due: Optional[Decimal] = None
    ) -> Tuple[InvoiceType, Frequency]:
        """
        Classify an invoice.

        Args:
            services: Service description excerpt.
            amount_due: Signed total. A negative amount is always a credit memo.

        Returns:
            Tuple of (invoice_type, frequency).
        """
        invoice_type = self.classify_type(services, amount_due)
        frequency = self.detect_frequency(services)
        logger.debug(f"Classified as {invoice_type.value} / {frequency.value}")
        return invoice_type, frequency

    def classify_type(
        self,
        services: Optional[str],
        amount_due: Optional[Decimal] = None
    ) -> InvoiceType:
        """Return the invoice type; PS when no rule matches."""
        if amount_due is not None and amount_due < 0:
            return InvoiceType.CREDIT_MEMO

        rule = first_match(self.type_rules, services)
        return rule.tag if rule else InvoiceType.PS

    def detect_frequency(self, services: Optional[str]) -> Frequency:
        """Return the frequency; adhoc when no rule matches."""
        rule = first_match(self.frequency_rules, services)
        return rule.tag if rule else Frequency.ADHOC
