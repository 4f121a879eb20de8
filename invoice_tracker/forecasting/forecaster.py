"""
Recurrence Forecaster Module.

This module materializes "expected invoice" forecasts from posted
recurring invoices and decides which forecasts a new invoice retires.

Algorithm:
    1. Group non-adhoc invoices by (client, contract, frequency) and keep
       the most recent invoice of each group.
    2. Project the next date: last invoice date plus the frequency
       interval, using calendar arithmetic (Jan 31 + 1 month = Feb 29/28).
    3. Keep only projections that are already due (on or before today).
    4. Drop projections whose (client, contract, expected date) already
       exists, or was created earlier in the same run.

Retirement is coarse: any new recurring invoice deletes
every forecast for its client whose contract matches or is missing,
whatever the expected date or frequency.
"""

from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from dateutil.relativedelta import relativedelta

from config import get_config_int
from invoice_tracker.extraction.invoice_fields import Frequency, InvoiceFields
from invoice_tracker.utils.exceptions import ForecastError
from invoice_tracker.utils.helpers import parse_iso_date
from invoice_tracker.utils.logger import get_logger
from .expected_invoice import ExpectedInvoice, InvoiceSnapshot

# Initialize module logger
logger = get_logger(__name__)

GroupKey = Tuple[str, str, Frequency]


class RecurrenceForecaster:
    """
    Generates and retires expected-invoice forecasts.

    Attributes:
        clock: Returns "today"; injectable for deterministic runs
        retention_days: Days an acknowledged forecast is kept

    Example:
        >>> forecaster = RecurrenceForecaster()
        >>> created = forecaster.generate(store.get_invoices(), store.get_expected_invoices())
        >>> store.insert_expected_invoices(created)
    """

    INTERVALS: Dict[Frequency, relativedelta] = {
        Frequency.MONTHLY: relativedelta(months=1),
        Frequency.QUARTERLY: relativedelta(months=3),
        Frequency.BI_ANNUAL: relativedelta(months=6),
        Frequency.TRI_ANNUAL: relativedelta(months=4),
        Frequency.ANNUAL: relativedelta(years=1),
    }

    NO_CONTRACT = "none"

    def __init__(self, clock: Optional[Callable[[], date]] = None) -> None:
        self.clock = clock or date.today
        self.retention_days = get_config_int("forecast.retention_days", 7)
        logger.debug("RecurrenceForecaster initialized")

    def group(self, invoices: Iterable[InvoiceSnapshot]) -> Dict[GroupKey, InvoiceSnapshot]:
        """
        Group recurring invoices and keep the latest of each group.

        Args:
            invoices: Stored invoices; adhoc ones are ignored.

        Returns:
            Mapping of (client, contract or "none", frequency) to the
            invoice with the latest ``invoice_date``. Invoices whose date
            does not parse only represent a group that has no valid date.
        """
        groups: Dict[GroupKey, InvoiceSnapshot] = {}
        for invoice in invoices:
            if invoice.frequency is Frequency.ADHOC:
                continue
            key = (invoice.client, invoice.customer_contract or self.NO_CONTRACT, invoice.frequency)
            current = groups.get(key)
            if current is None or self._recency(invoice) > self._recency(current):
                groups[key] = invoice
        return groups

    @staticmethod
    def _recency(invoice: InvoiceSnapshot) -> Tuple[bool, date]:
        parsed = parse_iso_date(invoice.invoice_date)
        return parsed is not None, parsed or date.min

    def project(self, invoice: InvoiceSnapshot) -> date:
        """
        Project the next expected date for a group representative.

        Raises:
            ForecastError: If the stored date does not parse, the frequency
                has no interval, or the projection overflows.
        """
        key = (invoice.client, invoice.contract_key, invoice.frequency.value)

        last_date = parse_iso_date(invoice.invoice_date)
        if last_date is None:
            raise ForecastError(key, f"invalid invoice date '{invoice.invoice_date}'")

        interval = self.INTERVALS.get(invoice.frequency)
        if interval is None:
            raise ForecastError(key, f"no interval for frequency '{invoice.frequency.value}'")

        try:
            return last_date + interval
        except (OverflowError, ValueError) as e:
            raise ForecastError(key, str(e))

    def generate(
        self,
        invoices: Iterable[InvoiceSnapshot],
        existing: Iterable[ExpectedInvoice] = (),
        today: Optional[date] = None
    ) -> List[ExpectedInvoice]:
        """
        Create the forecasts that are due and do not exist yet.

        Running twice with the same inputs, feeding back the first run's
        output as ``existing``, creates nothing the second time.

        Args:
            invoices: All stored invoices.
            existing: Forecasts already stored.
            today: Cut-off date. Defaults to the clock.

        Returns:
            New ExpectedInvoice records to store.
        """
        today = today or self.clock()
        seen = {forecast.identity_key for forecast in existing}
        created: List[ExpectedInvoice] = []

        for invoice in self.group(invoices).values():
            try:
                expected_date = self.project(invoice)
            except ForecastError as e:
                logger.warning(f"Skipping invoice {invoice.invoice_number}: {e}")
                continue

            if expected_date > today:
                continue

            identity = (invoice.client, invoice.contract_key, expected_date)
            if identity in seen:
                logger.debug(f"Expected invoice already exists for {identity}")
                continue

            created.append(ExpectedInvoice(
                client=invoice.client,
                customer_contract=invoice.customer_contract or None,
                invoice_type=invoice.invoice_type,
                expected_amount=invoice.amount_due,
                currency=invoice.currency,
                expected_date=expected_date,
                frequency=invoice.frequency,
                last_invoice_number=invoice.invoice_number,
                last_invoice_date=str(invoice.invoice_date),
                created_date=today,
            ))
            seen.add(identity)

        logger.info(f"Generated {len(created)} expected invoices")
        return created

    @staticmethod
    def retirement_predicate(
        invoice: Union[InvoiceFields, InvoiceSnapshot]
    ) -> Callable[[ExpectedInvoice], bool]:
        """
        Build the predicate selecting forecasts a new invoice retires.

        Adhoc invoices retire nothing. Otherwise a forecast is retired when
        it has the same client and its contract equals the invoice's
        contract or is missing.

        Example:
            >>> predicate = RecurrenceForecaster.retirement_predicate(fields)
            >>> store.delete_expected_where(predicate)
        """
        if invoice.frequency is Frequency.ADHOC:
            return lambda expected: False

        client = invoice.client
        contract = invoice.customer_contract or None

        def retires(expected: ExpectedInvoice) -> bool:
            if expected.client != client:
                return False
            return expected.customer_contract is None or expected.customer_contract == contract

        return retires
