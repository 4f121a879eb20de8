"""
Batch Processor Module.

This module runs a batch of documents through extraction and storage,
then refreshes the expected-invoice forecasts.

Per document:
    1. Read the text (errors are recorded, the batch continues)
    2. Extract and classify
    3. Store, rejecting duplicate invoice numbers
    4. If stored and recurring, retire matching forecasts

After the batch, forecasts are regenerated once.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

from config import get_config_int
from invoice_tracker.extraction import InvoiceFields
from invoice_tracker.forecasting import RecurrenceForecaster
from invoice_tracker.output_handler import DatabaseHandler
from invoice_tracker.pipeline import ExtractionPipeline
from invoice_tracker.utils.exceptions import DocumentNotFoundError, DocumentReadError
from invoice_tracker.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


@dataclass
class DocumentSource:
    """
    A document to process.

    Attributes:
        filename: Original filename, used as a client hint
        read: Returns the document's plain text; may raise
    """
    filename: str
    read: Callable[[], str]

    @classmethod
    def from_path(cls, path: Union[str, Path], encoding: str = "utf-8") -> 'DocumentSource':
        """Source reading a plain-text file when processed."""
        path = Path(path)

        def read() -> str:
            if not path.exists():
                raise DocumentNotFoundError(str(path))
            try:
                return path.read_text(encoding=encoding)
            except (OSError, UnicodeDecodeError) as e:
                raise DocumentReadError(str(path), str(e))

        return cls(filename=path.name, read=read)

    @classmethod
    def from_text(cls, filename: str, text: str) -> 'DocumentSource':
        return cls(filename=filename, read=lambda: text)


@dataclass
class BatchResult:
    """Outcome of a batch."""
    stored: List[InvoiceFields] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)
    retired: int = 0
    forecasts_created: int = 0

    @property
    def total(self) -> int:
        return len(self.stored) + len(self.duplicates) + len(self.failures)

    def summary(self) -> str:
        return (
            f"{self.total} documents: {len(self.stored)} stored, "
            f"{len(self.duplicates)} duplicates, {len(self.failures)} failed; "
            f"{self.retired} forecasts retired, {self.forecasts_created} created"
        )


class BatchProcessor:
    """
    Processes document batches end to end.

    Attributes:
        pipeline: ExtractionPipeline instance
        store: DatabaseHandler instance
        forecaster: RecurrenceForecaster instance
        max_workers: Worker threads for extraction and storage

    Example:
        >>> processor = BatchProcessor(store=DatabaseHandler("outputs/tracker.db"))
        >>> result = processor.process([DocumentSource.from_path("invoice.txt")])
        >>> print(result.summary())
    """

    def __init__(
        self,
        store: DatabaseHandler,
        pipeline: Optional[ExtractionPipeline] = None,
        forecaster: Optional[RecurrenceForecaster] = None,
        max_workers: Optional[int] = None
    ) -> None:
        self.store = store
        self.pipeline = pipeline or ExtractionPipeline()
        self.forecaster = forecaster or RecurrenceForecaster()
        self.max_workers = max(1, max_workers or get_config_int("batch.max_workers", 1))

        logger.debug(f"BatchProcessor initialized (workers: {self.max_workers})")

    def process(self, sources: Iterable[DocumentSource], today: Optional[date] = None) -> BatchResult:
        """
        Process a batch and refresh forecasts.

        Args:
            sources: Documents to process.
            today: Forecast cut-off date. Defaults to the forecaster's clock.

        Returns:
            BatchResult describing what happened to each document.
        """
        sources = list(sources)
        result = BatchResult()
        logger.info(f"Processing {len(sources)} documents...")

        if self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                outcomes = list(executor.map(self._process_one, sources))
        else:
            outcomes = [self._process_one(source) for source in sources]

        for source, (status, payload, retired) in zip(sources, outcomes):
            if status == 'stored':
                result.stored.append(payload)
            elif status == 'duplicate':
                result.duplicates.append(source.filename)
            else:
                result.failures[source.filename] = payload
            result.retired += retired

        result.forecasts_created = self.refresh_forecasts(today)

        logger.info(f"Batch complete: {result.summary()}")
        return result

    def _process_one(self, source: DocumentSource):
        """Return (status, payload, retired_count) for one document."""
        logger.info(f"Processing: {source.filename}")

        try:
            text = source.read()
            fields = self.pipeline.extract(text, source.filename)

            if not self.store.insert_invoice(fields):
                return 'duplicate', fields, 0

            retired = 0
            if fields.is_recurring:
                retired = self.store.delete_expected_where(
                    self.forecaster.retirement_predicate(fields)
                )
                if retired:
                    logger.info(f"Retired {retired} expected invoices for {fields.client}")

            return 'stored', fields, retired

        except Exception as e:
            logger.error(f"Error processing {source.filename}: {e}")
            return 'failed', str(e), 0

    def refresh_forecasts(self, today: Optional[date] = None) -> int:
        """
        Regenerate forecasts from everything stored.

        Returns:
            Number of forecasts created.
        """
        created = self.forecaster.generate(
            self.store.get_invoices(),
            self.store.get_expected_invoices(),
            today=today
        )
        return self.store.insert_expected_invoices(created)

    def cleanup(self, today: Optional[date] = None) -> int:
        """Purge acknowledged forecasts past the retention window."""
        return self.store.cleanup_acknowledged(
            today or self.forecaster.clock(),
            self.forecaster.retention_days
        )
