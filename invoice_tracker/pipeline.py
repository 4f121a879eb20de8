"""
Extraction Pipeline Module.

This module provides the ExtractionPipeline class, the single entry
point that turns one document's text into a complete, classified
InvoiceFields record.

Steps:
    - Extract header fields (FieldExtractor)
    - Classify type and frequency (Classifier)
    - Log a one-line summary
"""

from typing import Optional

from invoice_tracker.classification import Classifier
from invoice_tracker.extraction import FieldExtractor, InvoiceFields
from invoice_tracker.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class ExtractionPipeline:
    """
    Orchestrates field extraction and classification.

    The pipeline holds no per-document state, so one instance can serve
    a whole batch, including from several worker threads.

    Attributes:
        extractor: FieldExtractor instance
        classifier: Classifier instance

    Example:
        >>> pipeline = ExtractionPipeline()
        >>> fields = pipeline.extract(text, "Acme Health_4600123.pdf")
        >>> fields.invoice_type, fields.frequency
        (<InvoiceType.MS: 'MS'>, <Frequency.MONTHLY: 'monthly'>)
    """

    def __init__(
        self,
        extractor: Optional[FieldExtractor] = None,
        classifier: Optional[Classifier] = None
    ) -> None:
        """Initialize the pipeline with its sub-components."""
        self.extractor = extractor or FieldExtractor()
        self.classifier = classifier or Classifier()

        logger.debug("ExtractionPipeline initialized")

    def extract(self, document_text: str, original_filename: str = "") -> InvoiceFields:
        """
        Extract and classify one document.

        Never raises for missing fields: the returned record is always
        complete, with fallbacks listed in ``fields.warnings``.

        Args:
            document_text: Plain text of the document.
            original_filename: Filename as uploaded.

        Returns:
            Classified InvoiceFields.
        """
        fields = self.extractor.extract(document_text, original_filename)
        fields.invoice_type, fields.frequency = self.classifier.classify(
            fields.services, fields.amount_due
        )

        logger.info(
            f"Extracted: Invoice #{fields.invoice_number or 'N/A'}, "
            f"Client: {fields.client}, "
            f"Amount: {fields.amount_due} {fields.currency}, "
            f"Type: {fields.invoice_type.value}, "
            f"Frequency: {fields.frequency.value}"
        )
        if fields.warnings:
            logger.debug(f"Fallbacks for {original_filename or 'document'}: {fields.warnings}")

        return fields
