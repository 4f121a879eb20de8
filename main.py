#!/usr/bin/env python3
"""
Invoice Tracker - Main Entry Point.

Command-line interface for extracting invoices from plain-text
documents, storing them, and refreshing expected-invoice forecasts.

Usage:
    Command Line:
        python main.py --input invoice.txt
        python main.py --input ./invoices/ --database outputs/tracker.db --excel outputs/report.xlsx
        python main.py --cleanup --today 2024-10-01

    Python:
        from main import run_batch
        result = run_batch("./invoices/")
"""

import argparse
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

# Import project modules
from config import ConfigurationManager
from invoice_tracker.utils.exceptions import InvoiceTrackerError, UnsupportedFileTypeError
from invoice_tracker.utils.helpers import get_file_extension
from invoice_tracker.utils.logger import ROOT_LOGGER_NAME, get_logger, setup_logger_from_config

SUPPORTED_EXTENSIONS = {'.txt'}


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Invoice Tracker: field extraction and recurrence forecasting",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Process a single document:
        python main.py --input invoice.txt

    Process a directory and export to Excel:
        python main.py --input ./invoices/ --excel outputs/report.xlsx

    Purge old acknowledged forecasts:
        python main.py --cleanup
        """
    )

    parser.add_argument(
        "--input", "-i",
        type=str,
        default=None,
        help="Text document or directory of .txt documents"
    )

    parser.add_argument(
        "--database", "-d",
        type=str,
        default=None,
        help="SQLite database path (default: from configuration)"
    )

    parser.add_argument(
        "--excel", "-e",
        type=str,
        default=None,
        help="Write invoices and expected invoices to this Excel file"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    parser.add_argument(
        "--today",
        type=parse_date_argument,
        default=None,
        help="Override today's date (YYYY-MM-DD) for forecasting"
    )

    parser.add_argument(
        "--cleanup",
        action="store_true",
        help="Purge acknowledged expected invoices past the retention window"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args(argv)
    if not args.input and not args.cleanup and not args.excel:
        parser.error("nothing to do: pass --input, --cleanup or --excel")
    return args


def parse_date_argument(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD")


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Initialize configuration and logging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    if args.config:
        ConfigurationManager.reset()
    config = ConfigurationManager(args.config)

    logger = setup_logger_from_config()
    if args.debug:
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.DEBUG)
        for handler in logger.handlers:
            handler.setLevel(logging.DEBUG)

    logger.info("=" * 60)
    logger.info("INVOICE TRACKER")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    if args.input:
        logger.info(f"Input: {args.input}")

    return config


def collect_documents(input_path: str) -> List[Path]:
    """
    Validate the input path and list the documents to process.

    Raises:
        FileNotFoundError: If the input path doesn't exist.
        UnsupportedFileTypeError: If a single file has an unsupported type.
    """
    logger = get_logger(__name__)
    path = Path(input_path)

    if not path.exists():
        raise FileNotFoundError(f"Input path not found: {path}")

    if path.is_file():
        if get_file_extension(path) not in SUPPORTED_EXTENSIONS:
            raise UnsupportedFileTypeError(path.suffix, sorted(SUPPORTED_EXTENSIONS))
        return [path]

    files = sorted(
        p for p in path.iterdir()
        if p.is_file() and get_file_extension(p) in SUPPORTED_EXTENSIONS
    )
    if not files:
        logger.warning(f"No supported files found in: {path}")
    else:
        logger.info(f"Found {len(files)} files to process")
    return files


def run_batch(
    input_path: str,
    database_path: Optional[str] = None,
    today: Optional[date] = None,
    processor=None
):
    """
    Process every document under ``input_path`` and refresh forecasts.

    This is the main programmatic entry point.

    Args:
        input_path: Text document or directory of documents.
        database_path: SQLite database path. If None, uses configuration.
        today: Forecast cut-off date. Defaults to today.
        processor: BatchProcessor to reuse. If None, one is built on
            ``database_path``.

    Returns:
        BatchResult for the run.

    Example:
        >>> result = run_batch("invoices/")
        >>> print(result.summary())
    """
    from invoice_tracker.batch_processor import BatchProcessor, DocumentSource
    from invoice_tracker.output_handler import DatabaseHandler

    if processor is None:
        processor = BatchProcessor(store=DatabaseHandler(database_path))
    sources = [DocumentSource.from_path(p) for p in collect_documents(input_path)]
    return processor.process(sources, today=today)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = parse_arguments(argv)

    try:
        initialize_system(args)
        logger = get_logger(__name__)

        from invoice_tracker.batch_processor import BatchProcessor
        from invoice_tracker.output_handler import DatabaseHandler, ExcelExporter

        store = DatabaseHandler(args.database)
        processor = BatchProcessor(store=store)

        if args.input:
            result = run_batch(args.input, today=args.today, processor=processor)
            print(result.summary())
            for filename, reason in result.failures.items():
                print(f"  failed: {filename}: {reason}")

        if args.cleanup:
            purged = processor.cleanup(args.today)
            print(f"Purged {purged} acknowledged expected invoices")

        if args.excel:
            path = ExcelExporter().export(
                store.get_invoice_rows(),
                store.get_expected_invoices(),
                args.excel
            )
            print(f"Excel output: {path}")

        stats = store.get_statistics()
        logger.info("=" * 60)
        logger.info(
            f"Done. {stats.get('total_invoices', 0)} invoices, "
            f"{stats.get('expected_invoices', 0)} expected invoices stored."
        )
        logger.info("=" * 60)
        return 0

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except InvoiceTrackerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
