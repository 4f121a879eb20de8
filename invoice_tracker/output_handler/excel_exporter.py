"""
Excel Exporter Module.

This module writes stored invoices and expected-invoice forecasts to an
Excel workbook with openpyxl.

Sheets:
    - Invoices: one row per stored invoice
    - Expected Invoices: one row per forecast
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import IllegalCharacterError

from config import get_config
from invoice_tracker.forecasting.expected_invoice import ExpectedInvoice
from invoice_tracker.resolvers import DateResolver
from invoice_tracker.utils.exceptions import ExcelExportError
from invoice_tracker.utils.helpers import ensure_directory, generate_timestamp, parse_iso_date
from invoice_tracker.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

Columns = Sequence[Tuple[str, str]]


class ExcelExporter:
    """
    Exports invoices and forecasts to Excel format.

    Attributes:
        output_dir: Directory for output files
        invoice_sheet: Title of the invoice sheet
        expected_sheet: Title of the forecast sheet

    Example:
        >>> exporter = ExcelExporter()
        >>> path = exporter.export(db.get_invoice_rows(), db.get_expected_invoices())
    """

    INVOICE_COLUMNS: Columns = [
        ('Invoice Number', 'invoice_number'),
        ('Client', 'client'),
        ('Invoice Date', 'invoice_date'),
        ('Due Date', 'due_date'),
        ('Amount Due', 'amount_due'),
        ('Currency', 'currency'),
        ('Type', 'invoice_type'),
        ('Frequency', 'frequency'),
        ('Customer Contract', 'customer_contract'),
        ('Oracle Contract', 'oracle_contract'),
        ('PO Number', 'po_number'),
        ('Services', 'services'),
        ('Source File', 'source_file'),
    ]

    EXPECTED_COLUMNS: Columns = [
        ('Client', 'client'),
        ('Customer Contract', 'customer_contract'),
        ('Type', 'invoice_type'),
        ('Expected Amount', 'expected_amount'),
        ('Currency', 'currency'),
        ('Expected Date', 'expected_date'),
        ('Frequency', 'frequency'),
        ('Last Invoice Number', 'last_invoice_number'),
        ('Last Invoice Date', 'last_invoice_date'),
        ('Acknowledged', 'acknowledged'),
    ]

    DATE_FIELDS = frozenset({'invoice_date', 'due_date', 'expected_date', 'last_invoice_date'})
    AMOUNT_FIELDS = frozenset({'amount_due', 'expected_amount'})

    MAX_COLUMN_WIDTH = 50

    def __init__(self) -> None:
        """Initialize the Excel exporter with configuration."""
        self.output_dir = Path(get_config("paths.output_dir", "outputs"))
        self.invoice_sheet = get_config("output.excel.invoice_sheet", "Invoices")
        self.expected_sheet = get_config("output.excel.expected_sheet", "Expected Invoices")
        self.filename_pattern = get_config(
            "output.excel.filename_pattern",
            "invoices_{timestamp}.xlsx"
        )

        logger.debug(f"ExcelExporter initialized (output_dir: {self.output_dir})")

    def export(
        self,
        invoices: List[Dict[str, Any]],
        expected: Optional[List[ExpectedInvoice]] = None,
        filepath: Optional[str] = None
    ) -> str:
        """
        Export invoices and forecasts to an Excel file.

        Args:
            invoices: Invoice rows, as returned by ``DatabaseHandler.get_invoice_rows``.
            expected: Forecasts to list on the second sheet.
            filepath: Output path. If None, a timestamped file in the output dir.

        Returns:
            Path to the created Excel file.

        Raises:
            ExcelExportError: If the workbook cannot be written.
        """
        path = Path(filepath) if filepath else self.output_dir / self.get_default_filename()
        ensure_directory(path.parent)

        try:
            workbook = Workbook()

            sheet = workbook.active
            sheet.title = self.invoice_sheet
            self._write_sheet(sheet, self.INVOICE_COLUMNS, invoices, "4472C4")

            expected_rows = [e.to_dict() for e in (expected or [])]
            self._write_sheet(
                workbook.create_sheet(title=self.expected_sheet),
                self.EXPECTED_COLUMNS,
                expected_rows,
                "548235"
            )

            workbook.save(path)

        except (OSError, ValueError, IllegalCharacterError) as e:
            logger.error(f"Excel export failed: {e}")
            raise ExcelExportError(str(path), str(e))

        logger.info(
            f"Excel file saved: {path} "
            f"({len(invoices)} invoices, {len(expected_rows)} expected)"
        )
        return str(path)

    def _write_sheet(
        self,
        sheet,
        columns: Columns,
        rows: List[Dict[str, Any]],
        header_color: str
    ) -> None:
        """
        Write a header row and data rows, then fit the column widths.

        Args:
            sheet: openpyxl Worksheet instance.
            columns: (header, key) pairs.
            rows: Dictionaries keyed by column key.
            header_color: Hex fill color for the header row.
        """
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color=header_color, end_color=header_color, fill_type="solid")
        thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

        for col, (header_name, _) in enumerate(columns, 1):
            cell = sheet.cell(row=1, column=col, value=header_name)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal="center", vertical="center")
            cell.border = thin_border

        for row_num, row in enumerate(rows, 2):
            for col, (_, key) in enumerate(columns, 1):
                cell = sheet.cell(row=row_num, column=col, value=self._cell_value(key, row.get(key)))
                cell.border = thin_border

        for col, (header_name, _) in enumerate(columns, 1):
            max_length = len(header_name)
            for row_num in range(2, len(rows) + 2):
                value = sheet.cell(row=row_num, column=col).value
                if value is not None:
                    max_length = max(max_length, len(str(value)))
            sheet.column_dimensions[get_column_letter(col)].width = min(
                max_length + 2, self.MAX_COLUMN_WIDTH
            )

        sheet.freeze_panes = 'A2'

    def _cell_value(self, key: str, value: Any) -> Any:
        """Dates as DD-Mon-YY, amounts as numbers, booleans as Yes/No."""
        if value is None:
            return ''
        if key in self.DATE_FIELDS:
            parsed = parse_iso_date(value)
            if parsed:
                return DateResolver.format_for_display(parsed)
        elif key in self.AMOUNT_FIELDS:
            try:
                return float(value)
            except (TypeError, ValueError):
                pass
        elif isinstance(value, bool):
            return 'Yes' if value else 'No'
        elif not isinstance(value, str):
            return value

        # Control characters from scanned text are not allowed in xlsx cells
        return ILLEGAL_CHARACTERS_RE.sub('', str(value))

    def get_default_filename(self) -> str:
        """Generate a default filename with timestamp."""
        return self.filename_pattern.format(timestamp=generate_timestamp())
