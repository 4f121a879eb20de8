"""
Database Handler Module.

This module provides SQLite storage for extracted invoices and
expected-invoice forecasts.

Features:
    - Automatic schema creation
    - Duplicate invoice-number rejection, case and whitespace insensitive
      and safe across worker threads
    - Predicate-based forecast retirement
    - Acknowledgement and retention sweep for forecasts
"""

import sqlite3
from datetime import date, datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from config import get_config
from invoice_tracker.extraction.invoice_fields import Frequency, InvoiceFields, InvoiceType
from invoice_tracker.forecasting.expected_invoice import ExpectedInvoice, InvoiceSnapshot
from invoice_tracker.utils.exceptions import DatabaseError
from invoice_tracker.utils.helpers import ensure_directory
from invoice_tracker.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class DatabaseHandler:
    """
    Handles database operations for invoices and expected invoices.

    Connections are opened per operation, so one handler may be shared
    by several threads. Duplicates are rejected by a UNIQUE index on the
    normalized invoice number, so concurrent inserts of one number
    cannot both succeed.

    Attributes:
        db_path: Path to the SQLite database file

    Example:
        >>> db = DatabaseHandler("outputs/invoice_tracker.db")
        >>> db.insert_invoice(fields)
        True
        >>> db.insert_invoice(fields)
        False
    """

    INVOICE_COLUMNS = (
        'invoice_number', 'number_key', 'client', 'invoice_date', 'due_date', 'amount_due',
        'currency', 'services', 'customer_contract', 'oracle_contract', 'po_number',
        'invoice_type', 'frequency', 'source_file',
    )

    EXPECTED_COLUMNS = (
        'id', 'client', 'customer_contract', 'invoice_type', 'expected_amount', 'currency',
        'expected_date', 'frequency', 'last_invoice_number', 'last_invoice_date',
        'acknowledged', 'acknowledged_date', 'created_date',
    )

    def __init__(self, db_path: Optional[str] = None) -> None:
        """
        Initialize the database handler.

        Args:
            db_path: Path to database file. If None, uses configuration.
        """
        if db_path:
            self.db_path = Path(db_path)
        else:
            output_dir = Path(get_config("paths.output_dir", "outputs"))
            db_name = get_config("output.database.name", "invoice_tracker.db")
            self.db_path = output_dir / db_name

        ensure_directory(self.db_path.parent)

        self._create_tables()

        logger.info(f"DatabaseHandler initialized (db: {self.db_path})")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _create_tables(self) -> None:
        """Create the required database tables."""
        try:
            conn = self._connect()
            try:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS invoices (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        invoice_number TEXT,
                        number_key TEXT UNIQUE,
                        client TEXT NOT NULL,
                        invoice_date TEXT NOT NULL,
                        due_date TEXT NOT NULL,
                        amount_due TEXT NOT NULL,
                        currency TEXT NOT NULL,
                        services TEXT,
                        customer_contract TEXT,
                        oracle_contract TEXT,
                        po_number TEXT,
                        invoice_type TEXT NOT NULL,
                        frequency TEXT NOT NULL,
                        source_file TEXT,
                        created_at TEXT DEFAULT CURRENT_TIMESTAMP
                    )
                """)
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS expected_invoices (
                        id TEXT PRIMARY KEY,
                        client TEXT NOT NULL,
                        customer_contract TEXT,
                        invoice_type TEXT NOT NULL,
                        expected_amount TEXT NOT NULL,
                        currency TEXT NOT NULL,
                        expected_date TEXT NOT NULL,
                        frequency TEXT NOT NULL,
                        last_invoice_number TEXT,
                        last_invoice_date TEXT,
                        acknowledged INTEGER DEFAULT 0,
                        acknowledged_date TEXT,
                        created_date TEXT
                    )
                """)
                conn.execute("""
                    CREATE INDEX IF NOT EXISTS idx_invoices_client
                    ON invoices (client, customer_contract)
                """)
                conn.execute("""
                    CREATE INDEX IF NOT EXISTS idx_expected_client
                    ON expected_invoices (client, customer_contract)
                """)
                conn.commit()
            finally:
                conn.close()

            logger.debug("Database tables created/verified")

        except sqlite3.Error as e:
            raise DatabaseError("create tables", str(e))

    # =========================================================================
    # INVOICES
    # =========================================================================

    @staticmethod
    def number_key(invoice_number: Optional[str]) -> Optional[str]:
        """
        Normalized form used for duplicate detection.

        Example:
            >>> DatabaseHandler.number_key(" INV-46001 ")
            'inv-46001'
            >>> DatabaseHandler.number_key("") is None
            True
        """
        key = (invoice_number or "").strip().lower()
        return key or None

    def insert_invoice(self, fields: InvoiceFields) -> bool:
        """
        Insert an extracted invoice.

        Invoices without a number are always stored (the key is NULL,
        which the UNIQUE index does not compare); numbered invoices are
        stored once, ignoring case and surrounding whitespace.

        Args:
            fields: Classified InvoiceFields.

        Returns:
            True if inserted, False if the invoice number already exists.

        Raises:
            DatabaseError: If insertion fails.
        """
        invoice_number = fields.invoice_number or None
        key = self.number_key(invoice_number)
        values = (
            invoice_number,
            key,
            fields.client,
            fields.invoice_date.isoformat(),
            fields.due_date.isoformat(),
            str(fields.amount_due),
            fields.currency,
            fields.services,
            fields.customer_contract,
            fields.oracle_contract,
            fields.po_number,
            fields.invoice_type.value,
            fields.frequency.value,
            fields.source_file,
        )
        insert_sql = (
            f"INSERT INTO invoices ({', '.join(self.INVOICE_COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in self.INVOICE_COLUMNS)})"
        )

        try:
            conn = self._connect()
            try:
                conn.execute(insert_sql, values)
                conn.commit()
            finally:
                conn.close()
        except sqlite3.IntegrityError:
            logger.info(f"Duplicate invoice number, skipping: {invoice_number}")
            return False
        except sqlite3.Error as e:
            raise DatabaseError("insert invoice", str(e))

        logger.debug(f"Inserted invoice: {invoice_number or '(no number)'}")
        return True

    def invoice_exists(self, invoice_number: str) -> bool:
        """Check if an invoice with the given number is stored, ignoring case and whitespace."""
        key = self.number_key(invoice_number)
        if key is None:
            return False
        rows = self._query(
            "invoice_exists",
            "SELECT COUNT(*) AS n FROM invoices WHERE number_key = ?",
            (key,)
        )
        return rows[0]['n'] > 0

    def get_invoice_rows(self) -> List[Dict[str, Any]]:
        """Retrieve all stored invoices as dictionaries, newest first."""
        return [
            dict(row) for row in self._query(
                "get_invoice_rows",
                "SELECT * FROM invoices ORDER BY invoice_date DESC, id DESC"
            )
        ]

    def get_invoices(self) -> List[InvoiceSnapshot]:
        """
        Retrieve all stored invoices as forecasting snapshots.

        Returns:
            List of InvoiceSnapshot, with ``invoice_date`` as stored text.
        """
        return [
            InvoiceSnapshot(
                invoice_number=row['invoice_number'] or "",
                client=row['client'],
                customer_contract=row['customer_contract'],
                invoice_type=InvoiceType(row['invoice_type']),
                amount_due=Decimal(row['amount_due']),
                currency=row['currency'],
                invoice_date=row['invoice_date'],
                frequency=Frequency(row['frequency']),
            )
            for row in self.get_invoice_rows()
        ]

    # =========================================================================
    # EXPECTED INVOICES
    # =========================================================================

    def get_expected_invoices(self) -> List[ExpectedInvoice]:
        """Retrieve all forecasts ordered by expected date."""
        rows = self._query(
            "get_expected_invoices",
            "SELECT * FROM expected_invoices ORDER BY expected_date ASC"
        )
        return [ExpectedInvoice.from_dict(dict(row)) for row in rows]

    def insert_expected_invoices(self, forecasts: Iterable[ExpectedInvoice]) -> int:
        """
        Store new forecasts.

        Returns:
            Number of forecasts inserted.
        """
        rows = [
            (
                f.id, f.client, f.customer_contract, f.invoice_type.value,
                str(f.expected_amount), f.currency, f.expected_date.isoformat(),
                f.frequency.value, f.last_invoice_number, f.last_invoice_date,
                1 if f.acknowledged else 0,
                f.acknowledged_date.isoformat() if f.acknowledged_date else None,
                f.created_date.isoformat(),
            )
            for f in forecasts
        ]
        if not rows:
            return 0

        sql = (
            f"INSERT INTO expected_invoices ({', '.join(self.EXPECTED_COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in self.EXPECTED_COLUMNS)})"
        )
        try:
            conn = self._connect()
            try:
                conn.executemany(sql, rows)
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise DatabaseError("insert expected invoices", str(e))

        logger.debug(f"Inserted {len(rows)} expected invoices")
        return len(rows)

    def delete_expected_where(self, predicate: Callable[[ExpectedInvoice], bool]) -> int:
        """
        Delete every forecast the predicate selects.

        Args:
            predicate: Returns True for forecasts to delete.

        Returns:
            Number of forecasts deleted.
        """
        ids = [f.id for f in self.get_expected_invoices() if predicate(f)]
        self._delete_expected(ids)
        return len(ids)

    def acknowledge(self, expected_id: str, when: Optional[date] = None) -> bool:
        """
        Mark a forecast as acknowledged.

        Returns:
            True if the forecast exists.
        """
        when = when or date.today()
        count = self._execute(
            "acknowledge",
            "UPDATE expected_invoices SET acknowledged = 1, acknowledged_date = ? WHERE id = ?",
            (when.isoformat(), expected_id)
        )
        return count > 0

    def cleanup_acknowledged(self, today: Optional[date] = None, retention_days: int = 7) -> int:
        """
        Purge forecasts acknowledged more than ``retention_days`` ago.

        Returns:
            Number of forecasts purged.
        """
        today = today or date.today()
        ids = [f.id for f in self.get_expected_invoices() if f.is_stale(today, retention_days)]
        self._delete_expected(ids)

        cutoff = today - timedelta(days=retention_days)
        logger.info(f"Cleaned up {len(ids)} acknowledged expected invoices (before {cutoff})")
        return len(ids)

    def _delete_expected(self, ids: List[str]) -> None:
        if not ids:
            return
        try:
            conn = self._connect()
            try:
                conn.executemany("DELETE FROM expected_invoices WHERE id = ?", [(i,) for i in ids])
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise DatabaseError("delete expected invoices", str(e))

        logger.debug(f"Deleted {len(ids)} expected invoices")

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _execute(self, operation: str, sql: str, params: tuple = ()) -> int:
        """Run a write statement and return the affected row count."""
        try:
            conn = self._connect()
            try:
                cursor = conn.execute(sql, params)
                conn.commit()
                return cursor.rowcount
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise DatabaseError(operation, str(e))

    def _query(self, operation: str, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        try:
            conn = self._connect()
            try:
                return conn.execute(sql, params).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise DatabaseError(operation, str(e))

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get statistics about the stored data.

        Returns:
            Dictionary with counts of invoices, clients and forecasts.
        """
        stats: Dict[str, Any] = {}

        try:
            conn = self._connect()
            try:
                cursor = conn.cursor()

                cursor.execute("SELECT COUNT(*) FROM invoices")
                stats['total_invoices'] = cursor.fetchone()[0]

                cursor.execute("SELECT COUNT(DISTINCT client) FROM invoices")
                stats['unique_clients'] = cursor.fetchone()[0]

                cursor.execute("SELECT COUNT(*) FROM invoices WHERE frequency != 'adhoc'")
                stats['recurring_invoices'] = cursor.fetchone()[0]

                cursor.execute("""
                    SELECT invoice_type, COUNT(*) FROM invoices
                    GROUP BY invoice_type ORDER BY invoice_type
                """)
                stats['by_type'] = {row[0]: row[1] for row in cursor.fetchall()}

                cursor.execute("SELECT COUNT(*) FROM expected_invoices")
                stats['expected_invoices'] = cursor.fetchone()[0]

                cursor.execute("SELECT COUNT(*) FROM expected_invoices WHERE acknowledged = 1")
                stats['acknowledged'] = cursor.fetchone()[0]
            finally:
                conn.close()

            stats['generated_at'] = datetime.now().isoformat(timespec='seconds')
            return stats

        except sqlite3.Error as e:
            logger.error(f"Could not get statistics: {e}")
            return {}
