"""CSV export functionality.

Every field is quoted, fields are comma separated and each record ends
with a single newline, with no header row:

    "Title1","Author1","CallNumber1"
    "FirstName1","LastName1","Email1","Phone1"

Books are ordered by call number and borrowers by email.
"""

import csv
import logging
from dataclasses import dataclass
from io import StringIO
from pathlib import Path
from typing import Iterable, Optional

from sqlalchemy import select

from ..db.models import Book, Borrower
from ..db.sqlite import Database

logger = logging.getLogger(__name__)

BOOK_COLUMNS = ["title", "author", "call_number"]
BORROWER_COLUMNS = ["first_name", "last_name", "email", "phone"]


@dataclass
class ExportResult:
    """Result of an export operation."""

    success: bool
    file_path: Optional[Path] = None
    records_exported: int = 0
    error: Optional[str] = None


def format_rows(rows: Iterable[Iterable[str]]) -> str:
    """Render rows as fully quoted, newline-terminated CSV.

    Embedded double quotes are doubled.
    """
    output = StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(rows)
    return output.getvalue()


class CSVExporter:
    """Exports catalog books and borrowers as CSV."""

    def __init__(self, db: Database):
        """Initialize exporter.

        Args:
            db: Database instance
        """
        self.db = db

    def books_to_string(self) -> str:
        """Export all books, ordered by call number."""
        return format_rows(self._book_rows())

    def borrowers_to_string(self) -> str:
        """Export all borrowers, ordered by email."""
        return format_rows(self._borrower_rows())

    def export_books(self, output_path: Path) -> ExportResult:
        """Export books to a CSV file.

        Args:
            output_path: Path for output file

        Returns:
            ExportResult with success status and details
        """
        return self._export(output_path, self._book_rows)

    def export_borrowers(self, output_path: Path) -> ExportResult:
        """Export borrowers to a CSV file.

        Args:
            output_path: Path for output file

        Returns:
            ExportResult with success status and details
        """
        return self._export(output_path, self._borrower_rows)

    def _export(self, output_path: Path, fetch_rows) -> ExportResult:
        try:
            rows = fetch_rows()
            with open(output_path, "w", newline="", encoding="utf-8") as f:
                f.write(format_rows(rows))

            logger.info("Exported %d records to %s", len(rows), output_path)
            return ExportResult(
                success=True,
                file_path=output_path,
                records_exported=len(rows),
            )

        except Exception as e:
            logger.warning("CSV export to %s failed: %s", output_path, e)
            return ExportResult(
                success=False,
                file_path=output_path,
                error=str(e),
            )

    def _book_rows(self) -> list[list[str]]:
        with self.db.get_session() as session:
            books = session.execute(select(Book).order_by(Book.call_number)).scalars()
            return [[book.title, book.author, book.call_number] for book in books]

    def _borrower_rows(self) -> list[list[str]]:
        with self.db.get_session() as session:
            borrowers = session.execute(select(Borrower).order_by(Borrower.email)).scalars()
            return [
                [b.first_name, b.last_name, b.email, b.phone]
                for b in borrowers
            ]
