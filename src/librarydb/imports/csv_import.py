"""CSV import for the catalog's own export format.

Reads the quoted, header-less rows written by ``CSVExporter`` back into
creation schemas.
"""

import csv
from io import StringIO
from typing import Callable, TypeVar

from pydantic import BaseModel, ValidationError

from ..db.schemas import BookCreate, BorrowerCreate
from ..export.csv_export import BOOK_COLUMNS, BORROWER_COLUMNS

T = TypeVar("T", bound=BaseModel)


class CSVImportError(Exception):
    """Raised when CSV text cannot be parsed into records."""

    def __init__(self, message: str, line: int = 0):
        self.line = line
        super().__init__(f"line {line}: {message}" if line else message)


def parse_book_csv(text: str) -> list[BookCreate]:
    """Parse book rows (title, author, call number).

    Args:
        text: CSV content

    Returns:
        List of books in file order

    Raises:
        CSVImportError: If a row has the wrong number of fields or bad values
    """
    return _parse(text, BOOK_COLUMNS, BookCreate)


def parse_borrower_csv(text: str) -> list[BorrowerCreate]:
    """Parse borrower rows (first name, last name, email, phone)."""
    return _parse(text, BORROWER_COLUMNS, BorrowerCreate)


def _parse(text: str, columns: list[str], schema: Callable[..., T]) -> list[T]:
    records = []
    reader = csv.reader(StringIO(text, newline=""), strict=True)

    try:
        for row in reader:
            # Skip blank lines
            if not row:
                continue

            if len(row) != len(columns):
                raise CSVImportError(
                    f"expected {len(columns)} fields, got {len(row)}",
                    line=reader.line_num,
                )

            try:
                records.append(schema(**dict(zip(columns, row))))
            except ValidationError as e:
                raise CSVImportError(str(e), line=reader.line_num) from e
    except csv.Error as e:
        raise CSVImportError(str(e), line=reader.line_num) from e

    return records
