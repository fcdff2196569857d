"""Import catalog data from CSV."""

from .csv_import import CSVImportError, parse_book_csv, parse_borrower_csv

__all__ = [
    "CSVImportError",
    "parse_book_csv",
    "parse_borrower_csv",
]
