"""Database module for catalog storage."""

from .models import Base, Book, Borrower, Loan
from .schemas import (
    BookCreate,
    BookRecord,
    BorrowerCreate,
    BorrowerRecord,
    CatalogState,
    CatalogStats,
    LoanRecord,
)
from .sqlite import Database

__all__ = [
    "Base",
    "Book",
    "Borrower",
    "Loan",
    "BookCreate",
    "BookRecord",
    "BorrowerCreate",
    "BorrowerRecord",
    "CatalogState",
    "CatalogStats",
    "LoanRecord",
    "Database",
]
