"""Pydantic schemas for catalog data.

These schemas are the public shape of books, borrowers and loans, and of
the whole-catalog snapshot written to disk.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, model_validator


# ============================================================================
# Books
# ============================================================================


class BookBase(BaseModel):
    """Base book fields."""

    title: str
    author: str
    call_number: str = Field(..., min_length=1)


class BookCreate(BookBase):
    """Schema for adding a book."""

    pass


class BookRecord(BookBase):
    """A book as stored in the catalog."""

    model_config = {"from_attributes": True}


# ============================================================================
# Borrowers
# ============================================================================


class BorrowerBase(BaseModel):
    """Base borrower fields."""

    first_name: str
    last_name: str
    email: str = Field(..., min_length=1)
    phone: str


class BorrowerCreate(BorrowerBase):
    """Schema for adding a borrower."""

    pass


class BorrowerRecord(BorrowerBase):
    """A borrower as stored in the catalog."""

    model_config = {"from_attributes": True}


# ============================================================================
# Loans
# ============================================================================


class LoanRecord(BaseModel):
    """An active loan of one book to one borrower."""

    call_number: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    loan_date: date
    due_date: date
    renewed: bool = False

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def due_after_loan(self) -> "LoanRecord":
        """Validate due date is not before loan date."""
        if self.due_date < self.loan_date:
            raise ValueError("due_date must not be before loan_date")
        return self

    def is_overdue(self, today: Optional[date] = None) -> bool:
        """Check if loan is overdue."""
        return self.due_date < (today or date.today())

    def days_until_due(self, today: Optional[date] = None) -> int:
        """Days until due (negative if overdue)."""
        return (self.due_date - (today or date.today())).days


# ============================================================================
# Snapshot / Statistics
# ============================================================================


class CatalogState(BaseModel):
    """Complete catalog contents, as saved to and loaded from a snapshot."""

    books: list[BookRecord] = Field(default_factory=list)
    borrowers: list[BorrowerRecord] = Field(default_factory=list)
    loans: list[LoanRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_consistency(self) -> "CatalogState":
        """Validate unique keys and that every loan references known records."""
        call_numbers = [b.call_number for b in self.books]
        if len(set(call_numbers)) != len(call_numbers):
            raise ValueError("duplicate call number in books")

        emails = [b.email for b in self.borrowers]
        if len(set(emails)) != len(emails):
            raise ValueError("duplicate email in borrowers")

        loaned = [loan.call_number for loan in self.loans]
        if len(set(loaned)) != len(loaned):
            raise ValueError("more than one loan for the same call number")

        known_books = set(call_numbers)
        known_borrowers = set(emails)
        for loan in self.loans:
            if loan.call_number not in known_books:
                raise ValueError(f"loan references unknown call number {loan.call_number!r}")
            if loan.email not in known_borrowers:
                raise ValueError(f"loan references unknown email {loan.email!r}")

        return self


class CatalogStats(BaseModel):
    """Overall catalog statistics."""

    total_books: int
    total_borrowers: int
    checked_out: int
    available: int
    overdue: int
    renewed: int
