"""SQLAlchemy ORM models for the catalog database.

Tables:
- books: Catalog entries, keyed by call number
- borrowers: Library patrons, keyed by email
- loans: Active loans, keyed by call number (at most one per book)
"""

from datetime import date
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Book(Base):
    """Book model - one catalog entry."""

    __tablename__ = "books"

    call_number: Mapped[str] = mapped_column(String(200), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    author: Mapped[str] = mapped_column(String(500), nullable=False)

    # Relationships
    loan: Mapped[Optional["Loan"]] = relationship("Loan", back_populates="book")

    def __repr__(self) -> str:
        return f"<Book(call_number='{self.call_number}', title='{self.title}')>"


class Borrower(Base):
    """Borrower model - a patron who can check books out."""

    __tablename__ = "borrowers"

    email: Mapped[str] = mapped_column(String(200), primary_key=True)
    first_name: Mapped[str] = mapped_column(String(200), nullable=False)
    last_name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)

    # Relationships
    loans: Mapped[list["Loan"]] = relationship("Loan", back_populates="borrower")

    def __repr__(self) -> str:
        return f"<Borrower(email='{self.email}', name='{self.first_name} {self.last_name}')>"


class Loan(Base):
    """Loan model - an active checkout.

    The primary key is the call number, so a book can never have two
    active loans. Returning a book deletes its row.
    """

    __tablename__ = "loans"

    call_number: Mapped[str] = mapped_column(
        String(200),
        ForeignKey("books.call_number", ondelete="CASCADE"),
        primary_key=True,
    )
    email: Mapped[str] = mapped_column(
        String(200),
        ForeignKey("borrowers.email", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Dates
    loan_date: Mapped[str] = mapped_column(String(10), nullable=False)  # ISO date
    due_date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)  # ISO date

    renewed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Relationships
    book: Mapped["Book"] = relationship("Book", back_populates="loan")
    borrower: Mapped["Borrower"] = relationship("Borrower", back_populates="loans")

    def __repr__(self) -> str:
        return f"<Loan(call_number='{self.call_number}', email='{self.email}', due={self.due_date})>"

    @property
    def due(self) -> date:
        """Due date as a date object."""
        return date.fromisoformat(self.due_date)
