"""Library catalog: books, borrowers and the loans between them.

Checkout, return and renewal report rejection by returning False and never
change state when they do. Adding a duplicate book or borrower raises
ValueError.
"""

import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Optional, Union

from sqlalchemy import delete, func, select

from ..backup.snapshot import read_snapshot, write_snapshot
from ..config import get_config
from ..db.models import Book, Borrower, Loan
from ..db.schemas import (
    BookCreate,
    BookRecord,
    BorrowerCreate,
    BorrowerRecord,
    CatalogState,
    CatalogStats,
    LoanRecord,
)
from ..db.sqlite import Database
from ..export.csv_export import CSVExporter
from ..imports.csv_import import parse_book_csv, parse_borrower_csv

logger = logging.getLogger(__name__)

# Length of a loan, and of its single renewal
LOAN_PERIOD = timedelta(days=28)


class LibraryCatalog:
    """Manages the books, borrowers and active loans of one library."""

    def __init__(self, db: Optional[Database] = None):
        """Initialize catalog.

        Args:
            db: Database instance. Defaults to a new private in-memory
                database, so every catalog starts out empty.
        """
        self.db = db or Database()
        self.db.create_tables()

    @classmethod
    def from_state(cls, state: CatalogState, db: Optional[Database] = None) -> "LibraryCatalog":
        """Create a catalog holding the given state."""
        catalog = cls(db)
        catalog.load_state(state)
        return catalog

    def reset(self) -> None:
        """Remove all books, borrowers and loans."""
        self.db.reset()
        logger.info("Catalog reset")

    # -------------------------------------------------------------------------
    # Books and Borrowers
    # -------------------------------------------------------------------------

    def add_book(self, title: str, author: str, call_number: str) -> None:
        """Add a book to the catalog.

        Args:
            title: Book title
            author: Book author
            call_number: Unique call number

        Raises:
            ValueError: If a book with this call number already exists
        """
        data = BookCreate(title=title, author=author, call_number=call_number)
        with self.db.get_session() as session:
            self._insert_books(session, [data])
        logger.info("Added book %s", call_number)

    def add_borrower(self, first_name: str, last_name: str, email: str, phone: str) -> None:
        """Add a borrower to the catalog.

        Args:
            first_name: First name
            last_name: Last name
            email: Unique email address
            phone: Phone number

        Raises:
            ValueError: If a borrower with this email already exists
        """
        data = BorrowerCreate(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
        )
        with self.db.get_session() as session:
            self._insert_borrowers(session, [data])
        logger.info("Added borrower %s", email)

    def get_book(self, call_number: str) -> Optional[BookRecord]:
        """Get a book by call number."""
        with self.db.get_session() as session:
            book = session.get(Book, call_number)
            return BookRecord.model_validate(book) if book else None

    def get_borrower(self, email: str) -> Optional[BorrowerRecord]:
        """Get a borrower by email."""
        with self.db.get_session() as session:
            borrower = session.get(Borrower, email)
            return BorrowerRecord.model_validate(borrower) if borrower else None

    def get_call_numbers(self) -> list[str]:
        """All call numbers, in ascending order."""
        with self.db.get_session() as session:
            stmt = select(Book.call_number).order_by(Book.call_number)
            return list(session.execute(stmt).scalars())

    def get_emails(self) -> list[str]:
        """All borrower emails, in ascending order."""
        with self.db.get_session() as session:
            stmt = select(Borrower.email).order_by(Borrower.email)
            return list(session.execute(stmt).scalars())

    def get_book_csv(self) -> str:
        """Books as quoted CSV lines, ordered by call number."""
        return CSVExporter(self.db).books_to_string()

    def get_borrower_csv(self) -> str:
        """Borrowers as quoted CSV lines, ordered by email."""
        return CSVExporter(self.db).borrowers_to_string()

    def import_book_csv(self, text: str) -> int:
        """Add every book in CSV text produced by ``get_book_csv``.

        Nothing is added if any row is malformed or duplicates a call number.

        Returns:
            Number of books added
        """
        records = parse_book_csv(text)
        with self.db.get_session() as session:
            self._insert_books(session, records)
        logger.info("Imported %d books", len(records))
        return len(records)

    def import_borrower_csv(self, text: str) -> int:
        """Add every borrower in CSV text produced by ``get_borrower_csv``.

        Nothing is added if any row is malformed or duplicates an email.

        Returns:
            Number of borrowers added
        """
        records = parse_borrower_csv(text)
        with self.db.get_session() as session:
            self._insert_borrowers(session, records)
        logger.info("Imported %d borrowers", len(records))
        return len(records)

    # -------------------------------------------------------------------------
    # Loans
    # -------------------------------------------------------------------------

    def checkout(self, call_number: str, email: str, today: Optional[date] = None) -> bool:
        """Check a book out to a borrower.

        Args:
            call_number: Book to check out
            email: Borrower taking the book
            today: Loan date (default: today). The book is due
                LOAN_PERIOD later.

        Returns:
            True if the loan was created; False if the book or borrower is
            unknown or the book is already checked out
        """
        today = today or date.today()
        with self.db.get_session() as session:
            if session.get(Book, call_number) is None:
                logger.debug("Checkout rejected: unknown call number %s", call_number)
                return False
            if session.get(Borrower, email) is None:
                logger.debug("Checkout rejected: unknown borrower %s", email)
                return False
            if session.get(Loan, call_number) is not None:
                logger.debug("Checkout rejected: %s is already checked out", call_number)
                return False

            due = today + LOAN_PERIOD
            session.add(
                Loan(
                    call_number=call_number,
                    email=email,
                    loan_date=today.isoformat(),
                    due_date=due.isoformat(),
                    renewed=False,
                )
            )

        logger.info("Checked out %s to %s, due %s", call_number, email, due)
        return True

    def return_book(self, call_number: str) -> bool:
        """Return a checked-out book.

        Returns:
            True if the book was checked out and is now returned
        """
        with self.db.get_session() as session:
            loan = session.get(Loan, call_number)
            if loan is None:
                logger.debug("Return rejected: %s is not checked out", call_number)
                return False
            session.delete(loan)

        logger.info("Returned %s", call_number)
        return True

    def renew(self, call_number: str) -> bool:
        """Extend a loan's due date by LOAN_PERIOD.

        A loan can be renewed once; a new checkout starts a fresh loan.

        Returns:
            True if renewed; False if the book is not checked out or the
            loan was already renewed
        """
        with self.db.get_session() as session:
            loan = session.get(Loan, call_number)
            if loan is None:
                logger.debug("Renew rejected: %s is not checked out", call_number)
                return False
            if loan.renewed:
                logger.debug("Renew rejected: loan of %s already renewed", call_number)
                return False

            due = loan.due + LOAN_PERIOD
            loan.due_date = due.isoformat()
            loan.renewed = True

        logger.info("Renewed %s, now due %s", call_number, due)
        return True

    def is_checked_out(self, call_number: str) -> bool:
        """Check if a book has an active loan."""
        with self.db.get_session() as session:
            return session.get(Loan, call_number) is not None

    def get_due_date(self, call_number: str) -> Optional[date]:
        """Due date of the book's loan, or None if it is not checked out."""
        with self.db.get_session() as session:
            loan = session.get(Loan, call_number)
            return loan.due if loan else None

    def get_loan(self, call_number: str) -> Optional[LoanRecord]:
        """Get the active loan for a book."""
        with self.db.get_session() as session:
            loan = session.get(Loan, call_number)
            return LoanRecord.model_validate(loan) if loan else None

    def list_loans(self, email: Optional[str] = None) -> list[LoanRecord]:
        """List active loans ordered by call number.

        Args:
            email: Only return this borrower's loans

        Returns:
            List of loans
        """
        with self.db.get_session() as session:
            stmt = select(Loan).order_by(Loan.call_number)
            if email is not None:
                stmt = stmt.where(Loan.email == email)
            return [LoanRecord.model_validate(loan) for loan in session.execute(stmt).scalars()]

    def get_overdue_loans(self, today: Optional[date] = None) -> list[LoanRecord]:
        """List loans due before ``today``, oldest due date first."""
        today = today or date.today()
        with self.db.get_session() as session:
            stmt = (
                select(Loan)
                .where(Loan.due_date < today.isoformat())
                .order_by(Loan.due_date, Loan.call_number)
            )
            return [LoanRecord.model_validate(loan) for loan in session.execute(stmt).scalars()]

    def get_stats(self, today: Optional[date] = None) -> CatalogStats:
        """Get overall catalog statistics."""
        today = today or date.today()
        with self.db.get_session() as session:
            total_books = session.execute(
                select(func.count()).select_from(Book)
            ).scalar() or 0
            total_borrowers = session.execute(
                select(func.count()).select_from(Borrower)
            ).scalar() or 0
            checked_out = session.execute(
                select(func.count()).select_from(Loan)
            ).scalar() or 0
            overdue = session.execute(
                select(func.count()).where(Loan.due_date < today.isoformat())
            ).scalar() or 0
            renewed = session.execute(
                select(func.count()).where(Loan.renewed.is_(True))
            ).scalar() or 0

        return CatalogStats(
            total_books=total_books,
            total_borrowers=total_borrowers,
            checked_out=checked_out,
            available=total_books - checked_out,
            overdue=overdue,
            renewed=renewed,
        )

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def get_state(self) -> CatalogState:
        """Copy of the full catalog contents."""
        with self.db.get_session() as session:
            books = session.execute(select(Book).order_by(Book.call_number)).scalars()
            borrowers = session.execute(select(Borrower).order_by(Borrower.email)).scalars()
            loans = session.execute(select(Loan).order_by(Loan.call_number)).scalars()
            return CatalogState(
                books=[BookRecord.model_validate(b) for b in books],
                borrowers=[BorrowerRecord.model_validate(b) for b in borrowers],
                loans=[LoanRecord.model_validate(loan) for loan in loans],
            )

    def load_state(self, state: CatalogState) -> None:
        """Replace the catalog contents with ``state``.

        The replacement is atomic: on any error the previous contents stay.
        """
        with self.db.get_session() as session:
            session.execute(delete(Loan))
            session.execute(delete(Book))
            session.execute(delete(Borrower))
            session.add_all(Book(**b.model_dump()) for b in state.books)
            session.add_all(Borrower(**b.model_dump()) for b in state.borrowers)
            session.flush()
            session.add_all(
                Loan(
                    call_number=loan.call_number,
                    email=loan.email,
                    loan_date=loan.loan_date.isoformat(),
                    due_date=loan.due_date.isoformat(),
                    renewed=loan.renewed,
                )
                for loan in state.loans
            )

        logger.info(
            "Loaded catalog state (%d books, %d borrowers, %d loans)",
            len(state.books),
            len(state.borrowers),
            len(state.loans),
        )

    def write_to_file(
        self, path: Union[str, Path], compress: Optional[bool] = None
    ) -> Path:
        """Save the full catalog to a snapshot file.

        Args:
            path: File to create or overwrite
            compress: Whether to gzip the snapshot (default: LIBRARYDB_COMPRESS)

        Returns:
            Path written

        Raises:
            OSError: If the file cannot be written
        """
        if compress is None:
            compress = get_config().compress
        return write_snapshot(self.get_state(), path, compress=compress)

    def read_from_file(self, path: Union[str, Path]) -> CatalogState:
        """Replace the catalog contents with a snapshot file's.

        Returns:
            The state that was loaded

        Raises:
            OSError: If the file cannot be read
            SnapshotError: If the file is not a valid snapshot
        """
        state = read_snapshot(path)
        self.load_state(state)
        return state

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _insert_books(self, session, records: list[BookCreate]) -> None:
        seen = set()
        for data in records:
            if data.call_number in seen or session.get(Book, data.call_number) is not None:
                raise ValueError(f"Book with call number {data.call_number} already exists")
            seen.add(data.call_number)
            session.add(Book(**data.model_dump()))

    def _insert_borrowers(self, session, records: list[BorrowerCreate]) -> None:
        seen = set()
        for data in records:
            if data.email in seen or session.get(Borrower, data.email) is not None:
                raise ValueError(f"Borrower with email {data.email} already exists")
            seen.add(data.email)
            session.add(Borrower(**data.model_dump()))
