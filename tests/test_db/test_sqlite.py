"""Tests for the database layer."""

import pytest
from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError

from librarydb.db.models import Book, Borrower, Loan
from librarydb.db.sqlite import Database


class TestDatabase:
    """Tests for Database setup and sessions."""

    def test_default_is_memory(self):
        """Test the default database lives in memory."""
        db = Database()
        assert db.is_memory is True

    def test_create_tables(self, db):
        """Test all tables are created."""
        tables = set(inspect(db.engine).get_table_names())
        assert {"books", "borrowers", "loans"} <= tables

    def test_file_database(self, tmp_path):
        """Test a file-backed database keeps data across instances."""
        path = tmp_path / "sub" / "catalog.sqlite"
        db = Database(str(path))
        db.create_tables()
        with db.get_session() as session:
            session.add(Book(call_number="CN1", title="T", author="A"))
        db.dispose()

        reopened = Database(str(path))
        assert reopened.is_memory is False
        with reopened.get_session() as session:
            assert session.get(Book, "CN1").title == "T"
        reopened.dispose()

    def test_memory_databases_are_separate(self, db):
        """Test two in-memory databases do not share data."""
        with db.get_session() as session:
            session.add(Book(call_number="CN1", title="T", author="A"))

        other = Database()
        other.create_tables()
        with other.get_session() as session:
            assert session.get(Book, "CN1") is None

    def test_session_rolls_back_on_error(self, db):
        """Test an exception discards the session's changes."""
        with pytest.raises(RuntimeError):
            with db.get_session() as session:
                session.add(Book(call_number="CN1", title="T", author="A"))
                session.flush()
                raise RuntimeError("boom")

        with db.get_session() as session:
            assert session.get(Book, "CN1") is None

    def test_reset(self, db):
        """Test reset leaves empty tables."""
        with db.get_session() as session:
            session.add(Book(call_number="CN1", title="T", author="A"))

        db.reset()

        with db.get_session() as session:
            assert session.execute(select(Book)).scalars().all() == []


class TestModels:
    """Tests for ORM constraints."""

    def test_one_loan_per_book(self, db):
        """Test a second loan row for the same book is refused."""
        with db.get_session() as session:
            session.add(Book(call_number="CN1", title="T", author="A"))
            session.add(Borrower(email="E1", first_name="F", last_name="L", phone="P"))
            session.add(Borrower(email="E2", first_name="F", last_name="L", phone="P"))

        with db.get_session() as session:
            session.add(Loan(call_number="CN1", email="E1", loan_date="2024-01-01", due_date="2024-01-29"))

        with pytest.raises(IntegrityError):
            with db.get_session() as session:
                session.add(Loan(call_number="CN1", email="E2", loan_date="2024-01-02", due_date="2024-01-30"))
                session.flush()

    def test_loan_requires_borrower(self, db):
        """Test foreign keys are enforced."""
        with db.get_session() as session:
            session.add(Book(call_number="CN1", title="T", author="A"))

        with pytest.raises(IntegrityError):
            with db.get_session() as session:
                session.add(Loan(call_number="CN1", email="nobody", loan_date="2024-01-01", due_date="2024-01-29"))
                session.flush()

    def test_loan_due_property(self, db):
        """Test the due date is parsed from ISO text."""
        loan = Loan(call_number="CN1", email="E1", loan_date="2024-01-01", due_date="2024-01-29")
        assert loan.due.isoformat() == "2024-01-29"
