"""Pytest configuration and shared fixtures.

This module provides fixtures for testing librarydb, including fresh
in-memory catalogs and a catalog seeded with sample books and borrowers.
"""

import os
from typing import Generator

import pytest

from librarydb.catalog import LibraryCatalog
from librarydb.config import reset_config
from librarydb.db.sqlite import Database


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_config() -> Generator[None, None, None]:
    """Reset global config and LIBRARYDB_* variables around each test."""
    saved = {k: v for k, v in os.environ.items() if k.startswith("LIBRARYDB_")}
    for key in saved:
        del os.environ[key]
    reset_config()

    yield

    for key in [k for k in os.environ if k.startswith("LIBRARYDB_")]:
        del os.environ[key]
    os.environ.update(saved)
    reset_config()


# ============================================================================
# Catalog Fixtures
# ============================================================================


@pytest.fixture
def db() -> Generator[Database, None, None]:
    """Create an in-memory database for testing."""
    database = Database(":memory:")
    database.create_tables()
    yield database
    database.dispose()


@pytest.fixture
def empty_catalog(db: Database) -> LibraryCatalog:
    """A catalog with no books or borrowers."""
    return LibraryCatalog(db)


@pytest.fixture
def catalog(empty_catalog: LibraryCatalog) -> LibraryCatalog:
    """A catalog with three books and two borrowers, nothing checked out."""
    empty_catalog.add_book("Title1", "Author1", "CallNumber1")
    empty_catalog.add_book("Title2", "Author2", "CallNumber2")
    empty_catalog.add_book("Title3", "Author3", "CallNumber3")
    empty_catalog.add_borrower("FirstName1", "LastName1", "Email1", "Phone1")
    empty_catalog.add_borrower("FirstName2", "LastName2", "Email2", "Phone2")
    return empty_catalog
