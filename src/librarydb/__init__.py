"""librarydb - a small in-memory library catalog.

Books, borrowers and loans with checkout, return and one-time renewal,
quoted-CSV export/import and whole-catalog snapshots.
"""

__version__ = "0.1.0"

from .catalog import LibraryCatalog
from .db.schemas import BookRecord, BorrowerRecord, CatalogState, LoanRecord

__all__ = [
    "__version__",
    "LibraryCatalog",
    "BookRecord",
    "BorrowerRecord",
    "CatalogState",
    "LoanRecord",
]
