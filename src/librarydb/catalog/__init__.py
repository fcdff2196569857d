"""Library catalog module.

Provides functionality for:
- Adding books and borrowers
- Checking books out and in
- Due dates and one-time renewals
- Saving and loading catalog snapshots
"""

from .manager import LOAN_PERIOD, LibraryCatalog

__all__ = [
    "LOAN_PERIOD",
    "LibraryCatalog",
]
