"""Catalog snapshot files.

A snapshot is the full catalog state as a JSON document, optionally
gzip-compressed:

    {
      "books": [...],
      "borrowers": [...],
      "loans": [...],
      "_metadata": {"version": "1.0", "checksum": "...", ...}
    }

Decoding is a pure function of the file bytes; callers decide what to do
with the resulting ``CatalogState``.
"""

import gzip
import hashlib
import json
import logging
import zlib
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from ..db.schemas import CatalogState

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.0"
GZIP_MAGIC = b"\x1f\x8b"

PathLike = Union[str, Path]


class SnapshotError(Exception):
    """Raised when snapshot data is corrupt or inconsistent."""


@dataclass
class SnapshotMetadata:
    """Metadata stored alongside the snapshot data."""

    version: str = FORMAT_VERSION
    created_at: str = ""
    book_count: int = 0
    borrower_count: int = 0
    loan_count: int = 0
    checksum: str = ""
    compressed: bool = False
    app_version: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "version": self.version,
            "created_at": self.created_at,
            "book_count": self.book_count,
            "borrower_count": self.borrower_count,
            "loan_count": self.loan_count,
            "checksum": self.checksum,
            "compressed": self.compressed,
            "app_version": self.app_version,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SnapshotMetadata":
        """Create from dictionary."""
        return cls(
            version=data.get("version", FORMAT_VERSION),
            created_at=data.get("created_at", ""),
            book_count=data.get("book_count", 0),
            borrower_count=data.get("borrower_count", 0),
            loan_count=data.get("loan_count", 0),
            checksum=data.get("checksum", ""),
            compressed=data.get("compressed", False),
            app_version=data.get("app_version", ""),
        )


def compute_checksum(data: dict) -> str:
    """SHA-256 of the canonical JSON form of the snapshot data."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def encode_snapshot(state: CatalogState, compress: bool = False) -> bytes:
    """Serialize a catalog state to snapshot bytes.

    Args:
        state: Catalog contents
        compress: Whether to gzip the JSON document

    Returns:
        Snapshot file contents
    """
    from .. import __version__

    data = state.model_dump(mode="json")
    metadata = SnapshotMetadata(
        created_at=datetime.now().isoformat(),
        book_count=len(state.books),
        borrower_count=len(state.borrowers),
        loan_count=len(state.loans),
        checksum=compute_checksum(data),
        compressed=compress,
        app_version=__version__,
    )
    data["_metadata"] = metadata.to_dict()

    raw = json.dumps(data, indent=2).encode("utf-8")
    if compress:
        return gzip.compress(raw)
    return raw


def decode_snapshot(data: bytes) -> CatalogState:
    """Deserialize snapshot bytes into a catalog state.

    Args:
        data: Snapshot file contents, compressed or not

    Returns:
        The catalog state stored in the snapshot

    Raises:
        SnapshotError: If the data is not a valid, untampered snapshot
    """
    if data[:2] == GZIP_MAGIC:
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as e:
            raise SnapshotError(f"Cannot decompress snapshot: {e}") from e

    try:
        document = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SnapshotError(f"Snapshot is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise SnapshotError("Snapshot must be a JSON object")
    if "_metadata" not in document:
        raise SnapshotError("Missing metadata in snapshot")
    if not isinstance(document["_metadata"], dict):
        raise SnapshotError("Snapshot metadata must be a JSON object")

    metadata = SnapshotMetadata.from_dict(document.pop("_metadata"))
    if metadata.version != FORMAT_VERSION:
        raise SnapshotError(f"Unsupported snapshot version: {metadata.version}")
    if metadata.checksum != compute_checksum(document):
        raise SnapshotError("Snapshot checksum mismatch")

    try:
        return CatalogState.model_validate(document)
    except ValidationError as e:
        raise SnapshotError(f"Invalid snapshot contents: {e}") from e


def write_snapshot(state: CatalogState, path: PathLike, compress: bool = False) -> Path:
    """Write a catalog state to a snapshot file, replacing any existing file.

    Raises:
        OSError: If the file cannot be written
    """
    path = Path(path)
    payload = encode_snapshot(state, compress=compress)
    path.write_bytes(payload)

    logger.info(
        "Wrote snapshot %s (%d books, %d borrowers, %d loans, %d bytes)",
        path,
        len(state.books),
        len(state.borrowers),
        len(state.loans),
        len(payload),
    )
    return path


def read_snapshot(path: PathLike) -> CatalogState:
    """Read a catalog state from a snapshot file.

    Raises:
        OSError: If the file cannot be read
        SnapshotError: If the file is not a valid snapshot
    """
    path = Path(path)
    state = decode_snapshot(path.read_bytes())
    logger.info("Read snapshot %s", path)
    return state
