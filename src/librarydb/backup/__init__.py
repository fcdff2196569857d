"""Catalog snapshot persistence."""

from .snapshot import (
    SnapshotError,
    SnapshotMetadata,
    decode_snapshot,
    encode_snapshot,
    read_snapshot,
    write_snapshot,
)

__all__ = [
    "SnapshotError",
    "SnapshotMetadata",
    "decode_snapshot",
    "encode_snapshot",
    "read_snapshot",
    "write_snapshot",
]
