"""Tests for catalog snapshot files."""

import gzip
import json
import pytest
from datetime import date

from librarydb import __version__
from librarydb.backup.snapshot import (
    SnapshotError,
    SnapshotMetadata,
    decode_snapshot,
    encode_snapshot,
    read_snapshot,
    write_snapshot,
)
from librarydb.db.schemas import CatalogState


@pytest.fixture
def state(catalog) -> CatalogState:
    """Sample catalog state with one renewed loan."""
    catalog.checkout("CallNumber2", "Email1", today=date(2024, 3, 1))
    catalog.renew("CallNumber2")
    return catalog.get_state()


class TestSnapshotMetadata:
    """Tests for SnapshotMetadata dataclass."""

    def test_to_dict(self):
        """Test conversion to dictionary."""
        metadata = SnapshotMetadata(
            created_at="2024-01-01T00:00:00",
            book_count=3,
            borrower_count=2,
            loan_count=1,
        )
        data = metadata.to_dict()

        assert data["version"] == "1.0"
        assert data["book_count"] == 3
        assert data["borrower_count"] == 2
        assert data["loan_count"] == 1

    def test_from_dict_defaults(self):
        """Test missing keys fall back to defaults."""
        metadata = SnapshotMetadata.from_dict({"checksum": "abc123"})

        assert metadata.version == "1.0"
        assert metadata.book_count == 0
        assert metadata.checksum == "abc123"


class TestEncodeDecode:
    """Tests for the pure bytes functions."""

    def test_decode_encoded(self, state):
        """Test decoding gives back the same state."""
        assert decode_snapshot(encode_snapshot(state)) == state

    def test_decode_compressed(self, state):
        """Test compressed snapshots are detected and decoded."""
        data = encode_snapshot(state, compress=True)

        assert data[:2] == b"\x1f\x8b"
        assert decode_snapshot(data) == state

    def test_metadata_written(self, state):
        """Test the document carries counts and version."""
        document = json.loads(encode_snapshot(state))
        metadata = document["_metadata"]

        assert metadata["book_count"] == 3
        assert metadata["borrower_count"] == 2
        assert metadata["loan_count"] == 1
        assert metadata["app_version"] == __version__
        assert len(metadata["checksum"]) == 64

    def test_loan_dates_stored_as_iso(self, state):
        """Test loan dates are written as ISO strings."""
        document = json.loads(encode_snapshot(state))
        loan = document["loans"][0]

        assert loan["loan_date"] == "2024-03-01"
        assert loan["due_date"] == "2024-04-26"
        assert loan["renewed"] is True

    def test_empty_state(self):
        """Test an empty catalog round trips."""
        assert decode_snapshot(encode_snapshot(CatalogState())) == CatalogState()

    def test_not_json(self):
        """Test garbage bytes are rejected."""
        with pytest.raises(SnapshotError, match="not valid JSON"):
            decode_snapshot(b"\x00\x01not json")

    def test_not_an_object(self):
        """Test a JSON array is rejected."""
        with pytest.raises(SnapshotError):
            decode_snapshot(b"[]")

    @pytest.mark.parametrize("metadata", ["[]", '"x"', "3"])
    def test_metadata_not_an_object(self, metadata):
        """Test metadata that is not a JSON object is rejected."""
        data = f'{{"books":[],"borrowers":[],"loans":[],"_metadata":{metadata}}}'

        with pytest.raises(SnapshotError, match="metadata must be a JSON object"):
            decode_snapshot(data.encode("utf-8"))

    def test_missing_metadata(self, state):
        """Test data without metadata is rejected."""
        data = json.dumps(state.model_dump(mode="json")).encode("utf-8")

        with pytest.raises(SnapshotError, match="Missing metadata"):
            decode_snapshot(data)

    def test_tampered_data(self, state):
        """Test edited contents fail the checksum."""
        document = json.loads(encode_snapshot(state))
        document["books"][0]["title"] = "Changed"

        with pytest.raises(SnapshotError, match="checksum"):
            decode_snapshot(json.dumps(document).encode("utf-8"))

    def test_unsupported_version(self, state):
        """Test unknown format versions are rejected."""
        document = json.loads(encode_snapshot(state))
        document["_metadata"]["version"] = "9.9"

        with pytest.raises(SnapshotError, match="version"):
            decode_snapshot(json.dumps(document).encode("utf-8"))

    def test_truncated_gzip(self, state):
        """Test truncated compressed data is rejected."""
        data = encode_snapshot(state, compress=True)

        with pytest.raises(SnapshotError):
            decode_snapshot(data[: len(data) // 2])


class TestFiles:
    """Tests for reading and writing snapshot files."""

    def test_write_and_read(self, state, tmp_path):
        """Test a written snapshot reads back."""
        path = write_snapshot(state, tmp_path / "library.db")

        assert path.exists()
        assert read_snapshot(path) == state

    def test_write_compressed(self, state, tmp_path):
        """Test compressed file is valid gzip."""
        path = write_snapshot(state, tmp_path / "library.db.gz", compress=True)

        with gzip.open(path, "rt", encoding="utf-8") as f:
            document = json.load(f)
        assert document["_metadata"]["compressed"] is True

    def test_write_overwrites(self, state, tmp_path):
        """Test an existing file is replaced."""
        path = tmp_path / "library.db"
        path.write_text("old contents")

        write_snapshot(state, path)

        assert read_snapshot(path) == state

    def test_write_accepts_str_path(self, state, tmp_path):
        """Test string paths are accepted."""
        path = write_snapshot(state, str(tmp_path / "library.db"))
        assert read_snapshot(str(path)) == state

    def test_write_unwritable(self, state, tmp_path):
        """Test I/O errors propagate."""
        with pytest.raises(OSError):
            write_snapshot(state, tmp_path / "no" / "such" / "dir.db")

    def test_read_missing(self, tmp_path):
        """Test reading a missing file raises OSError."""
        with pytest.raises(OSError):
            read_snapshot(tmp_path / "absent.db")
