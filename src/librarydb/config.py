"""Configuration management for librarydb.

Loads configuration from environment variables and provides defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

_TRUTHY = ("true", "1", "yes")


@dataclass
class Config:
    """Application configuration."""

    # Snapshot file used by the CLI
    db_path: Path

    # Write snapshots gzip-compressed
    compress: bool

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "LIBRARYDB_PATH",
            str(Path.home() / ".librarydb" / "library.db"),
        )

        return cls(
            db_path=Path(db_path_str).expanduser(),
            compress=os.environ.get("LIBRARYDB_COMPRESS", "false").lower() in _TRUTHY,
            log_level=os.environ.get("LIBRARYDB_LOG_LEVEL", "WARNING").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not isinstance(logging.getLevelName(self.log_level), int):
            errors.append(f"Unknown log level: {self.log_level}")

        # Check snapshot directory is writable
        if not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except OSError:
                errors.append(f"Cannot create snapshot directory: {self.db_path.parent}")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
