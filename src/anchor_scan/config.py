"""Configuration management."""

import os
import re
from dataclasses import dataclass
from pathlib import Path

import yaml
from dotenv import load_dotenv

from .storage.models import DEFAULT_BLOCK_NAME

# Load .env file from current working directory
load_dotenv()

TABLE_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9_]*$")


def _int_setting(data: dict, key: str, default: int) -> int:
    """Read an integer YAML value, rejecting anything int() cannot take."""
    value = data.get(key, default)
    if isinstance(value, bool):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{key} must be an integer, got {value!r}") from e


@dataclass
class Config:
    """Application configuration."""

    database_path: Path
    table_prefix: str = "wp_"
    batch_size: int = 5000
    lookback_days: int = 30
    block_name: str = DEFAULT_BLOCK_NAME
    batch_retries: int = 0
    read_only: bool = True

    def __post_init__(self) -> None:
        # Interpolated into SQL as part of the table name
        if not TABLE_PREFIX_PATTERN.match(self.table_prefix):
            raise ValueError(
                f"table_prefix may only contain letters, digits and underscores: "
                f"{self.table_prefix!r}"
            )

    @property
    def posts_table(self) -> str:
        return f"{self.table_prefix}posts"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from YAML file.

        The file is optional; without it only defaults and the environment
        apply. Environment variables take precedence over YAML values:
        - DATABASE_PATH: Path to the WordPress SQLite database file
        - TABLE_PREFIX: WordPress table prefix
        """
        data: dict = {}
        path = Path(path)
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f) or {}

        # Environment variables take precedence over YAML config
        database_path = os.environ.get("DATABASE_PATH") or data.get("database_path")
        table_prefix = os.environ.get("TABLE_PREFIX") or data.get("table_prefix", "wp_")

        if not database_path:
            raise ValueError(
                "database_path must be set via DATABASE_PATH environment variable "
                "or in config.yaml"
            )

        return cls(
            database_path=Path(database_path).expanduser(),
            table_prefix=table_prefix,
            batch_size=_int_setting(data, "batch_size", 5000),
            lookback_days=_int_setting(data, "lookback_days", 30),
            block_name=data.get("block_name", DEFAULT_BLOCK_NAME),
            batch_retries=_int_setting(data, "batch_retries", 0),
            read_only=data.get("read_only", True),
        )
