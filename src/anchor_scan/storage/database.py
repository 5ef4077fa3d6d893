"""Read access to the WordPress posts table in a SQLite database."""

import logging
import secrets
import sqlite3
from pathlib import Path
from typing import Optional

from ..errors import StagingUnsupported, StoreUnavailableError
from .models import BlockSignature, DateWindow

logger = logging.getLogger(__name__)

STAGING_TABLE_PREFIX = "tmp_anchor_scan_"

MATCH_PREDICATE = """
    WHERE post_type = 'post'
      AND post_status = 'publish'
      AND post_date >= ?
      AND post_date <= ?
      AND (
          post_content LIKE ? ESCAPE '\\'
          OR post_content LIKE ? ESCAPE '\\'
      )
"""


def like_pattern(marker: str) -> str:
    """Build a LIKE pattern matching `marker` anywhere in a value."""
    escaped = marker.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def staging_table_name(suffix: str = "") -> str:
    """Random per-scan table name so concurrent scans never collide."""
    return f"{STAGING_TABLE_PREFIX}{suffix}{secrets.token_hex(8)}"


class ContentStore:
    """Single-connection view of the posts table.

    Temporary tables only exist on the connection that created them, so
    one connection is held open for the lifetime of a scan.
    """

    def __init__(
        self,
        db_path: Path,
        posts_table: str = "wp_posts",
        signature: Optional[BlockSignature] = None,
        read_only: bool = True,
    ):
        self.db_path = Path(db_path)
        self.posts_table = posts_table
        self.signature = signature or BlockSignature.for_block()
        self.read_only = read_only
        self._conn: Optional[sqlite3.Connection] = None

    def __enter__(self) -> "ContentStore":
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def open(self) -> None:
        """Connect and check that the posts table is present."""
        if self._conn is not None:
            return
        if not self.db_path.is_file():
            raise StoreUnavailableError(f"Database file not found: {self.db_path}")

        mode = "ro" if self.read_only else "rw"
        uri = f"{self.db_path.resolve().as_uri()}?mode={mode}"
        try:
            conn = sqlite3.connect(uri, uri=True, isolation_level=None)
            found = conn.execute(
                "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
                (self.posts_table,),
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot open {self.db_path}: {e}") from e

        if found is None:
            conn.close()
            raise StoreUnavailableError(
                f"Table {self.posts_table!r} not found in {self.db_path}"
            )
        self._conn = conn
        logger.debug(f"Opened {self.db_path} ({mode})")

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreUnavailableError("Content store is not open")
        return self._conn

    def _match_params(self, window: DateWindow) -> tuple[str, str, str, str]:
        comment, json_marker = self.signature.markers
        return (window.start, window.end, like_pattern(comment), like_pattern(json_marker))

    # ---- Direct paging ----

    def fetch_matches(self, window: DateWindow, offset: int, limit: int) -> list[int]:
        """Fetch one window of matching post IDs straight from the posts table."""
        rows = self.conn.execute(
            f"""
            SELECT ID FROM "{self.posts_table}"
            {MATCH_PREDICATE}
            ORDER BY ID
            LIMIT ? OFFSET ?
            """,
            self._match_params(window) + (limit, offset),
        ).fetchall()
        return [row[0] for row in rows]

    # ---- Staging tables ----

    def create_staging_table(self, name: str) -> None:
        """Create a connection-scoped table keyed by post ID."""
        try:
            self.conn.execute(
                f'CREATE TEMP TABLE "{name}" (post_id INTEGER NOT NULL PRIMARY KEY)'
            )
        except sqlite3.Error as e:
            raise StagingUnsupported(f"Cannot create temporary table: {e}") from e

    def drop_staging_table(self, name: str) -> None:
        self.conn.execute(f'DROP TABLE IF EXISTS temp."{name}"')

    def staging_table_exists(self, name: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM sqlite_temp_master WHERE type = 'table' AND name = ?",
            (name,),
        ).fetchone()
        return row is not None

    def stage_matches(self, name: str, window: DateWindow) -> None:
        """Copy every matching post ID into the staging table in one statement."""
        self.conn.execute(
            f"""
            INSERT OR IGNORE INTO temp."{name}" (post_id)
            SELECT ID FROM "{self.posts_table}"
            {MATCH_PREDICATE}
            """,
            self._match_params(window),
        )

    def count_staged(self, name: str) -> int:
        return self.conn.execute(f'SELECT COUNT(*) FROM temp."{name}"').fetchone()[0]

    def fetch_staged(self, name: str, offset: int, limit: int) -> list[int]:
        rows = self.conn.execute(
            f'SELECT post_id FROM temp."{name}" ORDER BY post_id LIMIT ? OFFSET ?',
            (limit, offset),
        ).fetchall()
        return [row[0] for row in rows]
