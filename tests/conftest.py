import sqlite3
from dataclasses import dataclass
from pathlib import Path

import pytest

from anchor_scan.errors import StagingUnsupported
from anchor_scan.storage.database import STAGING_TABLE_PREFIX, ContentStore

WP_POSTS_SQL = """
CREATE TABLE wp_posts (
    ID INTEGER PRIMARY KEY AUTOINCREMENT,
    post_author INTEGER NOT NULL DEFAULT 0,
    post_date TEXT NOT NULL DEFAULT '0000-00-00 00:00:00',
    post_content TEXT NOT NULL DEFAULT '',
    post_title TEXT NOT NULL DEFAULT '',
    post_status TEXT NOT NULL DEFAULT 'publish',
    post_name TEXT NOT NULL DEFAULT '',
    post_type TEXT NOT NULL DEFAULT 'post'
);
CREATE INDEX type_status_date ON wp_posts (post_type, post_status, post_date, ID);
"""

BLOCK_CONTENT = (
    "<!-- wp:paragraph --><p>Intro</p><!-- /wp:paragraph -->\n"
    '<!-- wp:stylized-anchor-link/block {"postId":12,"postTitle":"Hello"} /-->'
)
JSON_BLOCK_CONTENT = '[{"blockName":"stylized-anchor-link/block","attrs":{"postId":7}}]'
PLAIN_CONTENT = "<!-- wp:paragraph --><p>No links here</p><!-- /wp:paragraph -->"


@dataclass
class WordPressDB:
    """Small WordPress-shaped posts table for tests."""

    path: Path

    def add_post(
        self,
        content: str = BLOCK_CONTENT,
        post_date: str = "2024-03-10 12:00:00",
        status: str = "publish",
        post_type: str = "post",
    ) -> int:
        conn = sqlite3.connect(self.path)
        try:
            cursor = conn.execute(
                """
                INSERT INTO wp_posts (post_date, post_content, post_status, post_type)
                VALUES (?, ?, ?, ?)
                """,
                (post_date, content, status, post_type),
            )
            conn.commit()
            return cursor.lastrowid  # type: ignore
        finally:
            conn.close()

    def add_matching(self, count: int, post_date: str = "2024-03-10 12:00:00") -> list[int]:
        return [self.add_post(post_date=post_date) for _ in range(count)]


@pytest.fixture
def wp_db(tmp_path) -> WordPressDB:
    path = tmp_path / "wordpress.sqlite"
    conn = sqlite3.connect(path)
    conn.executescript(WP_POSTS_SQL)
    conn.close()
    return WordPressDB(path)


class CountingStore(ContentStore):
    """ContentStore that records every query it runs."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("read_only", False)
        super().__init__(*args, **kwargs)
        self.calls: list[tuple] = []

    def fetch_matches(self, window, offset, limit):
        self.calls.append(("fetch_matches", offset, limit))
        return super().fetch_matches(window, offset, limit)

    def fetch_staged(self, name, offset, limit):
        self.calls.append(("fetch_staged", offset, limit))
        return super().fetch_staged(name, offset, limit)

    def stage_matches(self, name, window):
        self.calls.append(("stage_matches",))
        return super().stage_matches(name, window)

    def count_staged(self, name):
        self.calls.append(("count_staged",))
        return super().count_staged(name)

    def fetch_calls(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in ("fetch_matches", "fetch_staged")]


class NoTempTablesStore(CountingStore):
    """Behaves like a server that refuses temporary tables."""

    def create_staging_table(self, name):
        raise StagingUnsupported("CREATE TEMPORARY TABLES privilege missing")


def temp_tables(store: ContentStore) -> list[str]:
    rows = store.conn.execute(
        "SELECT name FROM sqlite_temp_master WHERE type = 'table' AND name LIKE ?",
        (f"{STAGING_TABLE_PREFIX}%",),
    ).fetchall()
    return [row[0] for row in rows]


@pytest.fixture
def store(wp_db):
    with CountingStore(wp_db.path) as s:
        yield s


@pytest.fixture
def direct_store(wp_db):
    with NoTempTablesStore(wp_db.path) as s:
        yield s
