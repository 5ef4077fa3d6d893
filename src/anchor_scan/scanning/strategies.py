"""Batch retrieval strategies for matching post IDs."""

import logging
import sqlite3
from abc import ABC, abstractmethod
from typing import Optional

from ..errors import PartialBatchFailure
from ..storage.database import ContentStore, staging_table_name
from ..storage.models import DateWindow, StrategyName
from .retry import retry

logger = logging.getLogger(__name__)


class ScanStrategy(ABC):
    """Pages through matching post IDs one batch at a time.

    Use as a context manager so any server-side state is released on every
    exit path.
    """

    name: StrategyName
    knows_total_up_front = False

    def __init__(self, store: ContentStore, window: DateWindow, fetch_attempts: int = 1):
        self.store = store
        self.window = window
        self.fetch_attempts = max(fetch_attempts, 1)
        self.offset = 0
        self.exhausted = False

    def __enter__(self) -> "ScanStrategy":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def start(self) -> None:
        """Prepare for the first batch."""

    def close(self) -> None:
        """Release anything created by start()."""

    @property
    @abstractmethod
    def total_known(self) -> Optional[int]:
        """Total matches, or None while it is still unknown."""

    @abstractmethod
    def _fetch(self, offset: int, size: int) -> list[int]:
        pass

    def next_batch(self, size: int) -> tuple[list[int], bool]:
        """Return up to `size` IDs and whether the strategy is exhausted."""
        if self.exhausted:
            return [], True

        ids = self._fetch_with_retry(self.offset, size)
        self.offset += len(ids)
        if len(ids) < size:
            self.exhausted = True
        return ids, self.exhausted

    def _fetch_with_retry(self, offset: int, size: int) -> list[int]:
        # Retries reuse the same window, so no ID is emitted twice
        try:
            return retry(
                lambda: self._fetch(offset, size),
                attempts=self.fetch_attempts,
                exceptions=(sqlite3.OperationalError,),
            )
        except sqlite3.Error as e:
            raise PartialBatchFailure(offset, e) from e


class StagedStrategy(ScanStrategy):
    """Materialize matches into a temporary table, then page through it."""

    name = StrategyName.STAGED
    knows_total_up_front = True

    def __init__(self, store: ContentStore, window: DateWindow, fetch_attempts: int = 1):
        super().__init__(store, window, fetch_attempts)
        self.table: Optional[str] = None
        self._total: Optional[int] = None

    def start(self) -> None:
        table = staging_table_name()
        self.store.create_staging_table(table)
        self.table = table
        try:
            self.store.stage_matches(table, self.window)
            self._total = self.store.count_staged(table)
        except sqlite3.Error as e:
            self.close()
            raise PartialBatchFailure(0, e) from e
        except BaseException:
            self.close()
            raise
        logger.debug(f"Staged {self._total} matches in {table}")

    def close(self) -> None:
        if self.table is None:
            return
        table, self.table = self.table, None
        try:
            self.store.drop_staging_table(table)
        except sqlite3.Error as e:
            # The table still goes away when the connection closes
            logger.error(f"Failed to drop staging table {table}: {e}")

    @property
    def total_known(self) -> Optional[int]:
        return self._total

    def next_batch(self, size: int) -> tuple[list[int], bool]:
        if self._total is not None and self.offset >= self._total:
            self.exhausted = True
        ids, exhausted = super().next_batch(size)
        if self._total is not None and self.offset >= self._total:
            self.exhausted = exhausted = True
        return ids, exhausted

    def _fetch(self, offset: int, size: int) -> list[int]:
        if self.table is None:
            raise RuntimeError("start() must run before fetching")
        return self.store.fetch_staged(self.table, offset, size)


class DirectStrategy(ScanStrategy):
    """Re-run the filtered query with LIMIT/OFFSET for every batch."""

    name = StrategyName.DIRECT

    @property
    def total_known(self) -> Optional[int]:
        return self.offset if self.exhausted else None

    def _fetch(self, offset: int, size: int) -> list[int]:
        return self.store.fetch_matches(self.window, offset, size)
