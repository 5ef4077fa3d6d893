"""Scan posts for embedded block instances within a date range."""

import logging
import sqlite3
import time
from typing import Callable, Optional

from ..errors import StagingUnsupported
from ..storage.database import ContentStore, staging_table_name
from ..storage.models import BatchProgress, ScanResult, SearchCriteria, StoreCapabilities
from .strategies import DirectStrategy, ScanStrategy, StagedStrategy

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[BatchProgress], None]


class Scanner:
    """Find published posts whose content embeds the block."""

    def __init__(
        self,
        store: ContentStore,
        batch_retries: int = 0,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.store = store
        self.batch_retries = batch_retries
        self.on_progress = on_progress

    def probe(self) -> StoreCapabilities:
        """Try to create and drop a throwaway temporary table."""
        name = staging_table_name("probe_")
        try:
            self.store.create_staging_table(name)
        except StagingUnsupported as e:
            logger.debug(f"Temporary tables unavailable, using direct paging: {e}")
            return StoreCapabilities(staging=False)
        try:
            self.store.drop_staging_table(name)
        except sqlite3.Error as e:
            logger.debug(f"Could not drop probe table, using direct paging: {e}")
            return StoreCapabilities(staging=False)
        return StoreCapabilities(staging=True)

    def select_strategy(
        self, criteria: SearchCriteria, capabilities: StoreCapabilities
    ) -> ScanStrategy:
        strategy_cls = StagedStrategy if capabilities.staging else DirectStrategy
        return strategy_cls(
            self.store, criteria.window, fetch_attempts=self.batch_retries + 1
        )

    def scan(self, criteria: SearchCriteria) -> ScanResult:
        """
        Collect matching post IDs batch by batch.

        Args:
            criteria: Validated date range, batch size and limit

        Returns:
            ScanResult with IDs in ascending key order, the total found and
            elapsed wall-clock seconds
        """
        capabilities = self.probe()
        strategy = self.select_strategy(criteria, capabilities)

        start_time = time.perf_counter()
        try:
            post_ids = self._collect(strategy, criteria)
        except StagingUnsupported as e:
            # Probe passed but the real table could not be created
            logger.debug(f"Staging failed after probe, using direct paging: {e}")
            strategy = self.select_strategy(criteria, StoreCapabilities(staging=False))
            post_ids = self._collect(strategy, criteria)
        elapsed = time.perf_counter() - start_time

        total = strategy.total_known if strategy.knows_total_up_front else None
        if total is None:
            total = len(post_ids)

        return ScanResult(
            post_ids=post_ids,
            total_found=total,
            elapsed_seconds=elapsed,
            strategy=strategy.name,
        )

    def _collect(self, strategy: ScanStrategy, criteria: SearchCriteria) -> list[int]:
        post_ids: list[int] = []
        with strategy:
            logger.info(f"Using {strategy.name.value} strategy")
            while True:
                remaining = criteria.remaining(len(post_ids))
                if remaining == 0:
                    break
                size = criteria.batch_size
                if remaining is not None:
                    size = min(size, remaining)

                batch, exhausted = strategy.next_batch(size)
                post_ids.extend(batch)
                if criteria.limit and len(post_ids) > criteria.limit:
                    post_ids = post_ids[: criteria.limit]

                if batch:
                    total = strategy.total_known if strategy.knows_total_up_front else None
                    self._report(BatchProgress(len(post_ids), total))
                if exhausted:
                    break
        return post_ids

    def _report(self, progress: BatchProgress) -> None:
        if progress.percent is not None:
            logger.info(
                f"Processed {progress.retrieved} of {progress.total} matching posts "
                f"({progress.percent:.1f}%)"
            )
        else:
            logger.info(f"Found {progress.retrieved} matching posts so far...")

        if self.on_progress:
            self.on_progress(progress)
