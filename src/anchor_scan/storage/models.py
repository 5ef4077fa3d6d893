"""Data models for block scanning."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from ..dates import parse_date
from ..errors import ValidationError

DEFAULT_BLOCK_NAME = "stylized-anchor-link"


class StrategyName(Enum):
    STAGED = "staged"
    DIRECT = "direct"


@dataclass(frozen=True)
class DateWindow:
    """Inclusive publish-date window in the store's datetime format."""

    start: str
    end: str

    @classmethod
    def for_days(cls, first_day: date, last_day: date) -> "DateWindow":
        return cls(
            start=f"{first_day.isoformat()} 00:00:00",
            end=f"{last_day.isoformat()} 23:59:59",
        )


@dataclass(frozen=True)
class BlockSignature:
    """Substrings that mark an embedded block inside post content."""

    comment_marker: str
    json_marker: str

    @classmethod
    def for_block(cls, block_name: str = DEFAULT_BLOCK_NAME) -> "BlockSignature":
        return cls(
            comment_marker=f"<!-- wp:{block_name}",
            json_marker=f'"blockName":"{block_name}',
        )

    @property
    def markers(self) -> tuple[str, str]:
        return (self.comment_marker, self.json_marker)


@dataclass(frozen=True)
class SearchCriteria:
    """Validated scan parameters."""

    date_after: date
    date_before: date
    batch_size: int = 5000
    limit: int = 0

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValidationError("Batch size must be a positive integer.")
        if self.limit < 0:
            raise ValidationError("Limit must be zero (no limit) or a positive integer.")
        if self.date_after > self.date_before:
            raise ValidationError(
                f"date-after ({self.date_after.isoformat()}) is later than "
                f"date-before ({self.date_before.isoformat()})."
            )

    @classmethod
    def from_strings(
        cls, date_after: str, date_before: str, batch_size: int = 5000, limit: int = 0
    ) -> "SearchCriteria":
        """Build criteria from raw YYYY-MM-DD strings."""
        return cls(
            date_after=parse_date(date_after),
            date_before=parse_date(date_before),
            batch_size=batch_size,
            limit=limit,
        )

    @property
    def window(self) -> DateWindow:
        return DateWindow.for_days(self.date_after, self.date_before)

    def remaining(self, collected: int) -> Optional[int]:
        """Rows still wanted under the limit, or None when unbounded."""
        if self.limit == 0:
            return None
        return max(self.limit - collected, 0)


@dataclass(frozen=True)
class StoreCapabilities:
    """What the connected store can do, as found by probing."""

    staging: bool = False


@dataclass
class BatchProgress:
    """Progress snapshot emitted after each batch."""

    retrieved: int
    total: Optional[int] = None

    @property
    def percent(self) -> Optional[float]:
        if not self.total:
            return None
        return self.retrieved / self.total * 100


@dataclass
class ScanResult:
    """Outcome of a scan."""

    post_ids: list[int] = field(default_factory=list)
    total_found: int = 0
    elapsed_seconds: float = 0.0
    strategy: Optional[StrategyName] = None

    @property
    def is_empty(self) -> bool:
        return not self.post_ids
