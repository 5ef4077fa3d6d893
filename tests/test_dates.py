from datetime import date

import pytest

from anchor_scan.dates import default_range, parse_date
from anchor_scan.errors import ValidationError


def test_parse_date_accepts_iso_calendar_date() -> None:
    assert parse_date("2023-02-28") == date(2023, 2, 28)
    assert parse_date("2024-02-29") == date(2024, 2, 29)


@pytest.mark.parametrize(
    "value",
    [
        "2023-02-30",
        "2023-02-29",
        "2023/02/01",
        "2023.02.01",
        "2023-2-1",
        "2023-02",
        "2023-02-01-05",
        "2023-02-01 00:00:00",
        "2023-02-01T00:00:00Z",
        " 2023-02-01",
        "",
        "yesterday",
    ],
)
def test_parse_date_rejects_malformed_values(value: str) -> None:
    with pytest.raises(ValidationError):
        parse_date(value)


def test_validation_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_date("2023-13-01")


def test_default_range_covers_lookback_days() -> None:
    after, before = default_range(today=date(2024, 3, 31), lookback_days=30)
    assert after == date(2024, 3, 1)
    assert before == date(2024, 3, 31)
