from __future__ import annotations

from typing import Iterable, Mapping

from libs.common.logger import get_logger
from libs.core.application.errors import NoValidDates
from libs.core.application.feed_parser import TIMESTAMP_KEYS
from libs.core.domain.entities import DayBucket
from libs.core.domain.timestamps import normalize_day_key

logger = get_logger(__name__)


def lookup_timestamp(
    row: Mapping[str, object],
    keys: Iterable[str] = TIMESTAMP_KEYS,
) -> object | None:
    """First non-empty value among ``keys`` in priority order."""
    for key in keys:
        value = row.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def aggregate_by_day(rows: Iterable[Mapping[str, object]]) -> list[DayBucket]:
    """Count rows per canonical day key, ascending by day.

    Raises ``NoValidDates`` when rows were given but none had a usable
    timestamp. No rows at all yields an empty series.
    """
    counts: dict[str, int] = {}
    total_rows = 0

    for index, row in enumerate(rows):
        total_rows += 1
        value = lookup_timestamp(row)
        if value is None:
            logger.warning(f"Row {index}: missing timestamp")
            continue
        day_key = normalize_day_key(value)
        if day_key is None:
            logger.warning(f"Row {index}: invalid date format {value!r}")
            continue
        counts[day_key] = counts.get(day_key, 0) + 1

    if not counts:
        if total_rows:
            raise NoValidDates("No valid dates found in the feed data")
        return []

    series = [
        DayBucket(day_key=day_key, count=count)
        for day_key, count in sorted(counts.items())
    ]
    logger.info(
        f"Aggregated {sum(counts.values())}/{total_rows} rows into {len(series)} days"
    )
    return series
