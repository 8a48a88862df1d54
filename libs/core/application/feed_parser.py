"""Parsing of the delimited-text alert feed into validated row mappings."""

from __future__ import annotations

import csv
import io
import re
from typing import Iterable, Iterator, Mapping, Union

from libs.common.logger import get_logger
from libs.core.application.errors import NoUsableRows

logger = get_logger(__name__)

FeedRow = dict[str, object]
FieldSchema = Mapping[str, type]
# A tuple entry is satisfied by any one of its keys.
RequiredField = Union[str, tuple[str, ...]]

TIMESTAMP_KEYS = ("timestamp", "Timestamp", "TIMESTAMP")

ALERT_FEED_SCHEMA: dict[str, type] = {
    **{key: str for key in TIMESTAMP_KEYS},
    "video_id": str,
    "video_url": str,
    "is_drowning": str,
}
ALERT_LIST_FIELDS: tuple[RequiredField, ...] = ("timestamp", "frame_id", "video_url")
AGGREGATION_FIELDS: tuple[RequiredField, ...] = (TIMESTAMP_KEYS,)

_INT_PATTERN = re.compile(r"^[-+]?\d+$")
_FLOAT_PATTERN = re.compile(r"^[-+]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?$")


class _RowRejected(ValueError):
    pass


def iter_feed_rows(
    text: str,
    required: Iterable[RequiredField] = AGGREGATION_FIELDS,
    schema: FieldSchema = ALERT_FEED_SCHEMA,
) -> Iterator[FeedRow]:
    """Lazily yield rows that carry every required field.

    Blank input yields nothing. Rows missing a required field, or holding a
    declared numeric field that does not coerce, are dropped. Records the
    csv reader cannot parse are counted as malformed and skipped.
    """
    if not text or not text.strip():
        return

    required_fields = tuple(required)
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    structural_errors = 0
    dropped = 0

    while True:
        try:
            raw = next(reader)
        except StopIteration:
            break
        except csv.Error as error:
            structural_errors += 1
            logger.warning(
                f"Line {reader.reader.line_num}: unreadable record skipped, {error}"
            )
            continue
        line_no = reader.line_num

        if _is_blank_row(raw):
            continue
        if None in raw or any(value is None for value in raw.values()):
            structural_errors += 1
            raw.pop(None, None)

        try:
            row = _coerce_row(raw, schema)
        except _RowRejected as error:
            dropped += 1
            logger.debug(f"Row {line_no}: dropped, {error}")
            continue

        missing = [name for name in required_fields if not _has_field(row, name)]
        if missing:
            dropped += 1
            logger.debug(f"Row {line_no}: dropped, missing {missing}")
            continue
        yield row

    if structural_errors:
        logger.warning(f"Feed had {structural_errors} malformed rows, continuing")
    if dropped:
        logger.info(f"Dropped {dropped} rows failing validation")


def parse_feed(
    text: str,
    required: Iterable[RequiredField] = AGGREGATION_FIELDS,
    schema: FieldSchema = ALERT_FEED_SCHEMA,
) -> list[FeedRow]:
    """Materialize ``iter_feed_rows``; non-blank input with no valid row raises."""
    rows = list(iter_feed_rows(text, required=required, schema=schema))
    if not rows and text and text.strip():
        raise NoUsableRows("No valid data rows found in feed")
    logger.info(f"Parsed {len(rows)} feed rows")
    return rows


def infer_value(value: str) -> object:
    text = value.strip()
    if _INT_PATTERN.match(text):
        return int(text)
    if _FLOAT_PATTERN.match(text):
        return float(text)
    return value


def _coerce_row(raw: Mapping[str, str | None], schema: FieldSchema) -> FeedRow:
    row: FeedRow = {}
    for key, value in raw.items():
        name = key.strip()
        if value is None:
            row[name] = None
            continue
        expected = schema.get(name)
        if expected is None:
            row[name] = infer_value(value)
        elif expected is str:
            row[name] = value.strip()
        elif not value.strip():
            row[name] = None
        else:
            try:
                row[name] = expected(value.strip())
            except ValueError as error:
                raise _RowRejected(f"invalid {name} '{value}'") from error
    return row


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _is_blank_row(raw: Mapping[str | None, object]) -> bool:
    return all(
        value is None or (isinstance(value, str) and not value.strip())
        for value in raw.values()
    )


def _has_field(row: Mapping[str, object], name: RequiredField) -> bool:
    keys = (name,) if isinstance(name, str) else name
    return any(not _is_missing(row.get(key)) for key in keys)
