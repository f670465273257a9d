"""Parsing of stats CSV snapshots and building of server commands."""

import csv
import logging
from typing import Iterable, Iterator, Optional, Union

from .models import AGGREGATE_NAMES, FIELD_COUNT, NAME_FIELD, RecordError, StatRow

logger = logging.getLogger(__name__)

SnapshotEntry = Union[StatRow, RecordError]


def _split_lines(data: Union[bytes, str]) -> list[str]:
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    lines = (line.rstrip("\r") for line in data.split("\n"))
    return [line for line in lines if line]


def parse_line(line: str) -> Optional[SnapshotEntry]:
    """
    Parse one CSV line.

    Returns:
        StatRow for a server record, RecordError for a bad line,
        or None for an aggregate (BACKEND/FRONTEND) line.
    """
    try:
        records = list(csv.reader([line], strict=True))
    except csv.Error as e:
        logger.warning(f"Bad stats line: {e}")
        return RecordError(str(e))

    fields = records[0] if records else []
    if len(fields) != FIELD_COUNT:
        message = f"expected {FIELD_COUNT} fields, got {len(fields)}"
        logger.warning(f"Bad stats line: {message}")
        return RecordError(message)

    if fields[NAME_FIELD] in AGGREGATE_NAMES:
        return None

    return StatRow(tuple(fields))


def parse_snapshot(data: Union[bytes, str]) -> Iterator[SnapshotEntry]:
    """
    Lazily decode one snapshot into rows and inline errors.

    Blank lines are ignored, aggregate lines are dropped, and everything
    else keeps its input order.
    """
    for line in _split_lines(data):
        entry = parse_line(line)
        if entry is not None:
            yield entry


def stat_rows(entries: Iterable[SnapshotEntry]) -> list[StatRow]:
    """Only the server rows of a parsed snapshot."""
    return [entry for entry in entries if isinstance(entry, StatRow)]


def build_toggle_command(row: StatRow) -> str:
    """Command that flips a server between enabled and disabled."""
    action = "disable" if row.is_up else "enable"
    return f"{action} server {row.group}/{row.name}"
