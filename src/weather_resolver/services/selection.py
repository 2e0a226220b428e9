"""Nearest forecast entry selection and target time handling."""

import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import TypeVar

T = TypeVar("T")


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def resolve_target_timestamp(value: datetime | str | int | None = None) -> int:
    """Convert a requested time into epoch milliseconds.

    ``None`` and unparseable strings fall back to now. Naive datetimes are
    taken as UTC.
    """
    if value is None:
        return now_ms()
    if isinstance(value, bool):
        return now_ms()
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            return now_ms()
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


def pick_nearest(
    entries: Sequence[T],
    target_ms: int,
    timestamp_of: Callable[[T], int | None],
) -> T | None:
    """Return the entry whose timestamp is closest to ``target_ms``.

    Entries without a timestamp are skipped. Ties keep the earlier entry.
    If no entry has a timestamp the first entry is returned.
    """
    if not entries:
        return None

    closest: T | None = None
    closest_diff = 0
    for entry in entries:
        timestamp = timestamp_of(entry)
        if timestamp is None:
            continue
        diff = abs(timestamp - target_ms)
        if closest is None or diff < closest_diff:
            closest = entry
            closest_diff = diff

    return closest if closest is not None else entries[0]
