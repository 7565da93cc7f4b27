"""
Aggregation building blocks shared by the report generators.

Every report repeats the same handful of shapes with only the collection and
the predicate changing: a trailing "recent" window, per-day and per-month
buckets, grouping rows by a key, ranking grouped counts, numeric summaries
and bucketed histograms. They live here so each generator in ``service``
reads as a list of the queries it issues.
"""

import asyncio
import datetime
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, List, NamedTuple, Optional, Sequence

from .repository import CollectionReader

UTC = datetime.timezone.utc
EARLIEST = datetime.datetime.min.replace(tzinfo=UTC)


class Window(NamedTuple):
    label: str
    start: datetime.datetime
    end: datetime.datetime


class Summary(NamedTuple):
    total: float
    average: float
    maximum: float
    minimum: float
    count: int


@dataclass
class Group:
    key: Any
    rows: List[dict] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.rows)

    def total(self, value: Callable[[dict], float]) -> float:
        return sum(value(row) for row in self.rows)

    def average(self, value: Callable[[dict], float]) -> Optional[float]:
        if not self.rows:
            return None
        return self.total(value) / len(self.rows)


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(UTC)


def as_utc(value: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
    """Naive datetimes are taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def trailing_window(days: int, now: datetime.datetime) -> Window:
    """The last ``days`` days up to ``now``. Periods reaching past year 1 start at ``EARLIEST``."""
    now = as_utc(now)
    if days >= (now - EARLIEST).days:
        start = EARLIEST
    else:
        start = now - datetime.timedelta(days=days)
    return Window(label=f"last-{days}-days", start=start, end=now)


def day_windows(days: int, now: datetime.datetime) -> List[Window]:
    """Calendar days ending today, oldest first, as half-open ``[start, end)`` ranges."""
    today = as_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)
    windows = []
    for offset in range(days - 1, -1, -1):
        start = today - datetime.timedelta(days=offset)
        windows.append(Window(start.date().isoformat(), start, start + datetime.timedelta(days=1)))
    return windows


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_windows(months: int, now: datetime.datetime) -> List[Window]:
    """Calendar months ending with the current one, oldest first, labelled ``YYYY-MM``."""
    now = as_utc(now)
    windows = []
    for offset in range(months - 1, -1, -1):
        year, month = _shift_month(now.year, now.month, -offset)
        next_year, next_month = _shift_month(year, month, 1)
        windows.append(
            Window(
                f"{year:04d}-{month:02d}",
                datetime.datetime(year, month, 1, tzinfo=UTC),
                datetime.datetime(next_year, next_month, 1, tzinfo=UTC),
            )
        )
    return windows


def summarize(values: Iterable[float]) -> Optional[Summary]:
    """Sum/avg/max/min of the given numbers, or None when there are none."""
    numbers = [value for value in values if value is not None]
    if not numbers:
        return None
    total = sum(numbers)
    return Summary(
        total=total,
        average=total / len(numbers),
        maximum=max(numbers),
        minimum=min(numbers),
        count=len(numbers),
    )


def _sort_key(key: Any) -> tuple[bool, str]:
    # None sorts after every real key
    return (key is None, "" if key is None else str(key))


def group_by_key(rows: Iterable[dict], key: str) -> List[Group]:
    """Groups rows on ``row[key]``, largest group first, ties broken by key."""
    groups: dict[Any, Group] = {}
    for row in rows:
        group_key = row.get(key)
        if group_key not in groups:
            groups[group_key] = Group(key=group_key)
        groups[group_key].rows.append(row)
    return sorted(groups.values(), key=lambda g: (-g.count, _sort_key(g.key)))


def rank_counts(rows: Iterable[dict], key: str, limit: Optional[int] = None) -> List[dict]:
    """Orders ``{key, count}`` rows by count descending, ties broken by key."""
    ranked = sorted(rows, key=lambda row: (-row["count"], _sort_key(row.get(key))))
    return ranked[:limit] if limit is not None else ranked


def bucket_for(value: Optional[float], boundaries: Sequence[float], default: Any) -> Any:
    """Lower boundary of the half-open range holding ``value``, else ``default``."""
    if value is None or value < boundaries[0] or value >= boundaries[-1]:
        return default
    return boundaries[bisect_right(boundaries, value) - 1]


def bucket_histogram(
    rows: Iterable[dict], field_name: str, boundaries: Sequence[float], default: Any
) -> List[Group]:
    """
    Buckets rows on a numeric field.

    ``boundaries`` are the ascending edges of half-open ranges
    ``[b0, b1), [b1, b2), ...``; anything outside them lands in the ``default``
    bucket which always sorts last. Empty buckets are left out.
    """
    order = {edge: index for index, edge in enumerate(boundaries[:-1])}
    order[default] = len(order)
    buckets: dict[Any, Group] = {}
    for row in rows:
        label = bucket_for(row.get(field_name), boundaries, default)
        buckets.setdefault(label, Group(key=label)).rows.append(row)
    return sorted(buckets.values(), key=lambda g: order[g.key])


def millis(delta: datetime.timedelta) -> float:
    return delta.total_seconds() * 1000


async def gather_all(*aws: Awaitable) -> list:
    """
    Runs the awaitables concurrently and waits for every one of them.

    Results come back in submission order. If any failed, the first failure
    (in submission order) is raised once all have settled, so no partial
    result escapes.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


async def count_recent(
    reader: CollectionReader, days: int, now: datetime.datetime, field_name: str = "created_at", **filters
) -> int:
    window = trailing_window(days, now)
    return await reader.count(
        **{f"{field_name}__gte": window.start, f"{field_name}__lte": window.end}, **filters
    )


async def count_per_window(
    reader: CollectionReader, field_name: str, windows: Sequence[Window], **filters
) -> List[int]:
    return await gather_all(
        *(
            reader.count(**{f"{field_name}__gte": w.start, f"{field_name}__lt": w.end}, **filters)
            for w in windows
        )
    )


async def sum_per_window(
    reader: CollectionReader, field_name: str, value_field: str, windows: Sequence[Window], **filters
) -> List[float]:
    per_window = await gather_all(
        *(
            reader.rows(value_field, **{f"{field_name}__gte": w.start, f"{field_name}__lt": w.end}, **filters)
            for w in windows
        )
    )
    return [float(sum(row[value_field] or 0 for row in rows)) for rows in per_window]
