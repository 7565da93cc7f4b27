import asyncio
import datetime

import pytest

from backoffice.features.reports.aggregations import (
    EARLIEST,
    UTC,
    as_utc,
    bucket_for,
    bucket_histogram,
    day_windows,
    gather_all,
    group_by_key,
    month_windows,
    rank_counts,
    summarize,
    trailing_window,
)

BOUNDARIES = (0, 1, 5, 10, 20, 50, 100)


def test_trailing_window_spans_period():
    now = datetime.datetime(2026, 3, 15, 12, 0, tzinfo=UTC)
    window = trailing_window(30, now)
    assert window.end == now
    assert window.start == now - datetime.timedelta(days=30)

    empty = trailing_window(0, now)
    assert empty.start == empty.end == now


def test_trailing_window_clamps_to_earliest_date():
    now = datetime.datetime(2026, 3, 15, 12, 0, tzinfo=UTC)
    for days in (now.toordinal(), 1_000_000, 10**12):
        window = trailing_window(days, now)
        assert window.start == EARLIEST
        assert window.end == now

    just_inside = trailing_window(now.toordinal() - 2, now)
    assert just_inside.start > EARLIEST


def test_day_windows_are_calendar_days_ending_today():
    now = datetime.datetime(2026, 3, 2, 9, 30, tzinfo=UTC)
    windows = day_windows(7, now)
    assert [w.label for w in windows] == [
        "2026-02-24", "2026-02-25", "2026-02-26", "2026-02-27",
        "2026-02-28", "2026-03-01", "2026-03-02",
    ]
    assert windows[-1].start == datetime.datetime(2026, 3, 2, tzinfo=UTC)
    assert all(w.end - w.start == datetime.timedelta(days=1) for w in windows)


@pytest.mark.parametrize(
    "now, expected",
    [
        (
            datetime.datetime(2026, 10, 18, tzinfo=UTC),
            ["2026-05", "2026-06", "2026-07", "2026-08", "2026-09", "2026-10"],
        ),
        (
            datetime.datetime(2026, 2, 28, 23, 59, tzinfo=UTC),
            ["2025-09", "2025-10", "2025-11", "2025-12", "2026-01", "2026-02"],
        ),
    ],
)
def test_month_windows_cross_year_boundary(now, expected):
    windows = month_windows(6, now)
    assert [w.label for w in windows] == expected
    for previous, current in zip(windows, windows[1:]):
        assert previous.end == current.start
    assert windows[-1].start <= now < windows[-1].end


def test_month_windows_end_on_first_of_next_month():
    windows = month_windows(1, datetime.datetime(2025, 12, 31, 23, 0, tzinfo=UTC))
    assert windows[0].start == datetime.datetime(2025, 12, 1, tzinfo=UTC)
    assert windows[0].end == datetime.datetime(2026, 1, 1, tzinfo=UTC)


def test_summarize_matches_completed_revenue_example():
    summary = summarize([100.0, 200.0])
    assert summary.total == 300.0
    assert summary.average == 150.0
    assert summary.maximum == 200.0
    assert summary.minimum == 100.0
    assert summarize([]) is None
    assert summarize([None, None]) is None


def test_group_by_key_orders_by_size_then_key():
    rows = [
        {"category": "tools", "v": 1},
        {"category": "paint", "v": 2},
        {"category": "tools", "v": 3},
        {"category": "garden", "v": 4},
        {"category": None, "v": 5},
    ]
    groups = group_by_key(rows, "category")
    assert [g.key for g in groups] == ["tools", "garden", "paint", None]
    assert groups[0].count == 2
    assert groups[0].total(lambda r: r["v"]) == 4
    assert groups[0].average(lambda r: r["v"]) == 2
    assert sum(g.count for g in groups) == len(rows)


def test_rank_counts_limit():
    rows = [{"email": "b@x", "count": 2}, {"email": "a@x", "count": 2}, {"email": "c@x", "count": 5}]
    assert [r["email"] for r in rank_counts(rows, "email")] == ["c@x", "a@x", "b@x"]
    assert [r["email"] for r in rank_counts(rows, "email", limit=1)] == ["c@x"]


@pytest.mark.parametrize(
    "value, bucket",
    [(0, 0), (1, 1), (4, 1), (5, 5), (19, 10), (20, 20), (49, 20), (50, 50), (99, 50), (100, "100+"), (5000, "100+")],
)
def test_bucket_for_boundaries(value, bucket):
    assert bucket_for(value, BOUNDARIES, "100+") == bucket


def test_bucket_histogram_counts_every_row_once():
    rows = [{"login_count": n} for n in (0, 0, 3, 12, 150, 99, 7)]
    histogram = bucket_histogram(rows, "login_count", BOUNDARIES, "100+")
    assert [g.key for g in histogram] == [0, 1, 5, 10, 50, "100+"]
    assert [g.count for g in histogram] == [2, 1, 1, 1, 1, 1]
    assert sum(g.count for g in histogram) == len(rows)


def test_as_utc_treats_naive_as_utc():
    naive = datetime.datetime(2026, 1, 1, 8, 0)
    assert as_utc(naive) == datetime.datetime(2026, 1, 1, 8, 0, tzinfo=UTC)
    assert as_utc(None) is None


@pytest.mark.asyncio
async def test_gather_all_keeps_submission_order():
    async def value(v, delay):
        await asyncio.sleep(delay)
        return v

    assert await gather_all(value(1, 0.02), value(2, 0), value(3, 0.01)) == [1, 2, 3]


@pytest.mark.asyncio
async def test_gather_all_waits_for_all_then_raises():
    finished = []

    async def slow():
        await asyncio.sleep(0.02)
        finished.append("slow")
        return "slow"

    async def broken():
        raise RuntimeError("store unavailable")

    with pytest.raises(RuntimeError, match="store unavailable"):
        await gather_all(broken(), slow())
    assert finished == ["slow"]
