import math
import random
from datetime import date
from datetime import timedelta

import pytest

from embedgraph.models import DayRecord
from embedgraph.services.grid_service import build_grid
from embedgraph.services.grid_service import contribution_level
from embedgraph.services.grid_service import grid_dates
from embedgraph.services.grid_service import grid_dimensions
from embedgraph.services.grid_service import parse_day_records
from embedgraph.services.grid_service import weekday_index


def make_days(start: date, length: int) -> list[DayRecord]:
    return [
        DayRecord(date=start + timedelta(days=offset), count=offset, level=offset % 5)
        for offset in range(length)
    ]


def test_build_grid_returns_no_columns_for_empty_input() -> None:
    assert build_grid([]) == ()


def test_build_grid_pads_first_and_last_week() -> None:
    # 2026-02-04 is a Wednesday.
    days = make_days(date(2026, 2, 4), 10)
    shuffled = days[:]
    random.Random(7).shuffle(shuffled)

    grid = build_grid(shuffled)

    assert len(grid) == 2
    assert grid[0] == (None, None, None, days[0], days[1], days[2], days[3])
    assert grid[1] == (days[4], days[5], days[6], days[7], days[8], days[9], None)


def test_build_grid_honours_configured_week_start() -> None:
    days = make_days(date(2026, 2, 4), 5)

    grid = build_grid(days, week_start=1)

    assert grid == ((None, None, days[0], days[1], days[2], days[3], days[4]),)


@pytest.mark.parametrize("start_offset", range(7))
@pytest.mark.parametrize("length", [1, 6, 7, 8, 30, 365])
def test_build_grid_column_count_and_lossless_order(
    start_offset: int, length: int
) -> None:
    start = date(2026, 2, 1) + timedelta(days=start_offset)
    days = make_days(start, length)
    pad = weekday_index(start)

    grid = build_grid(reversed(days))

    assert len(grid) == math.ceil((length + pad) / 7)
    assert all(len(column) == 7 for column in grid)
    assert [day for column in grid for day in column if day is not None] == days


def test_build_grid_keeps_sparse_records_in_date_order() -> None:
    sparse = [
        DayRecord(date=date(2026, 3, 10), count=1, level=1),
        DayRecord(date=date(2026, 3, 1), count=4, level=2),
    ]

    grid = build_grid(sparse)

    assert [day for column in grid for day in column if day is not None] == [
        sparse[1],
        sparse[0],
    ]


def test_weekday_index_is_sunday_based_by_default() -> None:
    assert weekday_index(date(2026, 2, 1)) == 0
    assert weekday_index(date(2026, 2, 7)) == 6
    assert weekday_index(date(2026, 2, 1), week_start=1) == 6


def test_contribution_level_thresholds() -> None:
    assert [contribution_level(count) for count in (0, 1, 2, 3, 5, 6, 9, 10, 50)] == [
        0,
        1,
        1,
        2,
        2,
        3,
        3,
        4,
        4,
    ]


def test_parse_day_records_skips_malformed_items() -> None:
    raw = [
        {"date": "2026-02-20", "count": 7, "level": 3},
        {"date": "2026-02-21", "count": 12},
        {"date": "2026-02-22", "count": 1, "level": 9},
        {"date": "not-a-date", "count": 1, "level": 1},
        {"date": "2026-02-23", "count": -1, "level": 0},
        {"date": "2026-02-24", "count": "3", "level": 1},
        {"date": "2026-02-25", "count": True, "level": 1},
        "garbage",
    ]

    records = parse_day_records(raw)

    assert records == [
        DayRecord(date=date(2026, 2, 20), count=7, level=3),
        DayRecord(date=date(2026, 2, 21), count=12, level=4),
        DayRecord(date=date(2026, 2, 22), count=1, level=1),
    ]


def test_parse_day_records_returns_empty_list_for_non_list_input() -> None:
    assert parse_day_records(None) == []
    assert parse_day_records({"date": "2026-02-20"}) == []
    assert build_grid(parse_day_records("oops")) == ()


def test_grid_dimensions_and_dates() -> None:
    days = make_days(date(2026, 2, 4), 10)
    grid = build_grid(days)

    assert grid_dimensions(grid) == (23, 88)
    assert grid_dimensions(()) == (0, 88)
    assert grid_dates(grid) == {day.date for day in days}
