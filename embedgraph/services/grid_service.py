from collections.abc import Iterable
from collections.abc import Mapping
from datetime import date

from embedgraph.models import DayRecord
from embedgraph.models import Grid
from embedgraph.models import WeekColumn

DAYS_PER_WEEK = 7
SQUARE_SIZE = 10
GAP = 3
WEEK_WIDTH = SQUARE_SIZE + GAP
GRAPH_HEIGHT = WEEK_WIDTH * DAYS_PER_WEEK - GAP


def contribution_level(count: int) -> int:
    """Map daily contribution count to a heatmap level in range 0..4."""

    if count <= 0:
        return 0
    if count <= 2:
        return 1
    if count <= 5:
        return 2
    if count <= 9:
        return 3
    return 4


def weekday_index(day: date, week_start: int = 0) -> int:
    """Return the column slot of `day` where 0 is the configured week start.

    `week_start` follows the 0 = Sunday .. 6 = Saturday convention.
    """

    sunday_based = day.isoweekday() % DAYS_PER_WEEK
    return (sunday_based - week_start) % DAYS_PER_WEEK


def parse_day_records(raw_contributions: object) -> list[DayRecord]:
    """Decode the upstream `contributions` array, skipping malformed items."""

    if not isinstance(raw_contributions, list):
        return []

    records: list[DayRecord] = []
    for item in raw_contributions:
        if not isinstance(item, Mapping):
            continue

        raw_day = item.get("date")
        raw_count = item.get("count")
        raw_level = item.get("level")
        if not isinstance(raw_day, str):
            continue
        if not isinstance(raw_count, int) or isinstance(raw_count, bool):
            continue
        if raw_count < 0:
            continue

        try:
            parsed_day = date.fromisoformat(raw_day)
        except ValueError:
            continue

        if (
            isinstance(raw_level, int)
            and not isinstance(raw_level, bool)
            and 0 <= raw_level <= 4
        ):
            level = raw_level
        else:
            level = contribution_level(raw_count)

        records.append(DayRecord(date=parsed_day, count=raw_count, level=level))

    return records


def build_grid(records: Iterable[DayRecord], week_start: int = 0) -> Grid:
    """Lay day records out as week columns of exactly seven slots, oldest first.

    The first column is padded in front up to the weekday of the earliest
    record and the last column is padded behind. Records are assumed to carry
    one entry per date; duplicates are kept as-is and shift later slots.
    """

    ordered = sorted(records, key=lambda record: record.date)
    if not ordered:
        return ()

    columns: list[WeekColumn] = []
    current: list[DayRecord | None] = [None] * weekday_index(
        ordered[0].date, week_start
    )

    for record in ordered:
        current.append(record)
        if len(current) == DAYS_PER_WEEK:
            columns.append(tuple(current))
            current = []

    if current:
        current.extend([None] * (DAYS_PER_WEEK - len(current)))
        columns.append(tuple(current))

    return tuple(columns)


def grid_dates(grid: Grid) -> set[date]:
    return {day.date for column in grid for day in column if day is not None}


def grid_dimensions(grid: Grid) -> tuple[int, int]:
    """Return drawing width and height of the grid in SVG user units."""

    if not grid:
        return 0, GRAPH_HEIGHT
    return len(grid) * WEEK_WIDTH - GAP, GRAPH_HEIGHT
