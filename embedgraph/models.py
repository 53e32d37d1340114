from dataclasses import dataclass
from dataclasses import field
from datetime import date


@dataclass(frozen=True, slots=True)
class DayRecord:
    """One calendar day's activity count and its intensity level (0..4)."""

    date: date
    count: int
    level: int


WeekColumn = tuple[DayRecord | None, ...]
Grid = tuple[WeekColumn, ...]


@dataclass(frozen=True, slots=True)
class ContributionsData:
    """Decoded upstream response: per-selector totals and day records."""

    totals: dict[str, int] = field(default_factory=dict)
    records: tuple[DayRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class Rect:
    """Screen rectangle in viewport-fixed CSS pixels."""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center_x(self) -> float:
        return self.left + self.width / 2


@dataclass(frozen=True, slots=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True, slots=True)
class ActiveCell:
    date: date
    anchor: Rect


@dataclass(frozen=True, slots=True)
class TooltipPlacement:
    """Final tooltip coordinates.

    `top` is the tooltip's bottom edge when not flipped and its top edge when
    flipped below the anchor. `left` is the box's left edge and `center` its
    horizontal centre after clamping. `arrow_offset` shifts the arrow glyph
    from the box centre back over the true anchor.
    """

    top: float
    left: float
    center: float
    flipped: bool
    arrow_offset: float
