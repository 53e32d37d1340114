from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from logging import getLogger

from embedgraph.models import ActiveCell
from embedgraph.models import DayRecord
from embedgraph.models import Grid
from embedgraph.models import Rect
from embedgraph.models import Size
from embedgraph.models import TooltipPlacement
from embedgraph.services.placement import PlacementConstants
from embedgraph.services.placement import place

logger = getLogger(__name__)


class DeviceMode(StrEnum):
    POINTER = "pointer"
    TOUCH = "touch"


def classify_device_mode(can_hover: bool, pointer: str) -> DeviceMode:
    """Classify a device from its `(hover)` and `(pointer)` media features.

    Only a device that hovers and has a fine pointer gets continuous hover
    tooltips; everything else latches tooltips on tap.
    """

    if can_hover and pointer.strip().lower() == "fine":
        return DeviceMode.POINTER
    return DeviceMode.TOUCH


def tooltip_lines(record: DayRecord) -> tuple[str, str]:
    if record.count == 0:
        headline = "No contributions"
    elif record.count == 1:
        headline = "1 contribution"
    else:
        headline = f"{record.count} contributions"
    day = record.date
    return headline, f"{day:%b} {day.day}, {day.year}"


@dataclass(frozen=True, slots=True)
class Transition:
    active: ActiveCell | None
    stop_propagation: bool = False


@dataclass(frozen=True, slots=True)
class EventResult:
    """What a single cell or document event did to the active cell."""

    changed: bool
    stop_propagation: bool


class InteractionStrategy:
    """Default behaviour: every event leaves the active cell untouched."""

    mode: DeviceMode

    def on_enter(self, active: ActiveCell | None, cell: ActiveCell) -> Transition:
        return Transition(active)

    def on_leave(self, active: ActiveCell | None, day: date) -> Transition:
        return Transition(active)

    def on_tap(self, active: ActiveCell | None, cell: ActiveCell) -> Transition:
        return Transition(active)

    def on_outside(self, active: ActiveCell | None) -> Transition:
        return Transition(active)


class PointerStrategy(InteractionStrategy):
    mode = DeviceMode.POINTER

    def on_enter(self, active: ActiveCell | None, cell: ActiveCell) -> Transition:
        return Transition(cell, stop_propagation=True)

    def on_leave(self, active: ActiveCell | None, day: date) -> Transition:
        if active is not None and active.date == day:
            return Transition(None)
        return Transition(active)


class TouchStrategy(InteractionStrategy):
    mode = DeviceMode.TOUCH

    def on_tap(self, active: ActiveCell | None, cell: ActiveCell) -> Transition:
        if active is not None and active.date == cell.date:
            return Transition(None, stop_propagation=True)
        return Transition(cell, stop_propagation=True)

    def on_outside(self, active: ActiveCell | None) -> Transition:
        return Transition(None)


STRATEGIES: dict[DeviceMode, InteractionStrategy] = {
    DeviceMode.POINTER: PointerStrategy(),
    DeviceMode.TOUCH: TouchStrategy(),
}


class InteractionController:
    """Own the active cell of one widget and derive its tooltip placement.

    The tooltip is drawn in two phases: a new active cell first needs its
    tooltip measured (`needs_measure`), then `placement` is derived from the
    anchor, the measured size and the viewport width.
    """

    def __init__(
        self,
        mode: DeviceMode = DeviceMode.POINTER,
        viewport_width: float | None = None,
        constants: PlacementConstants = PlacementConstants(),
    ) -> None:
        self._strategy = STRATEGIES[mode]
        self._viewport_width = viewport_width
        self._constants = constants
        self._records: dict[date, DayRecord] = {}
        self._active: ActiveCell | None = None
        self._tooltip_size: Size | None = None

    @property
    def mode(self) -> DeviceMode:
        return self._strategy.mode

    @property
    def viewport_width(self) -> float | None:
        return self._viewport_width

    @property
    def active(self) -> ActiveCell | None:
        return self._active

    @property
    def active_record(self) -> DayRecord | None:
        if self._active is None:
            return None
        return self._records.get(self._active.date)

    @property
    def needs_measure(self) -> bool:
        return self._active is not None and self._tooltip_size is None

    @property
    def placement(self) -> TooltipPlacement | None:
        if self._active is None:
            return None
        return place(
            self._active.anchor,
            self._tooltip_size,
            self._viewport_width,
            self._constants,
        )

    def load_grid(self, grid: Grid) -> None:
        """Replace the known cells; any open tooltip's anchor is now stale."""

        self._records = {
            day.date: day for column in grid for day in column if day is not None
        }
        self.clear()

    def clear(self) -> None:
        self._active = None
        self._tooltip_size = None

    def classify(self, mode: DeviceMode) -> bool:
        if mode == self.mode:
            return False
        logger.debug("interaction mode %s -> %s", self.mode, mode)
        self._strategy = STRATEGIES[mode]
        self.clear()
        return True

    def resize(
        self,
        viewport_width: float,
        mode: DeviceMode,
        anchor: ActiveCell | None = None,
    ) -> None:
        """Apply a viewport change: re-classify, then move or dismiss the tooltip.

        `anchor` is the re-measured cell of the open tooltip. Without one, or
        with one for a different day, the tooltip's anchor is stale and it is
        dismissed.
        """

        self._viewport_width = viewport_width
        self.classify(mode)
        if self._active is None:
            return
        if anchor is None or anchor.date != self._active.date:
            self.clear()
            return
        self._active = anchor

    def measure(self, size: Size) -> TooltipPlacement | None:
        if self._active is None:
            return None
        self._tooltip_size = size
        return self.placement

    def cell_enter(self, day: date, anchor: Rect) -> EventResult:
        if day not in self._records:
            return EventResult(changed=False, stop_propagation=False)
        cell = ActiveCell(date=day, anchor=anchor)
        return self._apply(self._strategy.on_enter(self._active, cell))

    def cell_leave(self, day: date) -> EventResult:
        return self._apply(self._strategy.on_leave(self._active, day))

    def tap(self, day: date, anchor: Rect) -> EventResult:
        if day not in self._records:
            return EventResult(changed=False, stop_propagation=False)
        cell = ActiveCell(date=day, anchor=anchor)
        return self._apply(self._strategy.on_tap(self._active, cell))

    def outside_interaction(self, inside_tooltip: bool = False) -> EventResult:
        if inside_tooltip:
            return EventResult(changed=False, stop_propagation=False)
        return self._apply(self._strategy.on_outside(self._active))

    def _apply(self, transition: Transition) -> EventResult:
        previous = self._active
        changed = transition.active != previous
        if changed:
            self._active = transition.active
            # Tooltip content differs per cell, so its size must be re-measured.
            if previous is None or transition.active is None or (
                previous.date != transition.active.date
            ):
                self._tooltip_size = None
        return EventResult(
            changed=changed, stop_propagation=transition.stop_propagation
        )
