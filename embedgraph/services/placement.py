import math
from dataclasses import dataclass

from embedgraph.models import Rect
from embedgraph.models import Size
from embedgraph.models import TooltipPlacement


@dataclass(frozen=True, slots=True)
class PlacementConstants:
    """Fixed gap between anchor and tooltip, and minimum viewport margin."""

    offset: float = 8.0
    padding: float = 12.0


def _finite(*values: float) -> bool:
    return all(isinstance(value, int | float) and math.isfinite(value) for value in values)


def _is_valid_geometry(
    anchor: Rect | None, tooltip_size: Size | None, viewport_width: float | None
) -> bool:
    if anchor is None or tooltip_size is None or viewport_width is None:
        return False
    if not _finite(
        anchor.left,
        anchor.top,
        anchor.width,
        anchor.height,
        tooltip_size.width,
        tooltip_size.height,
        viewport_width,
    ):
        return False
    if anchor.width < 0 or anchor.height < 0:
        return False
    if tooltip_size.width < 0 or tooltip_size.height < 0:
        return False
    return viewport_width > 0


def place(
    anchor: Rect | None,
    tooltip_size: Size | None,
    viewport_width: float | None,
    constants: PlacementConstants = PlacementConstants(),
) -> TooltipPlacement | None:
    """Compute an on-screen tooltip placement for an anchor rectangle.

    The tooltip sits above the anchor unless there is not enough room, in
    which case it flips below. Horizontally it is centred on the anchor and
    clamped to stay `padding` pixels inside the viewport; the arrow offset
    records how far the clamp moved it. Returns None when any geometry is
    missing or not a finite number.
    """

    if not _is_valid_geometry(anchor, tooltip_size, viewport_width):
        return None

    required = tooltip_size.height + constants.offset + constants.padding
    flipped = anchor.top < required
    if flipped:
        top = anchor.bottom + constants.offset
    else:
        top = anchor.top - constants.offset

    half_width = tooltip_size.width / 2
    ideal_center = anchor.center_x
    center = ideal_center
    if center + half_width > viewport_width - constants.padding:
        center = viewport_width - constants.padding - half_width
    # Left edge wins when the tooltip is wider than the padded viewport.
    if center - half_width < constants.padding:
        center = constants.padding + half_width

    return TooltipPlacement(
        top=top,
        left=center - half_width,
        center=center,
        flipped=flipped,
        arrow_offset=ideal_center - center,
    )
