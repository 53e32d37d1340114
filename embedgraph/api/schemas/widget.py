from datetime import date
from typing import Literal

from pydantic import BaseModel
from pydantic import Field
from pydantic import field_validator
from pydantic import model_validator

from embedgraph.models import Rect
from embedgraph.models import Size
from embedgraph.services.year_navigator import parse_year_token


class WidgetCreate(BaseModel):
    """Options for opening a widget session on page load."""

    username: str = Field(min_length=1, max_length=100)
    year: str = "last"
    theme: Literal["light", "dark"] = "light"

    @field_validator("username")
    @classmethod
    def strip_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("username cannot be empty")
        return value

    @field_validator("year")
    @classmethod
    def check_year_token(cls, value: str) -> str:
        parse_year_token(value)
        return value.strip().lower()


class AnchorRect(BaseModel):
    """Bounding client rectangle of a cell, in viewport pixels."""

    left: float
    top: float
    width: float = Field(ge=0)
    height: float = Field(ge=0)

    def to_rect(self) -> Rect:
        return Rect(left=self.left, top=self.top, width=self.width, height=self.height)


class NavigateRequest(BaseModel):
    direction: Literal["prev", "next"]


class DeviceUpdate(BaseModel):
    """Device capabilities and viewport size, sent on load and on resize.

    On resize the view re-measures the cell of the open tooltip and sends it
    as `day` plus `anchor`.
    """

    viewport_width: float = Field(gt=0)
    can_hover: bool
    pointer: Literal["fine", "coarse", "none"] = "fine"
    day: date | None = None
    anchor: AnchorRect | None = None

    @model_validator(mode="after")
    def check_anchor_day(self) -> "DeviceUpdate":
        if self.anchor is not None and self.day is None:
            raise ValueError("an anchor requires the day of its cell")
        return self


class CellEvent(BaseModel):
    """A raw pointer or touch event reported by the view."""

    type: Literal["enter", "leave", "tap", "outside"]
    day: date | None = None
    anchor: AnchorRect | None = None
    inside_tooltip: bool = False

    @model_validator(mode="after")
    def check_cell_fields(self) -> "CellEvent":
        if self.type in {"enter", "leave", "tap"} and self.day is None:
            raise ValueError(f"{self.type} events require a day")
        if self.type in {"enter", "tap"} and self.anchor is None:
            raise ValueError(f"{self.type} events require an anchor")
        return self


class TooltipMeasure(BaseModel):
    width: float = Field(ge=0)
    height: float = Field(ge=0)

    def to_size(self) -> Size:
        return Size(width=self.width, height=self.height)


class DayCell(BaseModel):
    date: date
    count: int
    level: int


class PlacementView(BaseModel):
    top: float
    left: float
    center: float
    flipped: bool
    arrow_offset: float


class TooltipView(BaseModel):
    """Open tooltip: content plus placement once it has been measured."""

    date: date
    lines: list[str]
    needs_measure: bool
    placement: PlacementView | None = None


class WidgetView(BaseModel):
    """Everything the renderer needs to draw one widget."""

    id: str
    username: str
    theme: str
    year: str
    total: int
    total_label: str
    available_years: list[int]
    can_go_prev: bool
    can_go_next: bool
    device_mode: str
    width: int
    height: int
    weeks: list[list[DayCell | None]]
    error: str | None = None
    tooltip: TooltipView | None = None


class EventResponse(BaseModel):
    changed: bool
    stop_propagation: bool
    tooltip: TooltipView | None = None
