from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException
from fastapi import Request
from fastapi import Response

from embedgraph.api.schemas.widget import CellEvent
from embedgraph.api.schemas.widget import DayCell
from embedgraph.api.schemas.widget import DeviceUpdate
from embedgraph.api.schemas.widget import EventResponse
from embedgraph.api.schemas.widget import NavigateRequest
from embedgraph.api.schemas.widget import PlacementView
from embedgraph.api.schemas.widget import TooltipMeasure
from embedgraph.api.schemas.widget import TooltipView
from embedgraph.api.schemas.widget import WidgetCreate
from embedgraph.api.schemas.widget import WidgetView
from embedgraph.models import ActiveCell
from embedgraph.models import ContributionsData
from embedgraph.services.contributions_service import get_contributions
from embedgraph.services.grid_service import grid_dimensions
from embedgraph.services.interaction import classify_device_mode
from embedgraph.services.interaction import tooltip_lines
from embedgraph.services.session_service import WidgetSession
from embedgraph.services.session_service import WidgetSessionStore
from embedgraph.services.session_service import create_session
from embedgraph.services.year_navigator import parse_year_token
from embedgraph.settings import Settings


router = APIRouter()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(request: Request) -> WidgetSessionStore:
    return request.app.state.sessions


def get_session(
    session_id: str, store: WidgetSessionStore = Depends(get_session_store)
) -> WidgetSession:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="widget session not found")
    return session


def make_fetcher(settings: Settings):
    def fetch(username: str, year_token: str) -> ContributionsData:
        return get_contributions(username, year_token, settings)

    return fetch


def tooltip_view(session: WidgetSession) -> TooltipView | None:
    controller = session.controller
    active = controller.active
    record = controller.active_record
    if active is None or record is None:
        return None

    placement = controller.placement
    return TooltipView(
        date=active.date,
        lines=list(tooltip_lines(record)),
        needs_measure=controller.needs_measure,
        placement=(
            PlacementView(
                top=placement.top,
                left=placement.left,
                center=placement.center,
                flipped=placement.flipped,
                arrow_offset=placement.arrow_offset,
            )
            if placement is not None
            else None
        ),
    )


def widget_view(session: WidgetSession) -> WidgetView:
    width, height = grid_dimensions(session.grid)
    navigator = session.navigator
    return WidgetView(
        id=session.id,
        username=session.username,
        theme=session.theme,
        year=navigator.request_token,
        total=session.total,
        total_label=session.total_label,
        available_years=list(navigator.available_years),
        can_go_prev=navigator.can_go_prev,
        can_go_next=navigator.can_go_next,
        device_mode=session.controller.mode.value,
        width=width,
        height=height,
        weeks=[
            [
                DayCell(date=day.date, count=day.count, level=day.level)
                if day is not None
                else None
                for day in column
            ]
            for column in session.grid
        ],
        error=session.error,
        tooltip=tooltip_view(session),
    )


@router.get("/")
async def root() -> dict[str, str]:
    """Return a basic service greeting."""

    return {"message": "embedgraph contribution widget"}


@router.get("/health/live")
def health_live() -> dict[str, str]:
    """Return the liveness response for health checks."""

    return {"status": "ok"}


@router.post("/widgets", status_code=201)
def open_widget(
    payload: WidgetCreate,
    settings: Settings = Depends(get_settings),
    store: WidgetSessionStore = Depends(get_session_store),
) -> WidgetView:
    """Open a widget session and load its first year of contributions."""

    session = create_session(
        username=payload.username,
        selected=parse_year_token(payload.year),
        theme=payload.theme,
        settings=settings,
    )
    with session.lock:
        session.load(make_fetcher(settings))
        store.add(session)
        return widget_view(session)


@router.get("/widgets/{session_id}")
def read_widget(session: WidgetSession = Depends(get_session)) -> WidgetView:
    with session.lock:
        return widget_view(session)


@router.delete("/widgets/{session_id}", status_code=204)
def close_widget(
    session_id: str, store: WidgetSessionStore = Depends(get_session_store)
) -> Response:
    if not store.remove(session_id):
        raise HTTPException(status_code=404, detail="widget session not found")
    return Response(status_code=204)


@router.post("/widgets/{session_id}/navigate")
def navigate_widget(
    payload: NavigateRequest,
    session: WidgetSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> WidgetView:
    """Move the year cursor and reload when the selection changed."""

    with session.lock:
        session.navigate(payload.direction, make_fetcher(settings))
        return widget_view(session)


@router.post("/widgets/{session_id}/device")
def update_device(
    payload: DeviceUpdate, session: WidgetSession = Depends(get_session)
) -> WidgetView:
    """Classify the device on load, or re-classify and reposition on resize."""

    mode = classify_device_mode(payload.can_hover, payload.pointer)
    anchor = None
    if payload.anchor is not None:
        anchor = ActiveCell(date=payload.day, anchor=payload.anchor.to_rect())
    with session.lock:
        session.controller.resize(payload.viewport_width, mode, anchor)
        return widget_view(session)


@router.post("/widgets/{session_id}/events")
def handle_event(
    payload: CellEvent, session: WidgetSession = Depends(get_session)
) -> EventResponse:
    controller = session.controller
    with session.lock:
        if payload.type == "enter":
            result = controller.cell_enter(payload.day, payload.anchor.to_rect())
        elif payload.type == "leave":
            result = controller.cell_leave(payload.day)
        elif payload.type == "tap":
            result = controller.tap(payload.day, payload.anchor.to_rect())
        else:
            result = controller.outside_interaction(payload.inside_tooltip)

        return EventResponse(
            changed=result.changed,
            stop_propagation=result.stop_propagation,
            tooltip=tooltip_view(session),
        )


@router.post("/widgets/{session_id}/tooltip/measure")
def measure_tooltip(
    payload: TooltipMeasure, session: WidgetSession = Depends(get_session)
) -> TooltipView | None:
    """Record the measured tooltip size and return its final placement."""

    with session.lock:
        session.controller.measure(payload.to_size())
        return tooltip_view(session)
