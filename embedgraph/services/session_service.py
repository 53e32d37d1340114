from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from logging import getLogger
from threading import RLock
from time import monotonic
from typing import Literal
from uuid import uuid4

from embedgraph.models import ContributionsData
from embedgraph.models import Grid
from embedgraph.services.contributions_service import ContributionsAPIError
from embedgraph.services.contributions_service import ContributorNotFoundError
from embedgraph.services.grid_service import build_grid
from embedgraph.services.interaction import DeviceMode
from embedgraph.services.interaction import InteractionController
from embedgraph.services.placement import PlacementConstants
from embedgraph.services.year_navigator import ALL_YEARS
from embedgraph.services.year_navigator import YearNavigator
from embedgraph.services.year_navigator import YearSelector
from embedgraph.settings import Settings

logger = getLogger(__name__)

NOT_FOUND_MESSAGE = "User not found or API error"
LOAD_FAILED_MESSAGE = "Could not load data."

Fetcher = Callable[[str, str], ContributionsData]
Direction = Literal["prev", "next"]


@dataclass(eq=False)
class WidgetSession:
    """State of one embedded widget for the lifetime of a page load.

    The session owns the year cursor, the current grid and the interaction
    controller. Grids are only ever replaced wholesale by `load`.
    """

    id: str
    username: str
    theme: str
    navigator: YearNavigator
    controller: InteractionController
    week_start: int = 0
    grid: Grid = ()
    totals: dict[str, int] = field(default_factory=dict)
    error: str | None = None
    last_seen: float = field(default_factory=monotonic)
    lock: RLock = field(default_factory=RLock, repr=False)

    @property
    def total(self) -> int:
        return self.totals.get(self.navigator.total_key, 0)

    @property
    def total_label(self) -> str:
        if self.navigator.is_rolling:
            period = "the last year"
        else:
            period = str(self.navigator.selected)
        noun = "contribution" if self.total == 1 else "contributions"
        return f"{self.total} {noun} in {period}"

    def load(self, fetcher: Fetcher) -> bool:
        """Fetch data for the selected year and rebuild the grid.

        Failures leave an empty grid and a displayable error message.
        """

        token = self.navigator.request_token
        try:
            data = fetcher(self.username, token)
        except ContributorNotFoundError:
            self._show_error(NOT_FOUND_MESSAGE)
            return False
        except ContributionsAPIError as exc:
            if exc.status_code is None:
                self._show_error(LOAD_FAILED_MESSAGE)
            else:
                self._show_error(NOT_FOUND_MESSAGE)
            return False

        self.grid = build_grid(data.records, week_start=self.week_start)
        self.totals = data.totals
        self.error = None
        self.controller.load_grid(self.grid)
        if not self.navigator.years_discovered:
            self._discover_years(fetcher)
        return True

    def _discover_years(self, fetcher: Fetcher) -> None:
        """Learn the selectable years from the all-years totals.

        A per-year response only carries its own total key, so the year list
        comes from a separate `all` request whose records are ignored. On
        failure discovery is retried on the next successful load.
        """

        try:
            data = fetcher(self.username, ALL_YEARS)
        except (ContributorNotFoundError, ContributionsAPIError) as exc:
            logger.warning("session %s could not discover years: %s", self.id, exc)
            return

        self.navigator.discover(data.totals.keys())
        logger.info(
            "session %s discovered years %s",
            self.id,
            list(self.navigator.available_years),
        )

    def navigate(self, direction: Direction, fetcher: Fetcher) -> bool:
        if direction == "prev":
            moved = self.navigator.prev_year()
        else:
            moved = self.navigator.next_year()
        if not moved:
            return False

        logger.info(
            "session %s navigated %s to %s", self.id, direction, self.navigator.request_token
        )
        self.load(fetcher)
        return True

    def _show_error(self, message: str) -> None:
        self.grid = ()
        self.totals = {}
        self.error = message
        self.controller.load_grid(self.grid)


def create_session(
    username: str,
    selected: YearSelector,
    theme: str,
    settings: Settings,
) -> WidgetSession:
    return WidgetSession(
        id=uuid4().hex,
        username=username,
        theme=theme,
        navigator=YearNavigator(selected=selected),
        controller=InteractionController(
            mode=DeviceMode.POINTER,
            constants=PlacementConstants(
                offset=settings.tooltip_offset_px,
                padding=settings.tooltip_padding_px,
            ),
        ),
        week_start=settings.week_start,
    )


class WidgetSessionStore:
    """In-memory registry of open widget sessions with idle expiry."""

    def __init__(
        self,
        ttl_seconds: int = 1800,
        max_sessions: int = 1000,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        # Guard against invalid config values (0 or negatives).
        self.ttl_seconds = max(1, ttl_seconds)
        self.max_sessions = max(1, max_sessions)
        self._clock = clock
        # Least recently used first.
        self._sessions: OrderedDict[str, WidgetSession] = OrderedDict()
        self._lock = RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def add(self, session: WidgetSession) -> None:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            while len(self._sessions) >= self.max_sessions:
                evicted_id, _ = self._sessions.popitem(last=False)
                logger.info("evicted widget session %s (capacity)", evicted_id)
            session.last_seen = now
            self._sessions[session.id] = session

    def get(self, session_id: str) -> WidgetSession | None:
        with self._lock:
            now = self._clock()
            self._evict_expired(now)
            session = self._sessions.get(session_id)
            if session is None:
                return None
            session.last_seen = now
            self._sessions.move_to_end(session_id)
            return session

    def remove(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def _evict_expired(self, now: float) -> None:
        cutoff = now - self.ttl_seconds
        while self._sessions:
            oldest_id, oldest = next(iter(self._sessions.items()))
            if oldest.last_seen > cutoff:
                break
            del self._sessions[oldest_id]
            logger.info("evicted widget session %s (idle)", oldest_id)
