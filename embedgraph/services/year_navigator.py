from collections.abc import Iterable
from typing import Final
from typing import Literal

ROLLING_LAST: Final = "last"
ROLLING_TOTAL_KEY: Final = "lastYear"
# Upstream token whose totals list every year with contributions.
ALL_YEARS: Final = "all"

YearSelector = int | Literal["last"]


def parse_year_token(token: str) -> YearSelector:
    """Turn a `"last"` or 4-digit year token into a selector.

    Raises:
        ValueError: If the token is neither form.
    """

    cleaned = token.strip().lower()
    if cleaned == ROLLING_LAST:
        return ROLLING_LAST
    if len(cleaned) == 4 and cleaned.isdigit():
        return int(cleaned)
    raise ValueError(f"invalid year token: {token!r}")


def discover_years(year_keys: Iterable[str]) -> tuple[int, ...]:
    """Extract explicit years from response total keys, newest first."""

    years = {int(key) for key in year_keys if len(key) == 4 and key.isdigit()}
    return tuple(sorted(years, reverse=True))


class YearNavigator:
    """Year cursor over `RollingLast` followed by the available years.

    The available years are descending (index 0 is the most recent). Moving
    "prev" goes back in time, "next" forward towards the rolling window.
    Out-of-range moves are no-ops.
    """

    def __init__(
        self,
        selected: YearSelector = ROLLING_LAST,
        available_years: Iterable[int] | None = None,
    ) -> None:
        self._selected: YearSelector = selected
        self._years: tuple[int, ...] | None = None
        if available_years is not None:
            self._years = tuple(sorted(set(available_years), reverse=True))

    @property
    def selected(self) -> YearSelector:
        return self._selected

    @property
    def available_years(self) -> tuple[int, ...]:
        return self._years or ()

    @property
    def years_discovered(self) -> bool:
        return self._years is not None

    @property
    def is_rolling(self) -> bool:
        return self._selected == ROLLING_LAST

    @property
    def request_token(self) -> str:
        return ROLLING_LAST if self.is_rolling else str(self._selected)

    @property
    def total_key(self) -> str:
        return ROLLING_TOTAL_KEY if self.is_rolling else str(self._selected)

    def discover(self, year_keys: Iterable[str]) -> bool:
        """Record the available years once; later calls are ignored."""

        if self._years is not None:
            return False
        self._years = discover_years(year_keys)
        return True

    @property
    def can_go_prev(self) -> bool:
        return self._older_year() is not None

    @property
    def can_go_next(self) -> bool:
        return not self.is_rolling

    def prev_year(self) -> bool:
        target = self._older_year()
        if target is None:
            return False
        self._selected = target
        return True

    def next_year(self) -> bool:
        if self.is_rolling:
            return False
        self._selected = self._newer_year()
        return True

    def _older_year(self) -> int | None:
        years = self.available_years
        if self.is_rolling:
            return years[0] if years else None
        # Years not in the list still move to the nearest listed neighbour.
        return next((year for year in years if year < self._selected), None)

    def _newer_year(self) -> YearSelector:
        newer = [year for year in self.available_years if year > self._selected]
        return min(newer) if newer else ROLLING_LAST
