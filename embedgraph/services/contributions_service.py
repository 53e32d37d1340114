from logging import getLogger

import httpx

from embedgraph.clients.contributions_client import fetch_contributions_payload
from embedgraph.models import ContributionsData
from embedgraph.services.grid_service import parse_day_records
from embedgraph.settings import Settings

logger = getLogger(__name__)


class ContributorNotFoundError(Exception):
    """Raised when the upstream API does not know the requested user."""


class ContributionsAPIError(Exception):
    """Raised when contribution requests fail for any other reason.

    `status_code` is set when the upstream answered with an HTTP error and is
    None for transport or decoding failures.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def parse_totals(raw_total: dict[str, object]) -> dict[str, int]:
    return {
        str(key): value
        for key, value in raw_total.items()
        if isinstance(value, int) and not isinstance(value, bool)
    }


def get_contributions(
    username: str, year_token: str, settings: Settings
) -> ContributionsData:
    """Fetch and decode contributions for a user and year token."""

    try:
        payload = fetch_contributions_payload(
            username=username,
            year_token=year_token,
            api_url=settings.contributions_api_url,
            timeout=settings.request_timeout_seconds,
        )
    except httpx.HTTPStatusError as exc:
        logger.warning(
            "contributions request for %s (y=%s) returned %s",
            username,
            year_token,
            exc.response.status_code,
        )
        if exc.response.status_code == 404:
            raise ContributorNotFoundError(username) from exc
        raise ContributionsAPIError(
            f"upstream returned {exc.response.status_code}",
            status_code=exc.response.status_code,
        ) from exc
    except Exception as exc:
        logger.warning(
            "contributions request for %s (y=%s) failed: %s", username, year_token, exc
        )
        raise ContributionsAPIError("contributions request failed") from exc

    return ContributionsData(
        totals=parse_totals(payload["total"]),
        records=tuple(parse_day_records(payload["contributions"])),
    )
