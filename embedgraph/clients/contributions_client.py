from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import httpx


def fetch_contributions_payload(
    username: str,
    year_token: str,
    api_url: str,
    timeout: float = 15.0,
) -> dict[str, Any]:
    """Fetch the contributions calendar for one user and year token.

    `year_token` is `"last"` for the rolling window, a 4-digit year, or `"all"`
    for the totals of every year.
    """

    if not username:
        raise ValueError("username is required for contribution requests")

    response = httpx.get(
        f"{api_url.rstrip('/')}/{quote(username, safe='')}",
        params={"y": year_token},
        headers={
            "Accept": "application/json",
            "User-Agent": "embedgraph",
        },
        timeout=timeout,
    )
    response.raise_for_status()

    payload: Any = response.json()
    if not isinstance(payload, Mapping):
        raise ValueError("Contributions response is invalid")

    total = payload.get("total")
    if not isinstance(total, Mapping):
        raise ValueError("Contributions totals are missing")

    contributions = payload.get("contributions")
    if not isinstance(contributions, list):
        raise ValueError("Contributions list is missing")

    return {"total": dict(total), "contributions": contributions}
