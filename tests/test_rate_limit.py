from fastapi.testclient import TestClient

from embedgraph.core.middleware import FetchRateLimitMiddleware
from embedgraph.core.middleware import is_upstream_fetch
from embedgraph.main import create_app
from embedgraph.models import ContributionsData


def fake_get_contributions(username, year_token, settings) -> ContributionsData:
    return ContributionsData(totals={"lastYear": 0}, records=())


def test_widget_open_rate_limited_after_threshold(monkeypatch) -> None:
    """Rate limiter blocks repeated upstream-fetching requests."""

    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "1")
    monkeypatch.setenv("RATE_LIMIT_WINDOW_SECONDS", "60")
    monkeypatch.setattr(
        "embedgraph.api.routes.widgets.get_contributions", fake_get_contributions
    )
    app = create_app()
    client = TestClient(app)

    headers = {"X-Forwarded-For": "203.0.113.10"}

    first = client.post("/widgets", json={"username": "octocat"}, headers=headers)
    second = client.post("/widgets", json={"username": "octocat"}, headers=headers)

    assert first.status_code == 201
    assert second.status_code == 429
    assert second.headers["Retry-After"]


def test_rate_limit_is_tracked_per_client(monkeypatch) -> None:
    """Each forwarded client IP gets its own request window."""

    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "1")
    monkeypatch.setattr(
        "embedgraph.api.routes.widgets.get_contributions", fake_get_contributions
    )
    app = create_app()
    client = TestClient(app)

    first = client.post(
        "/widgets",
        json={"username": "octocat"},
        headers={"X-Forwarded-For": "203.0.113.10"},
    )
    other = client.post(
        "/widgets",
        json={"username": "octocat"},
        headers={"X-Forwarded-For": "198.51.100.7, 10.0.0.1"},
    )

    assert first.status_code == 201
    assert other.status_code == 201


def test_non_fetch_routes_not_rate_limited(monkeypatch) -> None:
    """Rate limiter does not affect routes that never reach upstream."""

    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "1")
    monkeypatch.setenv("RATE_LIMIT_WINDOW_SECONDS", "60")
    app = create_app()
    client = TestClient(app)

    first = client.get("/")
    second = client.get("/")

    assert first.status_code == 200
    assert second.status_code == 200


def test_is_upstream_fetch_matches_open_and_navigate() -> None:
    assert is_upstream_fetch("POST", "/widgets") is True
    assert is_upstream_fetch("POST", "/widgets/abc123/navigate") is True
    assert is_upstream_fetch("GET", "/widgets/abc123") is False
    assert is_upstream_fetch("POST", "/widgets/abc123/events") is False
    assert is_upstream_fetch("POST", "/widgets/abc123/tooltip/measure") is False


def test_register_reports_retry_after_within_window() -> None:
    limiter = FetchRateLimitMiddleware(None, requests_per_window=1, window_seconds=60)

    assert limiter.register("203.0.113.10", 0.0) is None
    assert limiter.register("203.0.113.10", 10.0) == 50
    assert limiter.register("203.0.113.10", 61.0) is None


def test_quiet_clients_are_dropped_after_a_window() -> None:
    """Buckets of clients with no request inside the window are released."""

    limiter = FetchRateLimitMiddleware(None, requests_per_window=5, window_seconds=60)

    limiter.register("203.0.113.10", 0.0)
    limiter.register("198.51.100.7", 30.0)
    assert limiter.tracked_clients() == 2

    limiter.register("192.0.2.1", 100.0)

    assert limiter.tracked_clients() == 1
