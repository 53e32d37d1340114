import logging

from embedgraph.core.observability import configure_logging
from embedgraph.core.observability import init_sentry
from embedgraph.settings import Settings


def test_init_sentry_skips_when_dsn_missing(monkeypatch) -> None:
    """Sentry initialization is skipped when DSN is absent."""

    calls: list[dict[str, object]] = []

    def fake_init(**kwargs):
        calls.append(kwargs)

    monkeypatch.setattr("embedgraph.core.observability.sentry_sdk.init", fake_init)

    settings = Settings(sentry_dsn=None)
    init_sentry(settings)

    assert calls == []


def test_init_sentry_initializes_sdk_with_settings(monkeypatch) -> None:
    """Sentry SDK is initialized with configured runtime settings."""

    calls: list[dict[str, object]] = []

    def fake_init(**kwargs):
        calls.append(kwargs)

    monkeypatch.setattr("embedgraph.core.observability.sentry_sdk.init", fake_init)

    settings = Settings(
        sentry_dsn="https://examplePublicKey@o0.ingest.sentry.io/0",
        environment="production",
        release="abc123",
        sentry_traces_sample_rate=0.2,
    )
    init_sentry(settings)

    assert calls == [
        {
            "dsn": "https://examplePublicKey@o0.ingest.sentry.io/0",
            "environment": "production",
            "release": "abc123",
            "traces_sample_rate": 0.2,
            "send_default_pii": False,
        }
    ]


def test_configure_logging_sets_package_level() -> None:
    """Package logger follows the configured level; unknown names fall back."""

    package_logger = logging.getLogger("embedgraph")
    original_level = package_logger.level
    try:
        configure_logging(Settings(log_level="debug"))
        assert package_logger.level == logging.DEBUG

        configure_logging(Settings(log_level="chatty"))
        assert package_logger.level == logging.INFO
    finally:
        package_logger.setLevel(original_level)


def test_settings_read_tooltip_constants_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("TOOLTIP_OFFSET_PX", "6")
    monkeypatch.setenv("TOOLTIP_PADDING_PX", "16")
    monkeypatch.setenv("WEEK_START", "1")

    settings = Settings()

    assert settings.tooltip_offset_px == 6
    assert settings.tooltip_padding_px == 16
    assert settings.week_start == 1
