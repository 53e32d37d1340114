from logging import getLogger

from fastapi import FastAPI

from embedgraph.api.routes.widgets import router
from embedgraph.core.middleware import FetchRateLimitMiddleware
from embedgraph.core.observability import configure_logging
from embedgraph.core.observability import init_sentry
from embedgraph.services.session_service import WidgetSessionStore
from embedgraph.settings import Settings

logger = getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the widget service with settings read from the environment."""

    app_settings = settings or Settings()
    configure_logging(app_settings)
    init_sentry(app_settings)

    app = FastAPI(title="embedgraph")
    app.state.settings = app_settings
    app.state.sessions = WidgetSessionStore(
        ttl_seconds=app_settings.session_ttl_seconds,
        max_sessions=app_settings.max_sessions,
    )
    app.add_middleware(
        FetchRateLimitMiddleware,
        requests_per_window=app_settings.rate_limit_per_minute,
        window_seconds=app_settings.rate_limit_window_seconds,
    )
    app.include_router(router)

    logger.info("embedgraph started (environment=%s)", app_settings.environment)
    return app


app = create_app()
