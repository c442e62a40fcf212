import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from .core.config import get_settings, Settings
from .core.logging import init_logging, request_context_middleware
from .db.dal import Database, MetadataRateStore
from .db.migrate import apply_migrations
from .core import errors
from .routers import health, subscriptions, calendar, analytics, rates
from .services.rates.cache_service import RateProvider
from .services.rates.providers import make_rate_source


def build_rate_provider(settings: Settings) -> RateProvider:
    """RateProvider persisting into the app database, primed from its cached snapshot."""
    provider = RateProvider(
        store=MetadataRateStore(Database(settings.db_path)),
        source=make_rate_source(settings.exchange_rate_provider, settings),
        base_currency=settings.base_currency,
        cache_key=settings.rates_cache_key,
    )
    provider.load_cached_rates()
    return provider


def create_app(settings_override: Settings | None = None) -> FastAPI:
    """Application factory.

    settings_override: a ready Settings instance (tests point it at a temp
    database and the static rate source). Defaults to get_settings().
    """
    settings = settings_override or get_settings()
    settings.init_post_load()  # idempotent; overrides built by hand skip it otherwise
    # logging before anything else can log
    init_logging(debug=settings.debug)
    logger = logging.getLogger("suby")

    # schema must exist before the rate provider reads its cached snapshot
    try:
        apply_migrations(settings.db_path)  # type: ignore[arg-type]
    except Exception:
        # no usable store means no app
        logger.exception("failed to apply migrations on startup")
        raise

    rate_provider = build_rate_provider(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.refresh_rates_on_startup:
            rate_provider.start_refresh()
        yield
        await rate_provider.aclose()

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.rate_provider = rate_provider

    # request id for every log line of a request
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(subscriptions.router)
    app.include_router(calendar.router)
    app.include_router(analytics.router)
    app.include_router(rates.router)

    @app.get("/")
    async def root():
        return {"message": "Suby Subscription Tracker API", "version": settings.version}

    return app
