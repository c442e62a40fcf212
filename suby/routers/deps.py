from datetime import date
from typing import Optional

from fastapi import Query, Request

from suby.core.config import Settings
from suby.db.dal import Database
from suby.services.rates.cache_service import RateProvider

# Dependencies shared by routers. Everything hangs off app.state so an app
# built with a settings override never reaches for the global settings.


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Database:
    return Database(request.app.state.settings.db_path)


def get_rate_provider(request: Request) -> RateProvider:
    return request.app.state.rate_provider


def get_display_currency(
    request: Request,
    currency: Optional[str] = Query(
        None, min_length=3, max_length=3, description="Display currency (defaults to settings)"
    ),
) -> str:
    if currency:
        return currency.upper()
    return request.app.state.settings.display_currency


def get_today(
    today: Optional[date] = Query(None, description="Reference date (defaults to today)"),
) -> date:
    return today or date.today()
