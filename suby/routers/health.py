from fastapi import APIRouter, Depends

from suby.core.config import Settings
from suby.db.dal import Database
from suby.routers.deps import get_app_settings, get_db, get_rate_provider
from suby.services.rates.cache_service import RateProvider

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness probe")
async def health(
    settings: Settings = Depends(get_app_settings),
    db: Database = Depends(get_db),
    provider: RateProvider = Depends(get_rate_provider),
):
    last = provider.last_updated
    return {
        "status": "ok",
        "version": settings.version,
        "subscriptions": db.count_subscriptions(),
        "rates_last_updated": last.isoformat() if last else None,
    }
