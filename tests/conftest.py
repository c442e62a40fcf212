from datetime import date
from typing import Callable

import pytest
from fastapi.testclient import TestClient

from suby.core.config import Settings
from suby.db.dal import Database
from suby.db.migrate import apply_migrations
from suby.main import create_app
from suby.models.constants import BillingCycle, Category
from suby.models.subscription import Subscription, SubscriptionIn
from suby.services.rates.cache_service import InMemoryRateStore, RateProvider
from suby.services.rates.providers import StaticRateSource


@pytest.fixture
def settings(tmp_path) -> Settings:
    s = Settings(
        data_dir=tmp_path,
        db_path=tmp_path / "suby-test.sqlite3",
        exchange_rate_provider="static",
        refresh_rates_on_startup=False,
    )
    s.init_post_load()
    return s


@pytest.fixture
def db(settings) -> Database:
    apply_migrations(settings.db_path)
    return Database(settings.db_path)


@pytest.fixture
def client(settings):
    app = create_app(settings_override=settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def sgd_rates() -> RateProvider:
    """Provider holding {USD: 1.0, SGD: 1.35}, as if freshly refreshed."""
    provider = RateProvider(
        InMemoryRateStore(), StaticRateSource({"USD": 1.0, "SGD": 1.35})
    )
    provider.refresh()
    return provider


@pytest.fixture
def make_sub() -> Callable[..., Subscription]:
    def _make(
        name: str = "Netflix",
        price: float = 10.0,
        start: date = date(2024, 1, 15),
        cycle: BillingCycle = BillingCycle.MONTHLY,
        currency: str = "USD",
        category: Category = Category.ENTERTAINMENT,
    ) -> Subscription:
        return SubscriptionIn(
            name=name,
            price=price,
            currency=currency,
            billing_cycle=cycle,
            category=category,
            start_date=start,
        ).to_subscription()

    return _make
