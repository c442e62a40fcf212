"""Pydantic domain models for the subscription tracker."""

from .constants import (
    BillingCycle,
    Category,
    CATEGORY_DISPLAY,
    CURRENCIES,
)  # re-export
from .subscription import Subscription, SubscriptionIn, SubscriptionUpdateIn
from .rates import ExchangeRateResponse, RateSnapshotOut

__all__ = [
    "BillingCycle",
    "Category",
    "CATEGORY_DISPLAY",
    "CURRENCIES",
    "Subscription",
    "SubscriptionIn",
    "SubscriptionUpdateIn",
    "ExchangeRateResponse",
    "RateSnapshotOut",
]
