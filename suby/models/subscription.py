from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import BillingCycle, Category, display_for

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")
_HEX_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_currency(v: str) -> str:
    v = v.strip().upper()
    if not _CURRENCY_RE.match(v):
        raise ValueError("currency must be a 3-letter code")
    return v


def _normalize_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("name must not be blank")
    return v


def _check_hex(v: Optional[str]) -> Optional[str]:
    if v is not None and not _HEX_RE.match(v):
        raise ValueError("color_hex must look like #RRGGBB")
    return v.upper() if v else v


class Subscription(BaseModel):
    """A recurring charge, stored as an immutable value.

    Updates never mutate an instance; they produce a new value which the
    store swaps in by id.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: UUID
    name: str
    price: float = Field(..., gt=0)
    currency: str
    billing_cycle: BillingCycle
    category: Category = Category.ENTERTAINMENT
    start_date: date
    color_hex: str
    icon_name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def monthly_cost(self) -> float:
        """Run-rate per month: a yearly price is spread over twelve months."""
        if self.billing_cycle == BillingCycle.YEARLY:
            return self.price / 12.0
        return self.price

    @property
    def occurrence_amount(self) -> float:
        """Amount charged on a single billing event, whatever the cycle."""
        return self.price


class SubscriptionIn(BaseModel):
    id: Optional[UUID] = None
    name: str = Field(..., max_length=120)
    price: float = Field(..., gt=0)
    currency: str = "USD"
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    category: Category = Category.ENTERTAINMENT
    start_date: date = Field(default_factory=date.today)
    color_hex: Optional[str] = None
    icon_name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def valid_name(cls, v: str) -> str:
        return _normalize_name(v)

    @field_validator("currency")
    @classmethod
    def valid_currency(cls, v: str) -> str:
        return _normalize_currency(v)

    @field_validator("color_hex")
    @classmethod
    def valid_color(cls, v: Optional[str]) -> Optional[str]:
        return _check_hex(v)

    def to_subscription(self, now: Optional[datetime] = None) -> Subscription:
        now = now or _utcnow()
        display = display_for(self.category)
        return Subscription(
            id=self.id or uuid4(),
            name=self.name,
            price=self.price,
            currency=self.currency,
            billing_cycle=self.billing_cycle,
            category=self.category,
            start_date=self.start_date,
            color_hex=self.color_hex or display.color_hex,
            icon_name=self.icon_name or display.icon,
            created_at=now,
            updated_at=now,
        )


class SubscriptionUpdateIn(BaseModel):
    """Partial update model. Every field optional; at least one must be provided."""

    name: Optional[str] = Field(None, max_length=120)
    price: Optional[float] = Field(None, gt=0)
    currency: Optional[str] = None
    billing_cycle: Optional[BillingCycle] = None
    category: Optional[Category] = None
    start_date: Optional[date] = None
    color_hex: Optional[str] = None
    icon_name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def valid_name(cls, v):  # type: ignore[override]
        return _normalize_name(v) if v is not None else v

    @field_validator("currency")
    @classmethod
    def valid_currency(cls, v):  # type: ignore[override]
        return _normalize_currency(v) if v is not None else v

    @field_validator("color_hex")
    @classmethod
    def valid_color(cls, v):  # type: ignore[override]
        return _check_hex(v)

    @model_validator(mode="after")
    def at_least_one(self) -> "SubscriptionUpdateIn":
        if not self.model_dump(exclude_none=True):
            raise ValueError("at least one field must be provided for update")
        return self

    def apply(self, current: Subscription, now: Optional[datetime] = None) -> Subscription:
        """Return a new Subscription with this update's fields laid over ``current``."""
        changes = self.model_dump(exclude_none=True)
        changes["updated_at"] = now or _utcnow()
        return current.model_copy(update=changes)
