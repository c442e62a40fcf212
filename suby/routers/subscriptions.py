from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel

from suby.db.dal import Database
from suby.models.constants import (
    CATEGORY_DISPLAY,
    COLOR_PALETTE,
    CURRENCIES,
    BillingCycle,
    Category,
)
from suby.models.subscription import Subscription, SubscriptionIn, SubscriptionUpdateIn
from suby.routers.deps import get_db
from suby.services.money import round2

import logging

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])
logger = logging.getLogger("suby.subscriptions")


# Response Models --------------------------------------------------
class SubscriptionOut(BaseModel):
    id: UUID
    name: str
    price: float
    currency: str
    billing_cycle: BillingCycle
    category: Category
    start_date: date
    color_hex: str
    icon_name: str
    monthly_cost: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ResetResult(BaseModel):
    status: str
    deleted: int


class CategoryOption(BaseModel):
    category: Category
    icon: str
    color_hex: str


class FormOptions(BaseModel):
    billing_cycles: List[BillingCycle]
    categories: List[CategoryOption]
    currencies: List[str]
    color_palette: List[str]


def to_out(sub: Subscription) -> SubscriptionOut:
    return SubscriptionOut(**sub.model_dump(), monthly_cost=round2(sub.monthly_cost))


def _require(db: Database, subscription_id: UUID) -> Subscription:
    sub = db.get_subscription(subscription_id)
    if sub is None:
        raise HTTPException(status_code=404, detail="subscription not found")
    return sub


# Routes -----------------------------------------------------------
@router.get("/", response_model=List[SubscriptionOut], summary="List subscriptions")
async def list_subscriptions(
    category: Optional[Category] = Query(None, description="Only this category"),
    db: Database = Depends(get_db),
):
    subs = db.list_subscriptions()
    if category is not None:
        subs = [s for s in subs if s.category == category]
    return [to_out(s) for s in subs]


@router.post(
    "/", response_model=SubscriptionOut, status_code=201, summary="Create a subscription"
)
async def create_subscription(payload: SubscriptionIn, db: Database = Depends(get_db)):
    if payload.id is not None and db.get_subscription(payload.id) is not None:
        raise HTTPException(status_code=409, detail="subscription id already exists")
    sub = db.insert_subscription(payload.to_subscription())
    logger.info("subscription created", extra={"subscription_id": str(sub.id)})
    return to_out(sub)


# Declared before /{subscription_id} so "options" is never parsed as an id.
@router.get("/options", response_model=FormOptions, summary="Choices offered when editing")
async def form_options():
    return FormOptions(
        billing_cycles=list(BillingCycle),
        categories=[
            CategoryOption(category=c, icon=d.icon, color_hex=d.color_hex)
            for c, d in CATEGORY_DISPLAY.items()
        ],
        currencies=CURRENCIES,
        color_palette=COLOR_PALETTE,
    )


@router.get("/{subscription_id}", response_model=SubscriptionOut, summary="Get a subscription")
async def get_subscription(subscription_id: UUID, db: Database = Depends(get_db)):
    return to_out(_require(db, subscription_id))


@router.patch(
    "/{subscription_id}",
    response_model=SubscriptionOut,
    summary="Update a subscription (stored record replaced by id)",
)
async def update_subscription(
    subscription_id: UUID, payload: SubscriptionUpdateIn, db: Database = Depends(get_db)
):
    current = _require(db, subscription_id)
    updated = payload.apply(current)
    if not db.replace_subscription(updated):
        raise HTTPException(status_code=404, detail="subscription not found")
    return to_out(updated)


@router.delete("/{subscription_id}", status_code=204, summary="Delete a subscription")
async def delete_subscription(subscription_id: UUID, db: Database = Depends(get_db)):
    if not db.delete_subscription(subscription_id):
        raise HTTPException(status_code=404, detail="subscription not found")
    return Response(status_code=204)


@router.delete("/", response_model=ResetResult, summary="Delete every subscription")
async def reset_all(db: Database = Depends(get_db)):
    deleted = db.delete_all_subscriptions()
    logger.warning("all subscriptions deleted", extra={"deleted": deleted})
    return ResetResult(status="deleted", deleted=deleted)
