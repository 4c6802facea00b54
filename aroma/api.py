from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter

from . import ordering, payments, schemas
from .errors import NotFoundError
from .deps import SettingsDep, StoreDep
from .models import Item, OrderStatus
from .store import Store

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check() -> dict:
    return {"ok": True}


@router.get("/menu", response_model=schemas.MenuResponse)
def get_menu(store: StoreDep):
    categories = store.list_categories(include_hidden=False)
    return schemas.MenuResponse(
        categories=[
            schemas.MenuCategory(id=category.id, key=category.key, name=category.name, icon=category.icon)
            for category in categories
        ],
        menu={
            category.key: [_menu_entry(item) for item in store.list_items(category.id, include_hidden=False)]
            for category in categories
        },
    )


@router.get("/settings", response_model=schemas.PublicSettings)
def get_public_settings(store: StoreDep):
    brand = store.get_settings()
    return schemas.PublicSettings(
        brandName=brand.brand_name,
        logoUrl=brand.logo_url,
        colors=schemas.BrandColors(primary=brand.primary_color, secondary=brand.secondary_color),
        backgroundUrl=brand.background_url,
        fontFamily=brand.font_family,
        currency=brand.currency,
    )


@router.post("/orders", response_model=schemas.OrderCreated)
def create_order(payload: schemas.OrderCreate, store: StoreDep):
    order = ordering.place_order(
        store,
        [line.model_dump() for line in payload.items],
        payload.order_type,
        table_token=payload.table_token,
        table_number=payload.table_number,
        payment_method=payload.payment_method,
    )
    return schemas.OrderCreated(orderId=order.id, total=order.total)


@router.get("/orders/{order_id}", response_model=schemas.OrderRead)
def get_order(order_id: int, store: StoreDep):
    return order_with_items(store, order_id)


@router.post("/orders/{order_id}/confirm", response_model=schemas.OkResponse)
def confirm_order(order_id: int, store: StoreDep):
    ordering.change_status(store, order_id, OrderStatus.CONFIRMED.value)
    return schemas.OkResponse()


@router.post("/orders/{order_id}/complete", response_model=schemas.OkResponse)
def complete_order(order_id: int, store: StoreDep):
    ordering.change_status(store, order_id, OrderStatus.COMPLETED.value)
    return schemas.OkResponse()


@router.get("/analytics/top-items", response_model=List[schemas.TopItem])
def top_items(store: StoreDep):
    return store.top_items(limit=20)


@router.post("/payments/stripe-intent", response_model=schemas.PaymentIntentResponse)
def create_stripe_intent(payload: schemas.PaymentIntentRequest, store: StoreDep, settings: SettingsDep):
    currency = payload.currency or store.get_settings().currency
    client_secret = payments.create_payment_intent(settings, payload.amount, currency)
    return schemas.PaymentIntentResponse(clientSecret=client_secret)


def order_with_items(store: Store, order_id: int) -> schemas.OrderRead:
    order = store.get_order(order_id)
    if not order:
        raise NotFoundError("Order not found")
    result = schemas.OrderRead.model_validate(order)
    result.items = [schemas.OrderItemRead.model_validate(line) for line in store.list_order_items(order.id)]
    return result


def _menu_entry(item: Item) -> schemas.MenuEntry:
    return schemas.MenuEntry(
        id=item.id,
        price=item.price,
        image=item.image_url,
        video=item.video_url,
        name=item.name,
        description=item.description,
        nutrition=item.nutrition,
        ingredients=item.ingredients,
        allergies=item.allergies,
        prepTime=item.prep_time,
    )
