from __future__ import annotations

from typing import List

from fastapi import APIRouter, Response, status

from . import ordering, schemas, tables
from .api import order_with_items
from .deps import AdminGuard, SettingsDep, StoreDep
from .errors import NotFoundError
from .models import OrderStatus

router = APIRouter()


@router.get("", response_model=schemas.Dashboard)
def dashboard(_: AdminGuard, store: StoreDep):
    return schemas.Dashboard(
        pending=store.count_orders(OrderStatus.RECEIVED.value),
        confirmed=store.count_orders(OrderStatus.CONFIRMED.value),
        totalSales=store.total_sales(),
    )


# -------------------------
# Categories
# -------------------------

@router.get("/categories", response_model=List[schemas.CategoryRead])
def list_categories(_: AdminGuard, store: StoreDep):
    return store.list_categories(include_hidden=True)


@router.post("/categories", response_model=schemas.CategoryRead, status_code=status.HTTP_201_CREATED)
def create_category(payload: schemas.CategoryCreate, _: AdminGuard, store: StoreDep):
    return store.create_category(payload.model_dump(exclude_unset=True))


@router.put("/categories/{category_id}", response_model=schemas.CategoryRead)
def update_category(category_id: int, payload: schemas.CategoryUpdate, _: AdminGuard, store: StoreDep):
    if not store.update_category(category_id, payload.model_dump(exclude_unset=True)):
        raise NotFoundError("Category not found")
    return store.get_category(category_id)


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(category_id: int, _: AdminGuard, store: StoreDep):
    if not store.delete_category(category_id):
        raise NotFoundError("Category not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -------------------------
# Items
# -------------------------

@router.get("/items", response_model=List[schemas.ItemRead])
def list_items(_: AdminGuard, store: StoreDep):
    names = {category.id: category.name for category in store.list_categories(include_hidden=True)}
    return [
        schemas.ItemRead(**item.model_dump(), category_name=names.get(item.category_id, "Unknown"))
        for item in store.list_items(include_hidden=True)
    ]


@router.post("/items", response_model=schemas.ItemRead, status_code=status.HTTP_201_CREATED)
def create_item(payload: schemas.ItemCreate, _: AdminGuard, store: StoreDep):
    return store.create_item(payload.model_dump())


@router.put("/items/{item_id}", response_model=schemas.ItemRead)
def update_item(item_id: int, payload: schemas.ItemUpdate, _: AdminGuard, store: StoreDep):
    if not store.update_item(item_id, payload.model_dump(exclude_unset=True)):
        raise NotFoundError("Menu item not found")
    return store.get_item(item_id)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(item_id: int, _: AdminGuard, store: StoreDep):
    if not store.delete_item(item_id):
        raise NotFoundError("Menu item not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -------------------------
# Settings
# -------------------------

@router.get("/settings", response_model=schemas.SettingsRead)
def get_settings(_: AdminGuard, store: StoreDep):
    return store.get_settings()


@router.put("/settings", response_model=schemas.SettingsRead)
def update_settings(payload: schemas.SettingsUpdate, _: AdminGuard, store: StoreDep):
    return store.update_settings(payload.model_dump(exclude_unset=True))


# -------------------------
# Tables
# -------------------------

@router.get("/tables", response_model=List[schemas.TableRead])
def list_tables(_: AdminGuard, store: StoreDep, settings: SettingsDep):
    rows = []
    for table in store.list_tables():
        url = tables.table_url(settings.table_base_url, table)
        rows.append(
            schemas.TableRead(id=table.id, number=table.number, token=table.token, url=url, qr=tables.qr_data_url(url))
        )
    return rows


@router.post("/tables", response_model=schemas.TableRead, status_code=status.HTTP_201_CREATED)
def create_table(payload: schemas.TableCreate, _: AdminGuard, store: StoreDep, settings: SettingsDep):
    table = tables.create_table(store, str(payload.number))
    url = tables.table_url(settings.table_base_url, table)
    return schemas.TableRead(id=table.id, number=table.number, token=table.token, url=url, qr=tables.qr_data_url(url))


# -------------------------
# Orders
# -------------------------

@router.get("/orders", response_model=List[schemas.OrderRead])
def list_orders(_: AdminGuard, store: StoreDep):
    return [order_with_items(store, order.id) for order in store.list_orders(limit=200)]


@router.post("/orders/{order_id}/status", response_model=schemas.OrderRead)
def update_order_status(order_id: int, payload: schemas.StatusUpdate, _: AdminGuard, store: StoreDep):
    ordering.change_status(store, order_id, payload.status)
    return order_with_items(store, order_id)
