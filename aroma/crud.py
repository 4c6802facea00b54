from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .catalog import SETTINGS_FIELDS, clean_category_fields, clean_item_fields, pick, unique_key
from .errors import ValidationError
from .models import (
    SOLD_STATUSES,
    BrandSettings,
    Category,
    DiningTable,
    Item,
    Order,
    OrderItem,
    check_transition,
)

# SQLite INTEGER is a signed 64-bit value; larger ids cannot match a row.
ROW_ID_MIN = -(2 ** 63)
ROW_ID_MAX = 2 ** 63 - 1


def _fits(row_id: int) -> bool:
    return ROW_ID_MIN <= row_id <= ROW_ID_MAX


# -------------------------
# Settings
# -------------------------

def get_settings(session: Session) -> BrandSettings:
    settings = session.get(BrandSettings, 1)
    if settings is None:
        settings = BrandSettings(id=1)
        session.add(settings)
        session.commit()
        session.refresh(settings)
    return settings


def update_settings(session: Session, updates: dict) -> BrandSettings:
    settings = get_settings(session)
    for key, value in pick(updates, SETTINGS_FIELDS).items():
        setattr(settings, key, value)
    session.add(settings)
    session.commit()
    session.refresh(settings)
    return settings


# -------------------------
# Category operations
# -------------------------

def list_categories(session: Session, *, include_hidden: bool = True) -> List[Category]:
    statement = select(Category)
    if not include_hidden:
        statement = statement.where(Category.hidden.is_(False))
    statement = statement.order_by(Category.sort_order.asc(), Category.id.asc())
    return list(session.exec(statement))


def get_category(session: Session, category_id: int) -> Category | None:
    if not _fits(category_id):
        return None
    return session.get(Category, category_id)


def create_category(session: Session, data: dict) -> Category:
    data = clean_category_fields(data, creating=True)
    taken = set(session.exec(select(Category.key)).all())
    data["key"] = unique_key(data.get("key") or data["name"], taken)
    category = Category(**data)
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


def update_category(session: Session, category: Category, updates: dict) -> Category:
    updates = clean_category_fields(updates)
    if updates.get("key") and updates["key"] != category.key:
        taken = set(session.exec(select(Category.key).where(Category.id != category.id)).all())
        updates["key"] = unique_key(updates["key"], taken)
    for key, value in updates.items():
        setattr(category, key, value)
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


def delete_category(session: Session, category: Category) -> None:
    for item in session.exec(select(Item).where(Item.category_id == category.id)).all():
        session.delete(item)
    session.flush()
    session.delete(category)
    session.commit()


# -------------------------
# Item operations
# -------------------------

def list_items(
    session: Session,
    category_id: Optional[int] = None,
    *,
    include_hidden: bool = True,
) -> List[Item]:
    if category_id is not None and not _fits(category_id):
        return []
    if category_id is None:
        statement = select(Item).join(Category, Category.id == Item.category_id).order_by(
            Category.sort_order.asc(),
            Category.id.asc(),
            Item.sort_order.asc(),
            Item.id.asc(),
        )
    else:
        statement = (
            select(Item)
            .where(Item.category_id == category_id)
            .order_by(Item.sort_order.asc(), Item.id.asc())
        )
    if not include_hidden:
        statement = statement.where(Item.hidden.is_(False))
    return list(session.exec(statement))


def get_item(session: Session, item_id: int) -> Item | None:
    if not _fits(item_id):
        return None
    return session.get(Item, item_id)


def create_item(session: Session, data: dict) -> Item:
    data = clean_item_fields(data, creating=True)
    _require_category(session, data["category_id"])
    item = Item(**data)
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def update_item(session: Session, item: Item, updates: dict) -> Item:
    updates = clean_item_fields(updates)
    if "category_id" in updates:
        _require_category(session, updates["category_id"])
    for key, value in updates.items():
        setattr(item, key, value)
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


def delete_item(session: Session, item: Item) -> None:
    session.delete(item)
    session.commit()


def _require_category(session: Session, category_id: int) -> None:
    if get_category(session, category_id) is None:
        raise ValidationError(f"Unknown category {category_id}")


# -------------------------
# Table operations
# -------------------------

def list_tables(session: Session) -> List[DiningTable]:
    return list(session.exec(select(DiningTable).order_by(DiningTable.id.asc())))


def get_table_by_token(session: Session, token: str) -> DiningTable | None:
    return session.exec(select(DiningTable).where(DiningTable.token == token)).first()


def create_table(session: Session, number: str, token: str) -> DiningTable:
    table = DiningTable(number=number, token=token)
    session.add(table)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise ValidationError(f"Table {number} already exists") from exc
    session.refresh(table)
    return table


# -------------------------
# Order operations
# -------------------------

def insert_order(session: Session, order: Order, lines: Sequence[OrderItem]) -> Order:
    session.add(order)
    session.flush()  # obtain order.id before inserting items
    for line in lines:
        line.order_id = order.id
        session.add(line)
    session.commit()
    session.refresh(order)
    return order


def get_order(session: Session, order_id: int) -> Order | None:
    if not _fits(order_id):
        return None
    return session.get(Order, order_id)


def list_orders(session: Session, limit: int = 200) -> List[Order]:
    statement = select(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(limit)
    return list(session.exec(statement))


def list_order_items(session: Session, order_id: int) -> List[OrderItem]:
    if not _fits(order_id):
        return []
    statement = select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id.asc())
    return list(session.exec(statement))


def set_status(session: Session, order: Order, status: str) -> Order:
    order.status = check_transition(order.status, status).value
    session.add(order)
    session.commit()
    session.refresh(order)
    return order


def count_orders(session: Session, status: str) -> int:
    return int(session.exec(select(func.count(Order.id)).where(Order.status == status)).one() or 0)


def total_sales(session: Session) -> float:
    statement = select(func.coalesce(func.sum(Order.total), 0)).where(Order.status.in_(SOLD_STATUSES))
    return round(float(session.exec(statement).one() or 0), 2)


def top_items(session: Session, limit: int = 20) -> List[dict]:
    sales = func.sum(OrderItem.quantity * OrderItem.price)
    statement = (
        select(OrderItem.item_id, OrderItem.name, func.sum(OrderItem.quantity), sales)
        .join(Order, Order.id == OrderItem.order_id)
        .where(Order.status.in_(SOLD_STATUSES))
        .group_by(OrderItem.item_id, OrderItem.name)
        .order_by(sales.desc(), OrderItem.item_id.asc())
        .limit(limit)
    )
    return [
        {
            "item_id": row[0],
            "name": row[1],
            "qty": int(row[2] or 0),
            "sales": round(float(row[3] or 0), 2),
        }
        for row in session.exec(statement).all()
    ]
