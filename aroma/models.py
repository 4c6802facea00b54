from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel

from .errors import InvalidTransition, ValidationError


class OrderType(str, Enum):
    DINE_IN = "dine-in"
    TAKEAWAY = "takeaway"


class OrderStatus(str, Enum):
    RECEIVED = "received"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.RECEIVED: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Orders that count towards sales figures.
SOLD_STATUSES = (OrderStatus.CONFIRMED.value, OrderStatus.COMPLETED.value)


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError as exc:
        raise ValidationError(f"Unknown order status: {value}") from exc


def check_transition(current: str, requested: str) -> OrderStatus:
    """Return the requested status if an order in ``current`` may move to it."""
    target = parse_status(requested)
    if target not in ALLOWED_TRANSITIONS[OrderStatus(current)]:
        raise InvalidTransition(current, target.value)
    return target


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BrandSettings(SQLModel, table=True):
    __tablename__ = "settings"

    id: int = Field(default=1, primary_key=True)
    brand_name: str = "AROMA"
    logo_url: str = ""
    primary_color: str = "#f97316"
    secondary_color: str = "#ffffff"
    background_url: str = ""
    font_family: str = "system-ui, sans-serif"
    currency: str = "EUR"


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    key: str = Field(index=True, sa_column_kwargs={"unique": True})
    name: str
    icon: str = "🍔"
    sort_order: int = Field(default=0, index=True)
    hidden: bool = False


class Item(SQLModel, table=True):
    __tablename__ = "items"

    id: Optional[int] = Field(default=None, primary_key=True)
    category_id: int = Field(foreign_key="categories.id", index=True, ondelete="CASCADE")
    name: str
    description: str = ""
    price: float = Field(default=0, ge=0)
    image_url: str = ""
    video_url: str = ""
    nutrition: str = ""
    ingredients: str = ""
    allergies: str = ""
    prep_time: str = ""
    hidden: bool = False
    sort_order: int = 0


class DiningTable(SQLModel, table=True):
    __tablename__ = "tables"

    id: Optional[int] = Field(default=None, primary_key=True)
    number: str = Field(sa_column_kwargs={"unique": True})
    token: str = Field(index=True, sa_column_kwargs={"unique": True})


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    table_number: Optional[str] = None
    table_token: Optional[str] = None
    order_type: str = OrderType.DINE_IN.value
    status: str = Field(default=OrderStatus.RECEIVED.value, index=True)
    total: float = Field(default=0, ge=0)
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow, index=True)


class OrderItem(SQLModel, table=True):
    __tablename__ = "order_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True, ondelete="CASCADE")
    # Snapshot reference only; the item may since have been edited or deleted.
    item_id: int
    name: str
    price: float = Field(default=0, ge=0)
    quantity: int = Field(default=1, ge=1)


__all__ = [
    "ALLOWED_TRANSITIONS",
    "BrandSettings",
    "Category",
    "DiningTable",
    "Item",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderType",
    "SOLD_STATUSES",
    "check_transition",
    "parse_status",
]
