from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from .errors import InvalidItem, NotFoundError, ValidationError
from .models import Order, OrderItem, OrderStatus, OrderType
from .store import Store

logger = logging.getLogger(__name__)


def clamp_quantity(value: Any) -> int:
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        return 1
    return max(1, quantity)


def _line_value(line: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if line.get(key) is not None:
            return line[key]
    return None


def place_order(
    store: Store,
    lines: Sequence[Mapping[str, Any]],
    order_type: str,
    table_token: Optional[str] = None,
    table_number: Optional[str] = None,
    payment_method: Optional[str] = None,
) -> Order:
    """Snapshot the requested items and persist the order with its lines.

    Prices are read from the catalog once; the stored total is never
    recomputed afterwards. Nothing is written unless every line resolves.
    """
    if not lines:
        raise ValidationError("No items")
    try:
        order_type = OrderType(order_type).value
    except ValueError as exc:
        raise ValidationError("Invalid orderType") from exc

    if table_token:
        table = store.get_table_by_token(table_token)
        if table is None:
            raise ValidationError("Unknown table token")
        table_number = table_number or table.number

    total = 0.0
    snapshot: list[OrderItem] = []
    for line in lines:
        item_id = _line_value(line, "id", "itemId", "item_id")
        try:
            item = store.get_item(int(item_id))
        except (TypeError, ValueError, OverflowError):
            item = None
        if item is None:
            raise InvalidItem(item_id)
        quantity = clamp_quantity(_line_value(line, "qty", "quantity"))
        total += item.price * quantity
        snapshot.append(OrderItem(item_id=item.id, name=item.name, price=item.price, quantity=quantity))

    order = Order(
        table_number=table_number or None,
        table_token=table_token or None,
        order_type=order_type,
        status=OrderStatus.RECEIVED.value,
        total=round(total, 2),
        payment_method=payment_method or None,
        payment_status="pending" if payment_method else None,
    )
    order = store.insert_order(order, snapshot)
    logger.info(
        "Order %s placed: %s, %d lines, total %.2f",
        order.id,
        order_type,
        len(snapshot),
        order.total,
    )
    return order


def change_status(store: Store, order_id: int, status: str) -> None:
    if not store.set_status(order_id, status):
        raise NotFoundError("Order not found")
    logger.info("Order %s moved to %s", order_id, status)
