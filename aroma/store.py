from __future__ import annotations

from typing import Any, List, Optional, Protocol, Sequence

from .config import Settings
from .models import BrandSettings, Category, DiningTable, Item, Order, OrderItem


class Store(Protocol):
    """Repository used by the HTTP layer; implemented by SqlStore and JsonFileStore."""

    def init(self) -> None: ...

    def reset(self) -> None: ...

    def close(self) -> None: ...

    # settings
    def get_settings(self) -> BrandSettings: ...

    def update_settings(self, fields: dict[str, Any]) -> BrandSettings: ...

    # catalog
    def list_categories(self, *, include_hidden: bool = True) -> List[Category]: ...

    def get_category(self, category_id: int) -> Optional[Category]: ...

    def create_category(self, fields: dict[str, Any]) -> Category: ...

    def update_category(self, category_id: int, fields: dict[str, Any]) -> bool: ...

    def delete_category(self, category_id: int) -> bool: ...

    def list_items(self, category_id: Optional[int] = None, *, include_hidden: bool = True) -> List[Item]: ...

    def get_item(self, item_id: int) -> Optional[Item]: ...

    def create_item(self, fields: dict[str, Any]) -> Item: ...

    def update_item(self, item_id: int, fields: dict[str, Any]) -> bool: ...

    def delete_item(self, item_id: int) -> bool: ...

    # tables
    def list_tables(self) -> List[DiningTable]: ...

    def get_table_by_token(self, token: str) -> Optional[DiningTable]: ...

    def create_table(self, number: str, token: str) -> DiningTable: ...

    # orders
    def insert_order(self, order: Order, lines: Sequence[OrderItem]) -> Order: ...

    def get_order(self, order_id: int) -> Optional[Order]: ...

    def list_orders(self, limit: int = 200) -> List[Order]: ...

    def list_order_items(self, order_id: int) -> List[OrderItem]: ...

    def set_status(self, order_id: int, status: str) -> bool: ...

    def count_orders(self, status: str) -> int: ...

    def total_sales(self) -> float: ...

    def top_items(self, limit: int = 20) -> List[dict]: ...


def open_store(settings: Settings) -> Store:
    if settings.storage_backend == "json":
        from .json_store import JsonFileStore

        return JsonFileStore(settings.data_file, compact_threshold=settings.journal_compact_threshold)

    from .database import SqlStore

    return SqlStore(settings.database_url)
