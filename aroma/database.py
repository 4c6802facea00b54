import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, List, Optional, Sequence

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session, SQLModel, create_engine

from . import crud
from .errors import PersistenceError, ValidationError
from .models import BrandSettings, Category, DiningTable, Item, Order, OrderItem

logger = logging.getLogger(__name__)


def make_engine(database_url: str):
    engine_kwargs = {}
    if database_url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}

    engine = create_engine(database_url, echo=False, **engine_kwargs)

    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.close()

    return engine


class SqlStore:
    """Store backed by SQLModel; one session per operation."""

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url
        self.engine = make_engine(database_url)

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine, expire_on_commit=False) as session:
            try:
                yield session
            except IntegrityError as exc:
                logger.warning("Integrity check failed: %s", exc.orig)
                raise ValidationError("Record violates a data constraint") from exc
            except OperationalError as exc:
                logger.error("Database operation failed: %s", exc)
                raise PersistenceError("Database operation failed") from exc

    def init(self) -> None:
        SQLModel.metadata.create_all(self.engine)
        with self.session() as session:
            crud.get_settings(session)
        logger.info("SQL store ready at %s", self.database_url)

    def reset(self) -> None:
        SQLModel.metadata.drop_all(self.engine)
        self.init()

    def close(self) -> None:
        self.engine.dispose()

    # -------------------------
    # Settings
    # -------------------------

    def get_settings(self) -> BrandSettings:
        with self.session() as session:
            return crud.get_settings(session)

    def update_settings(self, fields: dict[str, Any]) -> BrandSettings:
        with self.session() as session:
            return crud.update_settings(session, fields)

    # -------------------------
    # Catalog
    # -------------------------

    def list_categories(self, *, include_hidden: bool = True) -> List[Category]:
        with self.session() as session:
            return crud.list_categories(session, include_hidden=include_hidden)

    def get_category(self, category_id: int) -> Optional[Category]:
        with self.session() as session:
            return crud.get_category(session, category_id)

    def create_category(self, fields: dict[str, Any]) -> Category:
        with self.session() as session:
            return crud.create_category(session, fields)

    def update_category(self, category_id: int, fields: dict[str, Any]) -> bool:
        with self.session() as session:
            category = crud.get_category(session, category_id)
            if category is None:
                return False
            crud.update_category(session, category, fields)
            return True

    def delete_category(self, category_id: int) -> bool:
        with self.session() as session:
            category = crud.get_category(session, category_id)
            if category is None:
                return False
            crud.delete_category(session, category)
            return True

    def list_items(self, category_id: Optional[int] = None, *, include_hidden: bool = True) -> List[Item]:
        with self.session() as session:
            return crud.list_items(session, category_id, include_hidden=include_hidden)

    def get_item(self, item_id: int) -> Optional[Item]:
        with self.session() as session:
            return crud.get_item(session, item_id)

    def create_item(self, fields: dict[str, Any]) -> Item:
        with self.session() as session:
            return crud.create_item(session, fields)

    def update_item(self, item_id: int, fields: dict[str, Any]) -> bool:
        with self.session() as session:
            item = crud.get_item(session, item_id)
            if item is None:
                return False
            crud.update_item(session, item, fields)
            return True

    def delete_item(self, item_id: int) -> bool:
        with self.session() as session:
            item = crud.get_item(session, item_id)
            if item is None:
                return False
            crud.delete_item(session, item)
            return True

    # -------------------------
    # Tables
    # -------------------------

    def list_tables(self) -> List[DiningTable]:
        with self.session() as session:
            return crud.list_tables(session)

    def get_table_by_token(self, token: str) -> Optional[DiningTable]:
        with self.session() as session:
            return crud.get_table_by_token(session, token)

    def create_table(self, number: str, token: str) -> DiningTable:
        with self.session() as session:
            return crud.create_table(session, number, token)

    # -------------------------
    # Orders
    # -------------------------

    def insert_order(self, order: Order, lines: Sequence[OrderItem]) -> Order:
        with self.session() as session:
            return crud.insert_order(session, order, lines)

    def get_order(self, order_id: int) -> Optional[Order]:
        with self.session() as session:
            return crud.get_order(session, order_id)

    def list_orders(self, limit: int = 200) -> List[Order]:
        with self.session() as session:
            return crud.list_orders(session, limit)

    def list_order_items(self, order_id: int) -> List[OrderItem]:
        with self.session() as session:
            return crud.list_order_items(session, order_id)

    def set_status(self, order_id: int, status: str) -> bool:
        with self.session() as session:
            order = crud.get_order(session, order_id)
            if order is None:
                return False
            crud.set_status(session, order, status)
            return True

    def count_orders(self, status: str) -> int:
        with self.session() as session:
            return crud.count_orders(session, status)

    def total_sales(self) -> float:
        with self.session() as session:
            return crud.total_sales(session)

    def top_items(self, limit: int = 20) -> List[dict]:
        with self.session() as session:
            return crud.top_items(session, limit)
