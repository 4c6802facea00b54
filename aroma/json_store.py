"""File-backed store keeping the whole dataset as one JSON tree.

Mutations are appended to ``<data_file>.journal`` as one JSON line each and
applied in memory only after the append succeeded. The snapshot file is
rewritten (atomically, via a temp file and ``os.replace``) only when the
journal is compacted: on open, on close and whenever the journal reaches
``compact_threshold`` entries. Replaying the journal is idempotent, so a crash
between replacing the snapshot and truncating the journal loses nothing.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

from .catalog import (
    SETTINGS_FIELDS,
    clean_category_fields,
    clean_item_fields,
    pick,
    unique_key,
)
from .errors import PersistenceError, ValidationError
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

logger = logging.getLogger(__name__)

COLLECTIONS = ("categories", "items", "tables", "orders", "order_items")


def _dump(model) -> dict[str, Any]:
    record = model.model_dump()
    for key, value in record.items():
        if isinstance(value, datetime):
            record[key] = value.isoformat()
    return record


def _load(cls, record: dict[str, Any]):
    data = dict(record)
    if isinstance(data.get("created_at"), str):
        data["created_at"] = datetime.fromisoformat(data["created_at"])
    return cls(**data)


def _next_id(rows: dict[int, dict]) -> int:
    return max(rows, default=0) + 1


class JsonFileStore:
    def __init__(self, path: str | os.PathLike, *, compact_threshold: int = 200) -> None:
        self.path = Path(path)
        self.journal_path = self.path.with_name(self.path.name + ".journal")
        self.compact_threshold = max(1, compact_threshold)
        self._lock = threading.RLock()
        self._settings: dict[str, Any] = _dump(BrandSettings())
        self._rows: dict[str, dict[int, dict]] = {name: {} for name in COLLECTIONS}
        self._journal_entries = 0
        self._journal_dirty = False

    # -------------------------
    # Lifecycle
    # -------------------------

    def init(self) -> None:
        with self._lock:
            self._load_snapshot()
            replayed = self._replay_journal()
            if replayed:
                logger.info("Replayed %d journal entries from %s", replayed, self.journal_path)
            self._compact()
            logger.info("JSON store ready at %s", self.path)

    def reset(self) -> None:
        with self._lock:
            self._settings = _dump(BrandSettings())
            self._rows = {name: {} for name in COLLECTIONS}
            self._compact()

    def close(self) -> None:
        with self._lock:
            if self._journal_entries or self._journal_dirty:
                self._compact()

    def _load_snapshot(self) -> None:
        self._settings = _dump(BrandSettings())
        self._rows = {name: {} for name in COLLECTIONS}
        if not self.path.exists():
            return
        try:
            tree = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"Cannot read {self.path}: {exc}") from exc
        self._settings.update(pick(tree.get("settings") or {}, SETTINGS_FIELDS))
        for name in COLLECTIONS:
            self._rows[name] = {int(row["id"]): row for row in tree.get(name) or []}

    def _replay_journal(self) -> int:
        if not self.journal_path.exists():
            return 0
        try:
            lines = self.journal_path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise PersistenceError(f"Cannot read {self.journal_path}: {exc}") from exc
        applied = 0
        for index, line in enumerate(lines):
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError as exc:
                if index == len(lines) - 1:
                    logger.warning("Discarding torn journal entry at line %d", index + 1)
                    break
                raise PersistenceError(f"Corrupt journal entry at line {index + 1}") from exc
            self._apply(entry["changes"])
            applied += 1
        return applied

    def _compact(self) -> None:
        tree = {"settings": self._settings}
        for name in COLLECTIONS:
            tree[name] = [self._rows[name][key] for key in sorted(self._rows[name])]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(tree, handle, indent=2, ensure_ascii=False)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
            with open(self.journal_path, "w", encoding="utf-8"):
                pass
        except OSError as exc:
            logger.error("Compaction of %s failed: %s", self.path, exc)
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceError(f"Cannot write {self.path}: {exc}") from exc
        self._journal_entries = 0
        self._journal_dirty = False
        logger.debug("Compacted %s", self.path)

    # -------------------------
    # Journal
    # -------------------------

    def _commit(self, changes: list[dict[str, Any]]) -> None:
        if self._journal_dirty:
            # A failed append may have left a fragment; rewrite before appending.
            self._compact()
        data = (json.dumps({"changes": changes}, ensure_ascii=False) + "\n").encode("utf-8")
        try:
            with open(self.journal_path, "ab", buffering=0) as handle:
                start = handle.seek(0, os.SEEK_END)
                try:
                    view = memoryview(data)
                    while view:
                        view = view[handle.write(view):]
                    os.fsync(handle.fileno())
                except OSError:
                    handle.truncate(start)
                    raise
        except OSError as exc:
            logger.error("Journal append to %s failed: %s", self.journal_path, exc)
            self._journal_dirty = True
            raise PersistenceError(f"Cannot write {self.journal_path}: {exc}") from exc
        self._apply(changes)
        self._journal_entries += 1
        if self._journal_entries >= self.compact_threshold:
            try:
                self._compact()
            except PersistenceError:
                logger.warning("Change kept in %s; compaction retried on next commit", self.journal_path)

    def _apply(self, changes: Iterable[dict[str, Any]]) -> None:
        for change in changes:
            collection = change["collection"]
            if collection == "settings":
                self._settings = dict(change["record"])
            elif change["op"] == "put":
                record = change["record"]
                self._rows[collection][int(record["id"])] = record
            elif change["op"] == "delete":
                self._rows[collection].pop(int(change["id"]), None)

    @staticmethod
    def _put(collection: str, record: dict[str, Any]) -> dict[str, Any]:
        return {"op": "put", "collection": collection, "record": record}

    @staticmethod
    def _delete(collection: str, row_id: int) -> dict[str, Any]:
        return {"op": "delete", "collection": collection, "id": row_id}

    # -------------------------
    # Settings
    # -------------------------

    def get_settings(self) -> BrandSettings:
        with self._lock:
            return BrandSettings(**self._settings)

    def update_settings(self, fields: dict[str, Any]) -> BrandSettings:
        with self._lock:
            record = {**self._settings, **pick(fields, SETTINGS_FIELDS), "id": 1}
            self._commit([self._put("settings", record)])
            return BrandSettings(**record)

    # -------------------------
    # Catalog
    # -------------------------

    def _sorted_categories(self, include_hidden: bool) -> List[dict]:
        rows = [row for row in self._rows["categories"].values() if include_hidden or not row["hidden"]]
        return sorted(rows, key=lambda row: (row["sort_order"], row["id"]))

    def list_categories(self, *, include_hidden: bool = True) -> List[Category]:
        with self._lock:
            return [_load(Category, row) for row in self._sorted_categories(include_hidden)]

    def get_category(self, category_id: int) -> Optional[Category]:
        with self._lock:
            row = self._rows["categories"].get(category_id)
            return _load(Category, row) if row else None

    def create_category(self, fields: dict[str, Any]) -> Category:
        with self._lock:
            data = clean_category_fields(fields, creating=True)
            taken = {row["key"] for row in self._rows["categories"].values()}
            data["key"] = unique_key(data.get("key") or data["name"], taken)
            record = _dump(Category(id=_next_id(self._rows["categories"]), **data))
            self._commit([self._put("categories", record)])
            return _load(Category, record)

    def update_category(self, category_id: int, fields: dict[str, Any]) -> bool:
        with self._lock:
            current = self._rows["categories"].get(category_id)
            if current is None:
                return False
            updates = clean_category_fields(fields)
            if updates.get("key") and updates["key"] != current["key"]:
                taken = {
                    row["key"] for row in self._rows["categories"].values() if row["id"] != category_id
                }
                updates["key"] = unique_key(updates["key"], taken)
            self._commit([self._put("categories", {**current, **updates})])
            return True

    def delete_category(self, category_id: int) -> bool:
        with self._lock:
            if category_id not in self._rows["categories"]:
                return False
            changes = [
                self._delete("items", row["id"])
                for row in self._rows["items"].values()
                if row["category_id"] == category_id
            ]
            changes.append(self._delete("categories", category_id))
            self._commit(changes)
            return True

    def list_items(self, category_id: Optional[int] = None, *, include_hidden: bool = True) -> List[Item]:
        with self._lock:
            visible = [row for row in self._rows["items"].values() if include_hidden or not row["hidden"]]
            if category_id is not None:
                rows = sorted(
                    (row for row in visible if row["category_id"] == category_id),
                    key=lambda row: (row["sort_order"], row["id"]),
                )
            else:
                categories = self._rows["categories"]
                rows = sorted(
                    (row for row in visible if row["category_id"] in categories),
                    key=lambda row: (
                        categories[row["category_id"]]["sort_order"],
                        row["category_id"],
                        row["sort_order"],
                        row["id"],
                    ),
                )
            return [_load(Item, row) for row in rows]

    def get_item(self, item_id: int) -> Optional[Item]:
        with self._lock:
            row = self._rows["items"].get(item_id)
            return _load(Item, row) if row else None

    def create_item(self, fields: dict[str, Any]) -> Item:
        with self._lock:
            data = clean_item_fields(fields, creating=True)
            self._require_category(data["category_id"])
            record = _dump(Item(id=_next_id(self._rows["items"]), **data))
            self._commit([self._put("items", record)])
            return _load(Item, record)

    def update_item(self, item_id: int, fields: dict[str, Any]) -> bool:
        with self._lock:
            current = self._rows["items"].get(item_id)
            if current is None:
                return False
            updates = clean_item_fields(fields)
            if "category_id" in updates:
                self._require_category(updates["category_id"])
            self._commit([self._put("items", {**current, **updates})])
            return True

    def delete_item(self, item_id: int) -> bool:
        with self._lock:
            if item_id not in self._rows["items"]:
                return False
            self._commit([self._delete("items", item_id)])
            return True

    def _require_category(self, category_id: int) -> None:
        if category_id not in self._rows["categories"]:
            raise ValidationError(f"Unknown category {category_id}")

    # -------------------------
    # Tables
    # -------------------------

    def list_tables(self) -> List[DiningTable]:
        with self._lock:
            rows = self._rows["tables"]
            return [_load(DiningTable, rows[key]) for key in sorted(rows)]

    def get_table_by_token(self, token: str) -> Optional[DiningTable]:
        with self._lock:
            for row in self._rows["tables"].values():
                if row["token"] == token:
                    return _load(DiningTable, row)
            return None

    def create_table(self, number: str, token: str) -> DiningTable:
        with self._lock:
            for row in self._rows["tables"].values():
                if row["number"] == number or row["token"] == token:
                    raise ValidationError(f"Table {number} already exists")
            record = _dump(DiningTable(id=_next_id(self._rows["tables"]), number=number, token=token))
            self._commit([self._put("tables", record)])
            return _load(DiningTable, record)

    # -------------------------
    # Orders
    # -------------------------

    def insert_order(self, order: Order, lines: Sequence[OrderItem]) -> Order:
        with self._lock:
            order.id = _next_id(self._rows["orders"])
            order_record = _dump(order)
            changes = [self._put("orders", order_record)]
            next_line_id = _next_id(self._rows["order_items"])
            for offset, line in enumerate(lines):
                line.id = next_line_id + offset
                line.order_id = order.id
                changes.append(self._put("order_items", _dump(line)))
            # One journal entry, so the order and its lines land together.
            self._commit(changes)
            return _load(Order, order_record)

    def get_order(self, order_id: int) -> Optional[Order]:
        with self._lock:
            row = self._rows["orders"].get(order_id)
            return _load(Order, row) if row else None

    def list_orders(self, limit: int = 200) -> List[Order]:
        with self._lock:
            orders = [_load(Order, row) for row in self._rows["orders"].values()]
        orders.sort(key=lambda order: (order.created_at, order.id), reverse=True)
        return orders[:limit]

    def list_order_items(self, order_id: int) -> List[OrderItem]:
        with self._lock:
            rows = [row for row in self._rows["order_items"].values() if row["order_id"] == order_id]
            return [_load(OrderItem, row) for row in sorted(rows, key=lambda row: row["id"])]

    def set_status(self, order_id: int, status: str) -> bool:
        with self._lock:
            current = self._rows["orders"].get(order_id)
            if current is None:
                return False
            target = check_transition(current["status"], status)
            self._commit([self._put("orders", {**current, "status": target.value})])
            return True

    def count_orders(self, status: str) -> int:
        with self._lock:
            return sum(1 for row in self._rows["orders"].values() if row["status"] == status)

    def total_sales(self) -> float:
        with self._lock:
            total = sum(row["total"] for row in self._rows["orders"].values() if row["status"] in SOLD_STATUSES)
        return round(total, 2)

    def top_items(self, limit: int = 20) -> List[dict]:
        with self._lock:
            sold = {key for key, row in self._rows["orders"].items() if row["status"] in SOLD_STATUSES}
            grouped: dict[tuple, dict] = {}
            for row in self._rows["order_items"].values():
                if row["order_id"] not in sold:
                    continue
                entry = grouped.setdefault(
                    (row["item_id"], row["name"]),
                    {"item_id": row["item_id"], "name": row["name"], "qty": 0, "sales": 0.0},
                )
                entry["qty"] += row["quantity"]
                entry["sales"] += row["quantity"] * row["price"]
        for entry in grouped.values():
            entry["sales"] = round(entry["sales"], 2)
        ranked = sorted(grouped.values(), key=lambda entry: (-entry["sales"], entry["item_id"]))
        return ranked[:limit]
