"""Per-user inventory list backed by the Inventory table."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Iterator, Optional

from .database import (
    DatabaseError,
    DatabaseManager,
    Signal,
    UserNotSetError,
    _date_to_sql,
    _now_to_sql,
    _parse_date,
    _parse_datetime,
)

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 10
EXPIRY_WARNING_DAYS = 30

_SELECT = (
    "SELECT id, name, category, quantity, price, supplier_name, supplier_address, "
    "expiry_date, last_updated FROM Inventory WHERE user_id = :user_id"
)


@dataclass(frozen=True)
class InventoryItem:
    id: int
    name: str
    category: str
    quantity: int
    price: float
    supplier_name: str
    supplier_address: str
    expiry_date: Optional[date]
    last_updated: Optional[datetime]

    @classmethod
    def _from_row(cls, row: sqlite3.Row) -> "InventoryItem":
        return cls(
            id=int(row["id"]),
            name=row["name"] or "",
            category=row["category"] or "",
            quantity=int(row["quantity"] or 0),
            price=float(row["price"] or 0.0),
            supplier_name=row["supplier_name"] or "",
            supplier_address=row["supplier_address"] or "",
            expiry_date=_parse_date(row["expiry_date"]),
            last_updated=_parse_datetime(row["last_updated"]),
        )


class InventoryModel:
    """The current user's inventory, with stock and expiry tracking."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db
        self._items: list[InventoryItem] = []
        self._user_id: Optional[int] = None
        self._low_stock_items = 0
        self._total_cost = 0.0
        self.error_occurred = Signal()
        self.low_stock_items_changed = Signal()
        self.total_cost_changed = Signal()
        self.item_near_expiry = Signal()

    @property
    def user_id(self) -> Optional[int]:
        return self._user_id

    @property
    def low_stock_items(self) -> int:
        return self._low_stock_items

    @property
    def total_cost(self) -> float:
        return self._total_cost

    @property
    def items(self) -> tuple[InventoryItem, ...]:
        return tuple(self._items)

    def set_user_id(self, user_id: Optional[int]) -> None:
        if user_id != self._user_id:
            self._user_id = user_id
            self.refresh()

    def add_item(
        self,
        name: str,
        category: str,
        quantity: int,
        price: float,
        supplier_name: str,
        supplier_address: str,
        expiry_date: Optional[date],
    ) -> int:
        """Insert an item for the current user and return its id."""
        self._require_user("add item")
        row_id = self._write(
            "Failed to add item",
            "INSERT INTO Inventory (user_id, name, category, quantity, price, supplier_name, "
            "supplier_address, expiry_date, last_updated) VALUES (:user_id, :name, :category, "
            ":quantity, :price, :supplier_name, :supplier_address, :expiry_date, :last_updated)",
            {
                "user_id": self._user_id,
                "name": name,
                "category": category,
                "quantity": quantity,
                "price": price,
                "supplier_name": supplier_name,
                "supplier_address": supplier_address,
                "expiry_date": _date_to_sql(expiry_date),
                "last_updated": _now_to_sql(),
            },
        )
        self.refresh()
        return row_id

    def update_item(
        self,
        item_id: int,
        name: str,
        category: str,
        quantity: int,
        price: float,
        supplier_name: str,
        supplier_address: str,
        expiry_date: Optional[date],
    ) -> None:
        self._require_user("update item")
        self._write(
            "Failed to update item",
            "UPDATE Inventory SET name = :name, category = :category, quantity = :quantity, "
            "price = :price, supplier_name = :supplier_name, supplier_address = :supplier_address, "
            "expiry_date = :expiry_date, last_updated = :last_updated "
            "WHERE id = :id AND user_id = :user_id",
            {
                "name": name,
                "category": category,
                "quantity": quantity,
                "price": price,
                "supplier_name": supplier_name,
                "supplier_address": supplier_address,
                "expiry_date": _date_to_sql(expiry_date),
                "last_updated": _now_to_sql(),
                "id": item_id,
                "user_id": self._user_id,
            },
        )
        self.refresh()

    def delete_item(self, item_id: int) -> None:
        self._require_user("delete item")
        self._write(
            "Failed to delete item",
            "DELETE FROM Inventory WHERE id = :id AND user_id = :user_id",
            {"id": item_id, "user_id": self._user_id},
        )
        self.refresh()

    def search_items(self, search_text: str) -> None:
        """Show only items whose name or category contains the text."""
        self._require_user("search items")
        self._load(
            "Failed to search items",
            _SELECT + " AND (name LIKE :search_text OR category LIKE :search_text)",
            {"user_id": self._user_id, "search_text": f"%{search_text}%"},
        )

    def refresh(self) -> None:
        if self._user_id is None:
            logger.warning("User not set. Unable to refresh inventory.")
            return
        self._load("Failed to fetch inventory data", _SELECT, {"user_id": self._user_id})

    def low_stock_items_list(self) -> list[dict[str, Any]]:
        return [
            {"id": item.id, "name": item.name, "quantity": item.quantity}
            for item in self._items
            if item.quantity < LOW_STOCK_THRESHOLD
        ]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[InventoryItem]:
        return iter(list(self._items))

    def __getitem__(self, row: int) -> InventoryItem:
        return self._items[row]

    def _require_user(self, action: str) -> None:
        if self._user_id is None:
            message = f"User not set. Unable to {action}."
            self.error_occurred.emit(message)
            raise UserNotSetError(message)

    def _fail(self, prefix: str, exc: Exception) -> DatabaseError:
        message = f"{prefix}: {exc}"
        self.error_occurred.emit(message)
        return DatabaseError(message)

    def _write(self, failure: str, sql: str, params: dict[str, Any]) -> int:
        try:
            connection = self._db.connection
            with connection:
                cursor = connection.execute(sql, params)
        except (sqlite3.Error, DatabaseError) as exc:
            raise self._fail(failure, exc) from exc
        return int(cursor.lastrowid or 0)

    def _load(self, failure: str, sql: str, params: dict[str, Any]) -> None:
        try:
            rows = self._db.connection.execute(sql, params).fetchall()
        except (sqlite3.Error, DatabaseError) as exc:
            raise self._fail(failure, exc) from exc

        self._items = [InventoryItem._from_row(row) for row in rows]
        total = sum(item.quantity * item.price for item in self._items)
        if total != self._total_cost:
            self._total_cost = total
            self.total_cost_changed.emit()
        self._check_low_stock_items()
        self._check_expiring_items()

    def _check_low_stock_items(self) -> None:
        count = sum(1 for item in self._items if item.quantity < LOW_STOCK_THRESHOLD)
        if count != self._low_stock_items:
            self._low_stock_items = count
            self.low_stock_items_changed.emit()

    def _check_expiring_items(self) -> None:
        limit = date.today() + timedelta(days=EXPIRY_WARNING_DAYS)
        for item in self._items:
            if item.expiry_date is not None and item.expiry_date <= limit:
                self.item_near_expiry.emit(item.id, item.name, item.expiry_date)