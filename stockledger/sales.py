"""Per-user sales list backed by the Sales table."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, Optional

from .database import (
    DatabaseError,
    DatabaseManager,
    Signal,
    UserNotSetError,
    _now_to_sql,
    _parse_datetime,
)

logger = logging.getLogger(__name__)

_SELECT = (
    "SELECT s.id, s.item_id, i.name AS item_name, s.quantity, s.price, s.total_price, "
    "s.sale_date FROM Sales s JOIN Inventory i ON s.item_id = i.id "
    "WHERE s.user_id = :user_id"
)
_ORDER = " ORDER BY s.sale_date DESC"


@dataclass(frozen=True)
class SaleRecord:
    id: int
    item_id: int
    item_name: str
    quantity: int
    price: float
    total_price: float
    sale_date: Optional[datetime]

    @classmethod
    def _from_row(cls, row: sqlite3.Row) -> "SaleRecord":
        return cls(
            id=int(row["id"]),
            item_id=int(row["item_id"]),
            item_name=row["item_name"] or "",
            quantity=int(row["quantity"] or 0),
            price=float(row["price"] or 0.0),
            total_price=float(row["total_price"] or 0.0),
            sale_date=_parse_datetime(row["sale_date"]),
        )


class SalesModel:
    """The current user's sales, newest first, with running totals."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db
        self._sales: list[SaleRecord] = []
        self._user_id: Optional[int] = None
        self._total_sales = 0
        self._total_revenue = 0.0
        self.error_occurred = Signal()
        self.total_sales_changed = Signal()
        self.total_revenue_changed = Signal()

    @property
    def user_id(self) -> Optional[int]:
        return self._user_id

    @property
    def total_sales(self) -> int:
        return self._total_sales

    @property
    def total_revenue(self) -> float:
        return self._total_revenue

    @property
    def sales(self) -> tuple[SaleRecord, ...]:
        return tuple(self._sales)

    def set_user_id(self, user_id: Optional[int]) -> None:
        if user_id != self._user_id:
            self._user_id = user_id
            self.refresh()

    def add_sale(self, item_id: int, quantity: int, price: float) -> int:
        """Record a sale, take the quantity off the stock, and return the sale id."""
        self._require_user("add sale")
        try:
            connection = self._db.connection
        except DatabaseError as exc:
            raise self._fail("Failed to add sale", exc) from exc

        try:
            cursor = connection.execute(
                "INSERT INTO Sales (user_id, item_id, quantity, price, total_price, sale_date) "
                "VALUES (:user_id, :item_id, :quantity, :price, :total_price, :sale_date)",
                {
                    "user_id": self._user_id,
                    "item_id": item_id,
                    "quantity": quantity,
                    "price": price,
                    "total_price": price * quantity,
                    "sale_date": _now_to_sql(),
                },
            )
        except sqlite3.Error as exc:
            connection.rollback()
            raise self._fail("Failed to add sale", exc) from exc
        sale_id = int(cursor.lastrowid or 0)

        try:
            connection.execute(
                "UPDATE Inventory SET quantity = quantity - :sold_quantity "
                "WHERE id = :item_id AND user_id = :user_id",
                {"sold_quantity": quantity, "item_id": item_id, "user_id": self._user_id},
            )
        except sqlite3.Error as exc:
            connection.rollback()
            raise self._fail("Failed to update inventory", exc) from exc

        connection.commit()
        self.refresh()
        return sale_id

    def search_sales(self, search_text: str) -> None:
        """Show only sales whose item name contains the text."""
        self._require_user("search sales")
        self._load(
            "Failed to search sales",
            _SELECT + " AND i.name LIKE :search_text" + _ORDER,
            {"user_id": self._user_id, "search_text": f"%{search_text}%"},
        )

    def refresh(self) -> None:
        if self._user_id is None:
            logger.warning("User not set. Unable to refresh sales.")
            return
        self._load("Failed to fetch sales data", _SELECT + _ORDER, {"user_id": self._user_id})

    def __len__(self) -> int:
        return len(self._sales)

    def __iter__(self) -> Iterator[SaleRecord]:
        return iter(list(self._sales))

    def __getitem__(self, row: int) -> SaleRecord:
        return self._sales[row]

    def _require_user(self, action: str) -> None:
        if self._user_id is None:
            message = f"User not set. Unable to {action}."
            self.error_occurred.emit(message)
            raise UserNotSetError(message)

    def _fail(self, prefix: str, exc: Exception) -> DatabaseError:
        message = f"{prefix}: {exc}"
        self.error_occurred.emit(message)
        return DatabaseError(message)

    def _load(self, failure: str, sql: str, params: dict[str, Any]) -> None:
        try:
            rows = self._db.connection.execute(sql, params).fetchall()
        except (sqlite3.Error, DatabaseError) as exc:
            raise self._fail(failure, exc) from exc

        self._sales = [SaleRecord._from_row(row) for row in rows]
        self._total_revenue = sum(sale.total_price for sale in self._sales)
        self._total_sales = len(self._sales)
        self.total_sales_changed.emit()
        self.total_revenue_changed.emit()