"""Per-user summary of stock, sales, profit and expiring items."""

from __future__ import annotations

import contextlib
import logging
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Optional

from .database import (
    DatabaseError,
    DatabaseManager,
    Signal,
    UserNotSetError,
    _date_to_sql,
    _parse_date,
    _parse_datetime,
)
from .inventory import EXPIRY_WARNING_DAYS, InventoryModel
from .sales import SalesModel

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10
MONTHLY_PROFIT_MONTHS = 6

_RECENT_ACTIVITIES = (
    "SELECT 'Sale' AS type, s.sale_date AS date, i.name AS item_name, s.quantity, "
    "s.total_price FROM Sales s JOIN Inventory i ON s.item_id = i.id "
    "WHERE s.user_id = :user_id "
    "UNION ALL "
    "SELECT 'Inventory Update' AS type, i.last_updated AS date, i.name AS item_name, "
    "i.quantity, i.price FROM Inventory i WHERE i.user_id = :user_id "
    f"ORDER BY date DESC LIMIT {RECENT_ACTIVITY_LIMIT}"
)

_MONTHLY_PROFIT = (
    "SELECT strftime('%Y-%m', s.sale_date) AS month, SUM(s.total_price) AS revenue, "
    "SUM(i.price * s.quantity) AS cost FROM Sales s JOIN Inventory i ON s.item_id = i.id "
    "WHERE s.user_id = :user_id GROUP BY month ORDER BY month DESC "
    f"LIMIT {MONTHLY_PROFIT_MONTHS}"
)

_EXPIRING = (
    "SELECT id, name, expiry_date FROM Inventory WHERE user_id = :user_id "
    "AND expiry_date <= :expiry_date AND expiry_date >= :current_date"
)


@dataclass(frozen=True)
class Activity:
    """A sale or an inventory change, as shown in the recent activity list."""

    kind: str
    date: Optional[datetime]
    item_name: str
    quantity: int
    price: float


@dataclass(frozen=True)
class MonthlyProfit:
    month: str
    revenue: float
    cost: float
    profit: float


class UserDashboard:
    """Aggregates the inventory and sales of the current user."""

    def __init__(self, db: DatabaseManager, inventory: InventoryModel, sales: SalesModel) -> None:
        self._db = db
        self._inventory = inventory
        self._sales = sales
        self._user_id: Optional[int] = None
        self._total_inventory_items = 0
        self._low_stock_items = 0
        self._total_inventory_value = 0.0
        self._total_sales = 0
        self._total_revenue = 0.0
        self._total_cost = 0.0
        self._gross_profit = 0.0
        self._profit_margin = 0.0
        self._recent_activities: list[Activity] = []
        self._low_stock_items_list: list[dict[str, Any]] = []
        self._monthly_profit_data: list[MonthlyProfit] = []
        self._expiring_items = 0

        self.error_occurred = Signal()
        self.total_inventory_items_changed = Signal()
        self.low_stock_items_changed = Signal()
        self.total_inventory_value_changed = Signal()
        self.total_sales_changed = Signal()
        self.total_revenue_changed = Signal()
        self.total_cost_changed = Signal()
        self.gross_profit_changed = Signal()
        self.profit_margin_changed = Signal()
        self.recent_activities_changed = Signal()
        self.low_stock_items_list_changed = Signal()
        self.monthly_profit_data_changed = Signal()
        self.expiring_items_changed = Signal()
        self.item_near_expiry = Signal()

        inventory.item_near_expiry.connect(self.item_near_expiry.emit)

    @property
    def user_id(self) -> Optional[int]:
        return self._user_id

    @property
    def total_inventory_items(self) -> int:
        return self._total_inventory_items

    @property
    def low_stock_items(self) -> int:
        return self._low_stock_items

    @property
    def total_inventory_value(self) -> float:
        return self._total_inventory_value

    @property
    def total_sales(self) -> int:
        return self._total_sales

    @property
    def total_revenue(self) -> float:
        return self._total_revenue

    @property
    def total_cost(self) -> float:
        return self._total_cost

    @property
    def gross_profit(self) -> float:
        return self._gross_profit

    @property
    def profit_margin(self) -> float:
        return self._profit_margin

    @property
    def recent_activities(self) -> tuple[Activity, ...]:
        return tuple(self._recent_activities)

    @property
    def low_stock_items_list(self) -> list[dict[str, Any]]:
        return [dict(entry) for entry in self._low_stock_items_list]

    @property
    def monthly_profit_data(self) -> tuple[MonthlyProfit, ...]:
        return tuple(self._monthly_profit_data)

    @property
    def expiring_items(self) -> int:
        return self._expiring_items

    def set_user_id(self, user_id: Optional[int]) -> None:
        """Switch to another user (or none) and reload everything."""
        logger.debug("UserDashboard.set_user_id called with user_id: %s", user_id)
        if user_id == self._user_id:
            return
        self._user_id = user_id
        self._inventory.set_user_id(user_id)
        self._sales.set_user_id(user_id)
        # Clearing the user reports the missing user through error_occurred only.
        with contextlib.suppress(UserNotSetError):
            self.refresh()

    def refresh(self) -> None:
        """Reload both models and recompute every figure of the dashboard."""
        if self._user_id is None:
            message = "User not set. Unable to refresh dashboard."
            self.error_occurred.emit(message)
            raise UserNotSetError(message)

        self._inventory.refresh()
        self._sales.refresh()

        self._total_inventory_items = len(self._inventory)
        self._low_stock_items = self._inventory.low_stock_items
        self._total_inventory_value = self._inventory.total_cost
        self._total_sales = self._sales.total_sales
        self._total_revenue = self._sales.total_revenue

        self._calculate_profit_and_loss()
        self._update_recent_activities()
        self._update_low_stock_items()
        self._fetch_monthly_profit_data()
        self._check_expiring_items()

        for signal in (
            self.total_inventory_items_changed,
            self.low_stock_items_changed,
            self.total_inventory_value_changed,
            self.total_sales_changed,
            self.total_revenue_changed,
            self.total_cost_changed,
            self.gross_profit_changed,
            self.profit_margin_changed,
            self.expiring_items_changed,
        ):
            signal.emit()

        logger.debug(
            "Dashboard refreshed: items=%d low_stock=%d value=%.2f sales=%d revenue=%.2f "
            "cost=%.2f profit=%.2f margin=%.2f expiring=%d",
            self._total_inventory_items,
            self._low_stock_items,
            self._total_inventory_value,
            self._total_sales,
            self._total_revenue,
            self._total_cost,
            self._gross_profit,
            self._profit_margin,
            self._expiring_items,
        )

    def _calculate_profit_and_loss(self) -> None:
        self._total_cost = self._inventory.total_cost
        self._gross_profit = self._total_revenue - self._total_cost
        if self._total_revenue > 0:
            self._profit_margin = self._gross_profit / self._total_revenue * 100
        else:
            self._profit_margin = 0.0

    def _query(self, failure: str, sql: str, params: dict[str, Any]) -> list[sqlite3.Row]:
        try:
            return self._db.connection.execute(sql, params).fetchall()
        except (sqlite3.Error, DatabaseError) as exc:
            message = f"{failure}: {exc}"
            self.error_occurred.emit(message)
            raise DatabaseError(message) from exc

    def _update_recent_activities(self) -> None:
        rows = self._query(
            "Failed to fetch recent activities", _RECENT_ACTIVITIES, {"user_id": self._user_id}
        )
        self._recent_activities = [
            Activity(
                kind=row["type"] or "",
                date=_parse_datetime(row["date"]),
                item_name=row["item_name"] or "",
                quantity=int(row["quantity"] or 0),
                price=float(row["total_price"] or 0.0),
            )
            for row in rows
        ]
        self.recent_activities_changed.emit()

    def _update_low_stock_items(self) -> None:
        self._low_stock_items_list = self._inventory.low_stock_items_list()
        self.low_stock_items_list_changed.emit()

    def _fetch_monthly_profit_data(self) -> None:
        rows = self._query(
            "Failed to fetch monthly profit data", _MONTHLY_PROFIT, {"user_id": self._user_id}
        )
        data = []
        for row in reversed(rows):
            revenue = float(row["revenue"] or 0.0)
            cost = float(row["cost"] or 0.0)
            data.append(
                MonthlyProfit(
                    month=row["month"] or "", revenue=revenue, cost=cost, profit=revenue - cost
                )
            )
        self._monthly_profit_data = data
        self.monthly_profit_data_changed.emit()

    def _check_expiring_items(self) -> None:
        today = date.today()
        rows = self._query(
            "Failed to check expiring items",
            _EXPIRING,
            {
                "user_id": self._user_id,
                "expiry_date": _date_to_sql(today + timedelta(days=EXPIRY_WARNING_DAYS)),
                "current_date": _date_to_sql(today),
            },
        )
        self._expiring_items = len(rows)
        notified: set[int] = set()
        for row in rows:
            item_id = int(row["id"])
            if item_id not in notified:
                notified.add(item_id)
                self.item_near_expiry.emit(item_id, row["name"] or "", _parse_date(row["expiry_date"]))
        self.expiring_items_changed.emit()