"""SQLite storage for users, inventory and sales, plus a small signal helper."""

from __future__ import annotations

import contextlib
import sqlite3
from datetime import date, datetime
from typing import Any, Callable, Optional

DEFAULT_DATABASE = "BIMS3.db"

_TABLES = (
    (
        "Users",
        "CREATE TABLE IF NOT EXISTS Users ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "username TEXT UNIQUE NOT NULL, "
        "password_hash TEXT NOT NULL, "
        "email TEXT UNIQUE NOT NULL, "
        "created_at DATETIME DEFAULT CURRENT_TIMESTAMP)",
    ),
    (
        "Inventory",
        "CREATE TABLE IF NOT EXISTS Inventory ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "user_id INTEGER NOT NULL, "
        "name TEXT NOT NULL, "
        "category TEXT NOT NULL, "
        "quantity INTEGER NOT NULL DEFAULT 0, "
        "price REAL NOT NULL, "
        "supplier_name TEXT, "
        "supplier_address TEXT, "
        "expiry_date DATE, "
        "last_updated DATETIME DEFAULT CURRENT_TIMESTAMP, "
        "FOREIGN KEY(user_id) REFERENCES Users(id))",
    ),
    (
        "Sales",
        "CREATE TABLE IF NOT EXISTS Sales ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "user_id INTEGER NOT NULL, "
        "item_id INTEGER NOT NULL, "
        "quantity INTEGER NOT NULL, "
        "price REAL NOT NULL, "
        "total_price REAL NOT NULL, "
        "sale_date DATETIME DEFAULT CURRENT_TIMESTAMP, "
        "FOREIGN KEY(user_id) REFERENCES Users(id), "
        "FOREIGN KEY(item_id) REFERENCES Inventory(id))",
    ),
)

_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_inventory_user_id ON Inventory(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_sales_user_id ON Sales(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_sales_item_id ON Sales(item_id)",
)


class Signal:
    """A list of callbacks that are called, in order, on every emit."""

    def __init__(self) -> None:
        self._callbacks: list[Callable[..., Any]] = []

    def connect(self, callback: Callable[..., Any]) -> None:
        self._callbacks.append(callback)

    def disconnect(self, callback: Callable[..., Any]) -> None:
        """Remove a callback; raises ValueError if it was never connected."""
        self._callbacks.remove(callback)

    def emit(self, *args: Any) -> None:
        for callback in list(self._callbacks):
            callback(*args)


class DatabaseError(Exception):
    """A database operation failed."""


class UserNotSetError(RuntimeError):
    """An operation needs a current user but none is set."""


class DatabaseManager:
    """Owns the SQLite connection and the schema."""

    def __init__(self, path: str = DEFAULT_DATABASE) -> None:
        self.path = path
        self.error_occurred = Signal()
        self._connection: Optional[sqlite3.Connection] = None

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise DatabaseError("Database is not open")
        return self._connection

    def initialize(self) -> None:
        """Open the database file and create any missing tables and indexes."""
        self.close()
        try:
            connection = sqlite3.connect(str(self.path))
        except sqlite3.Error as exc:
            raise self._report(f"Failed to open database: {exc}") from exc
        connection.row_factory = sqlite3.Row

        for table, statement in _TABLES:
            try:
                connection.execute(statement)
            except sqlite3.Error as exc:
                connection.close()
                raise self._report(f"Failed to create {table} table: {exc}") from exc

        for statement in _INDEXES:
            with contextlib.suppress(sqlite3.Error):
                connection.execute(statement)
        connection.commit()
        self._connection = connection

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> "DatabaseManager":
        if self._connection is None:
            self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _report(self, message: str) -> DatabaseError:
        self.error_occurred.emit(message)
        return DatabaseError(message)


def _date_to_sql(value: Optional[date]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def _now_to_sql() -> str:
    return datetime.now().isoformat(timespec="milliseconds")


def _parse_date(value: Any) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None