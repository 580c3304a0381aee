import sqlite3
from datetime import date, datetime

import pytest

from stockledger.database import (
    DatabaseError,
    DatabaseManager,
    Signal,
    _date_to_sql,
    _parse_date,
    _parse_datetime,
)


def _names(connection, kind):
    rows = connection.execute(
        "SELECT name FROM sqlite_master WHERE type = ?", (kind,)
    ).fetchall()
    return {row[0] for row in rows}


def test_signal_calls_connected_callbacks_in_order():
    signal = Signal()
    received = []
    signal.connect(lambda *args: received.append(("a", args)))
    signal.connect(lambda *args: received.append(("b", args)))
    signal.emit(1, "x")
    assert received == [("a", (1, "x")), ("b", (1, "x"))]


def test_signal_disconnect_stops_delivery():
    signal = Signal()
    dropped = []
    kept = []
    signal.connect(dropped.append)
    signal.connect(kept.append)
    signal.disconnect(dropped.append)
    signal.emit("delivered")
    assert kept == ["delivered"]
    assert len(dropped) == 0


def test_signal_disconnect_unknown_raises():
    with pytest.raises(ValueError):
        Signal().disconnect(print)


def test_initialize_creates_tables_and_indexes(tmp_path):
    manager = DatabaseManager(str(tmp_path / "store.db"))
    manager.initialize()
    try:
        assert {"Users", "Inventory", "Sales"} <= _names(manager.connection, "table")
        assert {
            "idx_inventory_user_id",
            "idx_sales_user_id",
            "idx_sales_item_id",
        } <= _names(manager.connection, "index")
    finally:
        manager.close()


def test_initialize_twice_keeps_data(tmp_path):
    path = str(tmp_path / "store.db")
    manager = DatabaseManager(path)
    manager.initialize()
    with manager.connection:
        manager.connection.execute(
            "INSERT INTO Users (username, password_hash, email) VALUES (?, ?, ?)",
            ("alice", "hash", "alice@example.com"),
        )
    manager.initialize()
    count = manager.connection.execute("SELECT COUNT(*) FROM Users").fetchone()[0]
    manager.close()
    assert count == 1


def test_connection_before_initialize_raises(tmp_path):
    manager = DatabaseManager(str(tmp_path / "store.db"))
    with pytest.raises(DatabaseError):
        manager.connection
    assert manager.is_open is False


def test_open_failure_raises_and_reports(tmp_path):
    manager = DatabaseManager(str(tmp_path / "missing" / "dir" / "store.db"))
    messages = []
    manager.error_occurred.connect(messages.append)
    with pytest.raises(DatabaseError) as info:
        manager.initialize()
    assert str(info.value).startswith("Failed to open database:")
    assert messages == [str(info.value)]
    assert manager.is_open is False


def test_context_manager_opens_and_closes(tmp_path):
    with DatabaseManager(str(tmp_path / "store.db")) as manager:
        assert manager.is_open is True
        connection = manager.connection
    assert manager.is_open is False
    with pytest.raises(sqlite3.ProgrammingError):
        connection.execute("SELECT 1")


def test_users_username_is_unique(tmp_path):
    with DatabaseManager(str(tmp_path / "store.db")) as manager:
        insert = "INSERT INTO Users (username, password_hash, email) VALUES (?, ?, ?)"
        manager.connection.execute(insert, ("bob", "hash", "bob@example.com"))
        with pytest.raises(sqlite3.IntegrityError):
            manager.connection.execute(insert, ("bob", "hash", "other@example.com"))


def test_date_round_trip():
    value = date(2024, 2, 29)
    assert _parse_date(_date_to_sql(value)) == value
    assert _date_to_sql(None) is None
    assert _parse_date(None) is None
    assert _parse_date("not a date") is None


def test_datetime_parsing_accepts_sqlite_timestamp():
    parsed = _parse_datetime("2024-05-06 07:08:09")
    assert parsed == datetime(2024, 5, 6, 7, 8, 9)
    assert _parse_datetime("") is None