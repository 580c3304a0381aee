"""Account sign-up, login and logout."""

from __future__ import annotations

import hashlib
import sqlite3
from typing import Optional

from .database import DatabaseError, DatabaseManager, Signal
from .inventory import InventoryModel
from .sales import SalesModel


class AuthenticationError(Exception):
    """Credentials were rejected or an account could not be created."""


def hash_password(password: str) -> str:
    """Return the lowercase hex SHA-256 digest of the UTF-8 password."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


class UserModel:
    """Tracks the logged-in user and hands the user id to the data models."""

    def __init__(self, db: DatabaseManager, inventory: InventoryModel, sales: SalesModel) -> None:
        self._db = db
        self._inventory = inventory
        self._sales = sales
        self._is_logged_in = False
        self._current_user = ""
        self._current_user_id: Optional[int] = None
        self.login_status_changed = Signal()
        self.login_successful = Signal()
        self.error_occurred = Signal()

    @property
    def is_logged_in(self) -> bool:
        return self._is_logged_in

    @property
    def current_user(self) -> str:
        return self._current_user

    @property
    def current_user_id(self) -> Optional[int]:
        return self._current_user_id

    def login(self, username: str, password: str) -> int:
        """Log in and return the user's id; raise AuthenticationError on bad credentials."""
        try:
            row = (
                self._db.connection.execute(
                    "SELECT id, password_hash FROM Users WHERE username = :username",
                    {"username": username},
                ).fetchone()
            )
        except (sqlite3.Error, DatabaseError) as exc:
            raise self._database_error(f"Database error: {exc}") from exc

        if row is not None and row["password_hash"] == hash_password(password):
            self._is_logged_in = True
            self._current_user = username
            self._current_user_id = int(row["id"])
            self._inventory.set_user_id(self._current_user_id)
            self._sales.set_user_id(self._current_user_id)
            self.login_status_changed.emit()
            self.login_successful.emit()
            return self._current_user_id

        message = "Invalid username or password"
        self.error_occurred.emit(message)
        raise AuthenticationError(message)

    def signup(self, username: str, password: str, email: str) -> int:
        """Create an account, log it in and return its id."""
        if not username or not password or not email:
            message = "All fields must be filled"
            self.error_occurred.emit(message)
            raise ValueError(message)

        try:
            connection = self._db.connection
            existing = connection.execute(
                "SELECT username FROM Users WHERE username = :username",
                {"username": username},
            ).fetchone()
        except (sqlite3.Error, DatabaseError) as exc:
            raise self._database_error(f"Database error: {exc}") from exc

        if existing is not None:
            message = "Username already exists. Please choose a different username."
            self.error_occurred.emit(message)
            raise AuthenticationError(message)

        try:
            with connection:
                cursor = connection.execute(
                    "INSERT INTO Users (username, password_hash, email) "
                    "VALUES (:username, :password_hash, :email)",
                    {
                        "username": username,
                        "password_hash": hash_password(password),
                        "email": email,
                    },
                )
        except sqlite3.Error as exc:
            raise self._database_error(f"Failed to create user: {exc}") from exc

        self._is_logged_in = True
        self._current_user = username
        self._current_user_id = int(cursor.lastrowid or 0)
        self.login_status_changed.emit()
        self.login_successful.emit()
        return self._current_user_id

    def logout(self) -> None:
        self._is_logged_in = False
        self._current_user = ""
        self._current_user_id = None
        self.login_status_changed.emit()

    def _database_error(self, message: str) -> DatabaseError:
        self.error_occurred.emit(message)
        return DatabaseError(message)