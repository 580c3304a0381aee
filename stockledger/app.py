"""The application wiring and a line-oriented shell to drive it."""

from __future__ import annotations

import argparse
import cmd
import logging
import shlex
import sys
from datetime import date
from typing import Optional

from .dashboard import UserDashboard
from .database import DEFAULT_DATABASE, DatabaseError, DatabaseManager, UserNotSetError
from .inventory import InventoryModel
from .sales import SalesModel
from .users import AuthenticationError, UserModel

logger = logging.getLogger(__name__)


class Application:
    """Opens the database and connects the models to each other."""

    def __init__(self, database_path: str = DEFAULT_DATABASE) -> None:
        self.db = DatabaseManager(database_path)
        self.db.initialize()
        self.inventory = InventoryModel(self.db)
        self.sales = SalesModel(self.db)
        self.users = UserModel(self.db, self.inventory, self.sales)
        self.dashboard = UserDashboard(self.db, self.inventory, self.sales)
        self.users.login_status_changed.connect(self._on_login_status_changed)

    def _on_login_status_changed(self) -> None:
        if self.users.is_logged_in:
            logger.debug("User logged in, setting user ID for dashboard")
            self.dashboard.set_user_id(self.users.current_user_id)
        else:
            logger.debug("User logged out, clearing dashboard")
            self.dashboard.set_user_id(None)

    def close(self) -> None:
        self.db.close()


def _args(line: str, minimum: int, maximum: int, usage: str) -> list[str]:
    parts = shlex.split(line)
    if not minimum <= len(parts) <= maximum:
        raise ValueError(f"usage: {usage}")
    return parts


def _item_fields(parts: list[str]) -> tuple:
    name, category, quantity, price, *rest = parts
    supplier_name = rest[0] if len(rest) > 0 else ""
    supplier_address = rest[1] if len(rest) > 1 else ""
    expiry = date.fromisoformat(rest[2]) if len(rest) > 2 else None
    return name, category, int(quantity), float(price), supplier_name, supplier_address, expiry


class _Shell(cmd.Cmd):
    prompt = "stockledger> "

    def __init__(self, app: Application, stdin, stdout) -> None:
        super().__init__(stdin=stdin, stdout=stdout)
        self.use_rawinput = False
        self.app = app

    def _say(self, text: str) -> None:
        self.stdout.write(text + "\n")

    def onecmd(self, line: str) -> bool:
        try:
            return bool(super().onecmd(line))
        except (DatabaseError, UserNotSetError, AuthenticationError, ValueError) as exc:
            self._say(f"Error: {exc}")
            return False

    def emptyline(self) -> bool:
        return False

    def default(self, line: str) -> None:
        self._say(f"Unknown command: {line.split()[0]}")

    def do_signup(self, line: str) -> None:
        """signup USERNAME PASSWORD EMAIL"""
        username, secret_text, email = _args(line, 3, 3, "signup USERNAME PASSWORD EMAIL")
        user_id = self.app.users.signup(username, secret_text, email)
        self._say(f"Logged in as {username} (id {user_id})")

    def do_login(self, line: str) -> None:
        """login USERNAME PASSWORD"""
        username, secret_text = _args(line, 2, 2, "login USERNAME PASSWORD")
        user_id = self.app.users.login(username, secret_text)
        self._say(f"Logged in as {username} (id {user_id})")

    def do_logout(self, line: str) -> None:
        """logout"""
        self.app.users.logout()
        self._say("Logged out")

    def do_add(self, line: str) -> None:
        """add NAME CATEGORY QUANTITY PRICE [SUPPLIER [ADDRESS [EXPIRY]]]"""
        parts = _args(line, 4, 7, "add NAME CATEGORY QUANTITY PRICE [SUPPLIER [ADDRESS [EXPIRY]]]")
        item_id = self.app.inventory.add_item(*_item_fields(parts))
        self._say(f"Added item {item_id}")

    def do_update(self, line: str) -> None:
        """update ID NAME CATEGORY QUANTITY PRICE [SUPPLIER [ADDRESS [EXPIRY]]]"""
        parts = _args(
            line, 5, 8, "update ID NAME CATEGORY QUANTITY PRICE [SUPPLIER [ADDRESS [EXPIRY]]]"
        )
        item_id = int(parts[0])
        self.app.inventory.update_item(item_id, *_item_fields(parts[1:]))
        self._say(f"Updated item {item_id}")

    def do_delete(self, line: str) -> None:
        """delete ID"""
        (item_id,) = _args(line, 1, 1, "delete ID")
        self.app.inventory.delete_item(int(item_id))
        self._say(f"Deleted item {item_id}")

    def do_sell(self, line: str) -> None:
        """sell ITEM_ID QUANTITY PRICE"""
        item_id, quantity, price = _args(line, 3, 3, "sell ITEM_ID QUANTITY PRICE")
        sale_id = self.app.sales.add_sale(int(item_id), int(quantity), float(price))
        self._say(f"Recorded sale {sale_id}")

    def do_items(self, line: str) -> None:
        """items [TEXT]"""
        text = line.strip()
        if text:
            self.app.inventory.search_items(text)
        else:
            if self.app.inventory.user_id is None:
                raise UserNotSetError("User not set. Unable to list items.")
            self.app.inventory.refresh()
        for item in self.app.inventory:
            expiry = item.expiry_date.isoformat() if item.expiry_date else "-"
            self._say(
                f"{item.id}\t{item.name}\t{item.category}\t{item.quantity}\t"
                f"{item.price:.2f}\t{expiry}"
            )

    def do_sales(self, line: str) -> None:
        """sales [TEXT]"""
        text = line.strip()
        if text:
            self.app.sales.search_sales(text)
        else:
            if self.app.sales.user_id is None:
                raise UserNotSetError("User not set. Unable to list sales.")
            self.app.sales.refresh()
        for sale in self.app.sales:
            when = sale.sale_date.isoformat(sep=" ") if sale.sale_date else "-"
            self._say(
                f"{sale.id}\t{sale.item_name}\t{sale.quantity}\t{sale.price:.2f}\t"
                f"{sale.total_price:.2f}\t{when}"
            )

    def do_dashboard(self, line: str) -> None:
        """dashboard"""
        d = self.app.dashboard
        d.refresh()
        self._say(f"Total inventory items: {d.total_inventory_items}")
        self._say(f"Low stock items: {d.low_stock_items}")
        self._say(f"Total inventory value: {d.total_inventory_value:.2f}")
        self._say(f"Total sales: {d.total_sales}")
        self._say(f"Total revenue: {d.total_revenue:.2f}")
        self._say(f"Total cost: {d.total_cost:.2f}")
        self._say(f"Gross profit: {d.gross_profit:.2f}")
        self._say(f"Profit margin: {d.profit_margin:.2f}%")
        self._say(f"Expiring items: {d.expiring_items}")
        for entry in d.monthly_profit_data:
            self._say(
                f"{entry.month}\trevenue {entry.revenue:.2f}\tcost {entry.cost:.2f}\t"
                f"profit {entry.profit:.2f}"
            )

    def do_quit(self, line: str) -> bool:
        """quit"""
        return True

    def do_EOF(self, line: str) -> bool:
        return True


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="stockledger", description="Inventory and sales ledger.")
    parser.add_argument("--database", default=DEFAULT_DATABASE, help="SQLite database file")
    args = parser.parse_args(argv)

    try:
        app = Application(args.database)
    except DatabaseError as exc:
        logger.critical("Failed to initialize database: %s", exc)
        print("Failed to initialize database", file=sys.stderr)
        return 1

    try:
        _Shell(app, sys.stdin, sys.stdout).cmdloop()
    finally:
        app.close()
    return 0