# stockledger

stockledger keeps track of a small business's stock, its sales and the profit
they bring in. Everything lives in one SQLite file: user accounts, the
inventory each user owns, and the sales recorded against it. Every user sees
only their own inventory and sales.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
stockledger [--database FILE]
```

opens the SQLite database (`BIMS3.db` in the current directory unless
`--database` names another file), creates any missing tables, and starts a
line-oriented shell with the prompt `stockledger> `. If the database cannot be
opened, it prints `Failed to initialize database` and exits with status 1.

Arguments are split like a shell command line, so quote values that contain
spaces. The commands are:

| Command | What it does |
| --- | --- |
| `signup USERNAME PASSWORD EMAIL` | create an account and log in as it |
| `login USERNAME PASSWORD` | log in |
| `logout` | log out |
| `add NAME CATEGORY QUANTITY PRICE [SUPPLIER [ADDRESS [EXPIRY]]]` | add an inventory item; `EXPIRY` is `YYYY-MM-DD` |
| `update ID NAME CATEGORY QUANTITY PRICE [SUPPLIER [ADDRESS [EXPIRY]]]` | replace an item's fields |
| `delete ID` | delete an item |
| `sell ITEM_ID QUANTITY PRICE` | record a sale and take the quantity off the item's stock |
| `items [TEXT]` | list items, or only those whose name or category contains `TEXT` |
| `sales [TEXT]` | list sales newest first, or only those whose item name contains `TEXT` |
| `dashboard` | show totals, profit, margin, expiring items and profit per month |
| `quit` | leave the shell (end of input does the same) |

A command that fails prints `Error: ...` and the shell carries on.

## Using it from Python

`stockledger.app.Application` opens the database and wires the models
together: when a user signs up, logs in or logs out, the dashboard, inventory
and sales are switched to that user.

```python
from datetime import date

from stockledger.app import Application

app = Application("shop.db")
try:
    password = "password"
    app.users.signup("alice", password, "alice@example.com")

    app.inventory.add_item(
        "Rice 5kg", "Groceries", 40, 12.5,
        "Wholesale Foods", "1 Market Street", date(2030, 1, 31),
    )
    item = app.inventory[0]
    app.sales.add_sale(item.id, 3, 15.0)

    for item in app.inventory:
        print(item.name, item.quantity)

    app.dashboard.refresh()
    print(app.dashboard.gross_profit, app.dashboard.profit_margin)
finally:
    app.close()
```

The pieces can also be used on their own:

- `stockledger.database.DatabaseManager(path)` owns the connection.
  `initialize()` opens the file and creates the `Users`, `Inventory` and
  `Sales` tables; `close()` closes it. Used as a context manager it
  initializes on entry if not yet open and closes on exit.
- `stockledger.inventory.InventoryModel(db)` holds the current user's items
  as `InventoryItem` records. `set_user_id()` picks the user and reloads;
  `add_item()` returns the new id; `update_item()`, `delete_item()`,
  `search_items()` and `refresh()` change or reload the list. It supports
  `len()`, iteration and indexing, and has `low_stock_items` (items with
  fewer than 10 units), `total_cost` (quantity × price over all items) and
  `low_stock_items_list()`.
- `stockledger.sales.SalesModel(db)` holds the current user's sales as
  `SaleRecord` records, newest first. `add_sale()` inserts the sale and
  lowers the item's quantity in one transaction and returns the sale id; it
  does not check that enough stock is there. It has `total_sales` and
  `total_revenue`.
- `stockledger.users.UserModel(db, inventory, sales)` provides `signup()`,
  `login()` and `logout()`, and `is_logged_in`, `current_user` and
  `current_user_id`. Passwords are stored as SHA-256 hex digests
  (`hash_password()`). `login()` hands the user id to the inventory and sales
  models; `signup()` only logs in, so without `Application` call `login()` or
  `set_user_id()` afterwards.
- `stockledger.dashboard.UserDashboard(db, inventory, sales)` computes, on
  `refresh()`, the inventory and sales totals, total cost, gross profit
  (revenue minus inventory value), profit margin in percent (0 when there is
  no revenue), the ten most recent activities (`Activity`), the low-stock
  list, profit per month for the last six months with sales
  (`MonthlyProfit`, oldest first), and the number of items expiring between
  today and 30 days from now.

## Errors and notifications

Operations that cannot be carried out raise exceptions:

- `DatabaseError` when the database is not open or refuses a statement
  (for example an e-mail address that is already taken);
- `UserNotSetError` when items or sales are changed or searched, or the
  dashboard refreshed, before a user is set;
- `AuthenticationError` for a wrong username or password, or a username that
  already exists;
- `ValueError` when `signup()` is given an empty field.

`refresh()` on the inventory or sales model without a user only logs a
warning.

Models also announce changes through `Signal` objects, such as
`error_occurred`, `item_near_expiry`, `total_sales_changed` or
`login_status_changed`. Call `connect(callback)` to be notified and
`disconnect(callback)` to stop.

## What it does not do

There is no graphical interface and no charts: the command line is a plain
text shell, and the dashboard figures are printed as text or read from
Python.