import pytest

from stockledger.database import DatabaseError, DatabaseManager, UserNotSetError
from stockledger.inventory import InventoryModel
from stockledger.sales import SaleRecord, SalesModel


@pytest.fixture
def db(tmp_path):
    manager = DatabaseManager(str(tmp_path / "sales.db"))
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def inventory(db):
    model = InventoryModel(db)
    model.set_user_id(1)
    return model


@pytest.fixture
def sales(db):
    model = SalesModel(db)
    model.set_user_id(1)
    return model


def _add_item(inventory, name="Widget", quantity=20, price=2.5):
    return inventory.add_item(name, "Tools", quantity, price, "Acme", "1 Road", None)


def test_add_sale_without_user_raises(db):
    model = SalesModel(db)
    messages = []
    model.error_occurred.connect(messages.append)
    with pytest.raises(UserNotSetError):
        model.add_sale(1, 1, 1.0)
    assert messages == ["User not set. Unable to add sale."]


def test_search_without_user_raises(db):
    model = SalesModel(db)
    with pytest.raises(UserNotSetError, match="Unable to search sales"):
        model.search_sales("x")


def test_refresh_without_user_leaves_empty(db):
    model = SalesModel(db)
    model.refresh()
    assert len(model) == 0
    assert model.total_sales == 0


def test_add_sale_records_sale_and_reduces_stock(inventory, sales):
    item_id = _add_item(inventory, quantity=20, price=2.5)
    sale_id = sales.add_sale(item_id, 3, 4.0)

    assert len(sales) == 1
    record = sales[0]
    assert isinstance(record, SaleRecord)
    assert record.id == sale_id
    assert record.item_id == item_id
    assert record.item_name == "Widget"
    assert record.quantity == 3
    assert record.price == 4.0
    assert record.total_price == pytest.approx(3 * 4.0)
    assert record.sale_date is not None

    inventory.refresh()
    assert inventory[0].quantity == 20 - 3


def test_totals_follow_sales(inventory, sales):
    item_id = _add_item(inventory)
    sales.add_sale(item_id, 2, 5.0)
    sales.add_sale(item_id, 1, 7.0)
    assert sales.total_sales == len(sales) == 2
    assert sales.total_revenue == pytest.approx(sum(s.total_price for s in sales))


def test_signals_emitted_on_refresh(inventory, sales):
    item_id = _add_item(inventory)
    fired = []
    sales.total_sales_changed.connect(lambda: fired.append("sales"))
    sales.total_revenue_changed.connect(lambda: fired.append("revenue"))
    sales.add_sale(item_id, 1, 1.0)
    assert fired == ["sales", "revenue"]


def test_search_filters_by_item_name(inventory, sales):
    widget = _add_item(inventory, name="Widget")
    gadget = _add_item(inventory, name="Gadget")
    sales.add_sale(widget, 1, 1.0)
    sales.add_sale(gadget, 1, 2.0)

    sales.search_sales("adg")
    assert [s.item_name for s in sales] == ["Gadget"]
    assert sales.total_sales == 1
    assert sales.total_revenue == pytest.approx(2.0)

    sales.refresh()
    assert sorted(s.item_name for s in sales) == ["Gadget", "Widget"]


def test_refresh_orders_newest_first(db, inventory, sales):
    item_id = _add_item(inventory)
    with db.connection as conn:
        for stamp in ("2023-01-05T10:00:00", "2023-03-01T10:00:00", "2023-02-01T10:00:00"):
            conn.execute(
                "INSERT INTO Sales (user_id, item_id, quantity, price, total_price, sale_date) "
                "VALUES (1, ?, 1, 1.0, 1.0, ?)",
                (item_id, stamp),
            )
    sales.refresh()
    dates = [s.sale_date for s in sales]
    assert dates == sorted(dates, reverse=True)
    assert len(dates) == 3


def test_other_users_sales_are_hidden(db, inventory, sales):
    item_id = _add_item(inventory)
    sales.add_sale(item_id, 1, 1.0)
    other = SalesModel(db)
    other.set_user_id(2)
    assert len(other) == 0
    assert other.total_revenue == 0.0


def test_sale_of_deleted_item_disappears(inventory, sales):
    item_id = _add_item(inventory)
    sales.add_sale(item_id, 1, 1.0)
    inventory.delete_item(item_id)
    sales.refresh()
    assert len(sales) == 0


def test_failed_inventory_update_rolls_back(db, sales):
    with db.connection as conn:
        conn.execute("DROP TABLE Inventory")
    messages = []
    sales.error_occurred.connect(messages.append)
    with pytest.raises(DatabaseError, match="^Failed to update inventory"):
        sales.add_sale(1, 1, 1.0)
    count = db.connection.execute("SELECT COUNT(*) FROM Sales").fetchone()[0]
    assert count == 0
    assert messages[0].startswith("Failed to update inventory")


def test_add_sale_on_closed_database(db, sales):
    db.close()
    with pytest.raises(DatabaseError, match="^Failed to add sale"):
        sales.add_sale(1, 1, 1.0)


def test_iteration_matches_indexing(inventory, sales):
    item_id = _add_item(inventory)
    sales.add_sale(item_id, 1, 1.0)
    sales.add_sale(item_id, 2, 1.0)
    assert list(sales) == [sales[0], sales[1]]
    assert list(sales) == list(sales.sales)