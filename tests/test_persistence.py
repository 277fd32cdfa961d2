from datetime import date
from decimal import Decimal

import pytest

from juice_pos.billing import build_bill_rows
from juice_pos.errors import BackendError, DuplicateNameError
from juice_pos.models import OrderLine, PaymentMethod
from juice_pos.persistence import SqliteBackend

from tests.conftest import make_item


def _bill_rows(backend):
    item = backend.insert("menu_items", {"name": "Orange Juice", "price": Decimal("60"), "is_active": True})
    line = OrderLine(make_item(item["id"], item["name"], item["price"]), quantity=2)
    return build_bill_rows([line], PaymentMethod.CASH, False, Decimal("5"))


def test_insert_fills_id_and_created_at(backend, clock):
    row = backend.insert("categories", {"name": "Juices", "display_order": 1})

    assert len(row["id"]) == 32
    assert row["created_at"] == clock().isoformat()


def test_bill_numbers_are_sequential(backend):
    bill_row, item_rows = _bill_rows(backend)

    first, _ = backend.insert_bill(bill_row, item_rows)
    second, items = backend.insert_bill(bill_row, item_rows)

    assert (first["bill_number"], second["bill_number"]) == (1, 2)
    assert items[0]["bill_id"] == second["id"]


def test_bill_gets_business_date_from_cutover(tmp_path, feed, clock):
    clock.moment = clock.moment.replace(hour=1)
    late = SqliteBackend(tmp_path / "late.db", feed, clock=clock, cutover_hour=3)
    late.bootstrap_schema()

    bill, _ = late.insert_bill(*_bill_rows(late))

    assert bill["business_date"] == date(2024, 3, 14).isoformat()


def test_failed_item_rolls_back_whole_bill(backend):
    bill_row, item_rows = _bill_rows(backend)
    broken = [{key: value for key, value in item_rows[0].items() if key != "line_total"}]

    with pytest.raises(BackendError):
        backend.insert_bill(bill_row, [*item_rows, *broken])

    assert backend.select("bills") == []
    assert backend.select("bill_items") == []


def test_duplicate_category_name(backend):
    backend.insert("categories", {"name": "Juices", "display_order": 1})

    with pytest.raises(DuplicateNameError, match="Category already exists"):
        backend.insert("categories", {"name": "Juices", "display_order": 2})


def test_bills_cannot_be_edited_or_deleted(backend):
    bill, _ = backend.insert_bill(*_bill_rows(backend))

    with pytest.raises(BackendError):
        backend.update("bills", bill["id"], {"total_amount": Decimal("1")})
    with pytest.raises(BackendError):
        backend.delete("bills", bill["id"])


def test_update_missing_row(backend):
    with pytest.raises(BackendError, match="not found"):
        backend.update("categories", "nope", {"name": "Other"})


def test_select_filters_and_order(backend):
    for order, name in enumerate(["Smoothies", "Juices", "Mocktails"], start=1):
        backend.insert("categories", {"name": name, "display_order": order})

    rows = backend.select("categories", [("display_order", "gte", 2)], order_by="name", descending=True)

    assert [row["name"] for row in rows] == ["Mocktails", "Juices"]
    assert backend.select("categories", [("id", "in", [])]) == []


def test_unknown_column_is_rejected(backend):
    with pytest.raises(BackendError, match="Unknown column"):
        backend.select("categories", [("nope", "eq", 1)])


def test_writes_publish_change_events(backend, feed):
    seen = []
    feed.subscribe("*", lambda event: seen.append((event.table, event.action)))

    row = backend.insert("categories", {"name": "Juices", "display_order": 1})
    backend.update("categories", row["id"], {"name": "Fresh Juices"})
    backend.delete("categories", row["id"])
    backend.insert_bill(*_bill_rows(backend))

    assert seen == [
        ("categories", "INSERT"),
        ("categories", "UPDATE"),
        ("categories", "DELETE"),
        ("menu_items", "INSERT"),
        ("bills", "INSERT"),
        ("bill_items", "INSERT"),
    ]


def test_failed_write_publishes_nothing(backend, feed):
    backend.insert("categories", {"name": "Juices", "display_order": 1})
    seen = []
    feed.subscribe("categories", seen.append)

    with pytest.raises(DuplicateNameError):
        backend.insert("categories", {"name": "Juices", "display_order": 2})

    assert seen == []


def test_poll_detects_other_connections(tmp_path, feed, clock):
    path = tmp_path / "shared.db"
    watcher = SqliteBackend(path, feed, clock=clock)
    other = SqliteBackend(path, type(feed)(), clock=clock)
    watcher.bootstrap_schema()

    assert watcher.poll_external_changes() is False
    assert watcher.poll_external_changes() is False

    seen = []
    feed.subscribe("bills", seen.append)
    other.insert("categories", {"name": "Juices", "display_order": 1})

    assert watcher.poll_external_changes() is True
    assert [event.action for event in seen] == ["EXTERNAL"]
    watcher.close()
