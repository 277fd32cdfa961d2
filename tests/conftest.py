from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from juice_pos.events import ChangeFeed
from juice_pos.models import MenuItem
from juice_pos.persistence import SqliteBackend
from juice_pos.stores import open_stores

IST = timezone(timedelta(hours=5, minutes=30))


class FakeClock:
    """Settable clock; every call returns the current value."""

    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment

    def advance(self, **kwargs) -> None:
        self.moment += timedelta(**kwargs)


def make_item(item_id: str = "orange", name: str = "Orange Juice", price: str = "60") -> MenuItem:
    return MenuItem(id=item_id, name=name, price=Decimal(price))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 15, 10, 30, tzinfo=IST))


@pytest.fixture
def feed() -> ChangeFeed:
    return ChangeFeed()


@pytest.fixture
def backend(tmp_path, feed, clock):
    db = SqliteBackend(tmp_path / "pos.db", feed, clock=clock, cutover_hour=0)
    db.bootstrap_schema()
    yield db
    db.close()


@pytest.fixture
def stores(backend, feed):
    menu_store, category_store, bill_store = open_stores(backend, feed)
    yield menu_store, category_store, bill_store
    for store in (menu_store, category_store, bill_store):
        store.close()
