"""Cached data access over the backend, invalidated by change events.

Each store owns a key prefix in a shared ``QueryCache``. Reads go through the
cache; a change event for one of the store's tables (or a mutation made
through the store) drops every cached result under that prefix so the next
read refetches.
"""

from __future__ import annotations

import logging
import threading
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Sequence, TypeVar

from juice_pos.billing import finalize_bill
from juice_pos.clock import business_date_for
from juice_pos.config import PARCEL_CHARGE_PER_UNIT, TREND_DAYS
from juice_pos.errors import ValidationError
from juice_pos.events import ChangeEvent, ChangeFeed
from juice_pos.models import Bill, BillItem, Category, MenuItem, OrderLine, PaymentMethod, to_money
from juice_pos.persistence import SqliteBackend
from juice_pos.reporting import history_range, trend_window_start

logger = logging.getLogger(__name__)

T = TypeVar("T")
Key = tuple[Any, ...]

UNCATEGORIZED = "Uncategorized"


class QueryCache:
    """Results of fetch functions, keyed by tuples.

    Fetches run outside the lock. A fetch that overlaps an ``invalidate``
    returns its value to the caller but does not store it, since it may have
    read the data before the change landed.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[Key, Any] = {}
        self._generation = 0

    def get(self, key: Key, fetch: Callable[[], T]) -> T:
        with self._lock:
            if key in self._entries:
                return self._entries[key]
            generation = self._generation
        value = fetch()
        with self._lock:
            if generation == self._generation:
                self._entries[key] = value
        return value

    def invalidate(self, prefix: Key) -> int:
        """Drop every entry whose key starts with ``prefix``."""
        with self._lock:
            self._generation += 1
            stale = [key for key in self._entries if key[: len(prefix)] == prefix]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.debug("cache_invalidated prefix=%s entries=%d", prefix, len(stale))
        return len(stale)

    def __contains__(self, key: Key) -> bool:
        with self._lock:
            return key in self._entries


def validate_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Please enter a name")
    return cleaned


def parse_price(raw: Any) -> Decimal:
    """Parse a typed price; it must be a number greater than zero."""
    try:
        price = to_money(str(raw).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("Please enter a valid price greater than 0") from None
    if not price.is_finite() or price <= 0:
        raise ValidationError("Please enter a valid price greater than 0")
    return price


class _Store:
    prefix: Key = ()
    tables: tuple[str, ...] = ()

    def __init__(self, backend: SqliteBackend, cache: QueryCache, feed: ChangeFeed) -> None:
        self.backend = backend
        self.cache = cache
        self._subscriptions = [feed.subscribe(table, self._on_change) for table in self.tables]

    def _on_change(self, event: ChangeEvent) -> None:
        self.invalidate()

    def invalidate(self) -> None:
        self.cache.invalidate(self.prefix)

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.close()


class MenuItemStore(_Store):
    prefix = ("menu-items",)
    tables = ("menu_items",)

    def menu_items(self) -> list[MenuItem]:
        return self.cache.get(
            self.prefix,
            lambda: [MenuItem.from_row(row) for row in self.backend.select("menu_items", order_by="name")],
        )

    def active_menu_items(self) -> list[MenuItem]:
        return [item for item in self.menu_items() if item.is_active]

    def add_menu_item(
        self,
        name: str,
        price: Any,
        color: str | None = None,
        image_url: str | None = None,
        category: str | None = None,
    ) -> MenuItem:
        values = {
            "name": validate_name(name),
            "price": parse_price(price),
            "is_active": True,
            "color": color,
            "image_url": image_url or None,
            "category": category or None,
        }
        row = self.backend.insert("menu_items", values)
        self.invalidate()
        return MenuItem.from_row(row)

    def update_menu_item(self, item_id: str, **changes: Any) -> MenuItem:
        if "name" in changes:
            changes["name"] = validate_name(changes["name"])
        if "price" in changes:
            changes["price"] = parse_price(changes["price"])
        for optional in ("image_url", "category", "color"):
            if optional in changes and not changes[optional]:
                changes[optional] = None
        row = self.backend.update("menu_items", item_id, changes)
        self.invalidate()
        return MenuItem.from_row(row)

    def set_active(self, item_id: str, active: bool) -> MenuItem:
        return self.update_menu_item(item_id, is_active=active)

    def delete_menu_item(self, item_id: str) -> None:
        self.backend.delete("menu_items", item_id)
        self.invalidate()

    @staticmethod
    def category_label(item: MenuItem, categories: Sequence[Category]) -> str:
        """The item's category, or "Uncategorized" when unset or since deleted."""
        if item.category and any(category.name == item.category for category in categories):
            return item.category
        return UNCATEGORIZED


class CategoryStore(_Store):
    prefix = ("categories",)
    tables = ("categories",)

    def categories(self) -> list[Category]:
        return self.cache.get(
            self.prefix,
            lambda: [Category.from_row(row) for row in self.backend.select("categories", order_by="display_order")],
        )

    def add_category(self, name: str) -> Category:
        """Append a category after the current last one."""
        cleaned = validate_name(name)
        existing = self.categories()
        display_order = max(category.display_order for category in existing) + 1 if existing else 1
        row = self.backend.insert("categories", {"name": cleaned, "display_order": display_order})
        self.invalidate()
        return Category.from_row(row)

    def update_category(self, category_id: str, name: str) -> Category:
        row = self.backend.update("categories", category_id, {"name": validate_name(name)})
        self.invalidate()
        return Category.from_row(row)

    def delete_category(self, category_id: str) -> None:
        # Menu items keep their label and fall back to "Uncategorized".
        self.backend.delete("categories", category_id)
        self.invalidate()


class BillStore(_Store):
    prefix = ("bills",)
    tables = ("bills", "bill_items")

    def __init__(
        self,
        backend: SqliteBackend,
        cache: QueryCache,
        feed: ChangeFeed,
        parcel_charge_per_unit: Decimal = PARCEL_CHARGE_PER_UNIT,
    ) -> None:
        super().__init__(backend, cache, feed)
        self.parcel_charge_per_unit = parcel_charge_per_unit

    def today(self) -> date:
        return business_date_for(self.backend.clock(), self.backend.cutover_hour)

    def bills_between(self, start: date | None, end: date | None) -> list[Bill]:
        """Bills whose business date falls in ``[start, end]``, newest first."""

        def fetch() -> list[Bill]:
            filters = []
            if start is not None:
                filters.append(("business_date", "gte", start))
            if end is not None:
                filters.append(("business_date", "lte", end))
            rows = self.backend.select("bills", filters, order_by="date_time", descending=True)
            return [Bill.from_row(row) for row in rows]

        return self.cache.get(("bills", "range", start, end), fetch)

    def today_bills(self) -> list[Bill]:
        today = self.today()
        return self.bills_between(today, today)

    def today_bill_items(self) -> list[BillItem]:
        today = self.today()

        def fetch() -> list[BillItem]:
            bill_ids = [bill.id for bill in self.today_bills()]
            return [BillItem.from_row(row) for row in self.backend.select("bill_items", [("bill_id", "in", bill_ids)])]

        return self.cache.get(("bills", "items-for-day", today), fetch)

    def last_30_days_bills(self) -> list[Bill]:
        today = self.today()
        start = trend_window_start(today, TREND_DAYS)

        def fetch() -> list[Bill]:
            rows = self.backend.select("bills", [("business_date", "gte", start)], order_by="business_date")
            return [Bill.from_row(row) for row in rows]

        return self.cache.get(("bills", "trend", start), fetch)

    def history_bills(self, filter_type: str, selected: date) -> list[Bill]:
        start, end = history_range(filter_type, selected)
        return self.bills_between(start, end)

    def bill_items_for(self, bill_id: str) -> list[BillItem]:
        return self.cache.get(
            ("bills", "items", bill_id),
            lambda: [BillItem.from_row(row) for row in self.backend.select("bill_items", [("bill_id", "eq", bill_id)])],
        )

    def create_bill(
        self,
        cart: Sequence[OrderLine],
        payment_method: PaymentMethod,
        apply_parcel_to_all: bool,
    ) -> Bill:
        try:
            return finalize_bill(self.backend, cart, payment_method, apply_parcel_to_all, self.parcel_charge_per_unit)
        finally:
            self.invalidate()


def open_stores(
    backend: SqliteBackend, feed: ChangeFeed
) -> tuple[MenuItemStore, CategoryStore, BillStore]:
    """Create the three stores over one shared cache."""
    cache = QueryCache()
    return MenuItemStore(backend, cache, feed), CategoryStore(backend, cache, feed), BillStore(backend, cache, feed)


