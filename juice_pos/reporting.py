"""Read-only sales summaries over fetched bills."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Sequence

from juice_pos.config import TOP_ITEMS_LIMIT, TREND_DAYS
from juice_pos.models import Bill, BillItem, MenuItem, PaymentMethod, to_money

HISTORY_FILTERS = ("day", "month", "all")


@dataclass(frozen=True)
class SalesStats:
    sales: Decimal
    orders: int
    parcel_collected: Decimal
    average_bill: Decimal
    cash_total: Decimal
    upi_total: Decimal


def _sum_amounts(bills: Iterable[Bill]) -> Decimal:
    return sum((bill.total_amount for bill in bills), to_money(0))


def daily_sales(bills: Iterable[Bill], business_date: date) -> Decimal:
    """Total sales for one business day."""
    return _sum_amounts(bill for bill in bills if bill.business_date == business_date)


def sales_stats(bills: Sequence[Bill]) -> SalesStats:
    """Headline numbers for a set of bills (today's, or a history filter)."""
    sales = _sum_amounts(bills)
    orders = len(bills)
    parcel = sum((bill.total_parcel_collected for bill in bills), to_money(0))
    average = to_money(sales / orders) if orders else to_money(0)
    return SalesStats(
        sales=sales,
        orders=orders,
        parcel_collected=parcel,
        average_bill=average,
        cash_total=_sum_amounts(b for b in bills if b.payment_method is PaymentMethod.CASH),
        upi_total=_sum_amounts(b for b in bills if b.payment_method is PaymentMethod.UPI),
    )


def hourly_histogram(bills: Iterable[Bill]) -> list[Decimal]:
    """Sales per hour of ``date_time``, 24 buckets."""
    buckets = [to_money(0) for _ in range(24)]
    for bill in bills:
        buckets[bill.date_time.hour] += bill.total_amount
    return buckets


def visible_hours(histogram: Sequence[Decimal], current_hour: int) -> list[tuple[int, Decimal]]:
    """Hours worth showing: any hour with sales, plus every hour up to now."""
    return [(hour, amount) for hour, amount in enumerate(histogram) if amount > 0 or hour <= current_hour]


def top_items(
    bill_items: Iterable[BillItem],
    menu_items: Iterable[MenuItem],
    limit: int = TOP_ITEMS_LIMIT,
) -> list[tuple[str, int]]:
    """
    Best sellers by quantity, as ``(name, quantity)`` pairs.

    Ties keep first-encountered order. Lines whose menu item has since been
    deleted are left out, since there is no name to show.
    """
    names = {item.id: item.name for item in menu_items}
    quantities: dict[str, int] = {}
    for line in bill_items:
        if line.menu_item_id not in names:
            continue
        quantities[line.menu_item_id] = quantities.get(line.menu_item_id, 0) + line.quantity
    ranked = sorted(quantities.items(), key=lambda pair: pair[1], reverse=True)
    return [(names[item_id], quantity) for item_id, quantity in ranked[:limit]]


def trend_window_start(today: date, days: int = TREND_DAYS) -> date:
    return today - timedelta(days=days)


def rolling_trend(bills: Iterable[Bill]) -> list[tuple[date, Decimal]]:
    """Sales per business date, oldest first."""
    totals: dict[date, Decimal] = {}
    for bill in bills:
        totals[bill.business_date] = totals.get(bill.business_date, to_money(0)) + bill.total_amount
    return sorted(totals.items())


def payment_split(bills: Iterable[Bill]) -> list[tuple[PaymentMethod, Decimal]]:
    """Sales per payment method, leaving out methods with nothing collected."""
    totals = {method: to_money(0) for method in PaymentMethod}
    for bill in bills:
        totals[bill.payment_method] += bill.total_amount
    return [(method, amount) for method, amount in totals.items() if amount > 0]


def history_range(filter_type: str, selected: date) -> tuple[date | None, date | None]:
    """Inclusive business-date bounds for a History filter."""
    if filter_type == "day":
        return selected, selected
    if filter_type == "month":
        last_day = calendar.monthrange(selected.year, selected.month)[1]
        return selected.replace(day=1), selected.replace(day=last_day)
    if filter_type == "all":
        return None, None
    raise ValueError(f"Unknown history filter {filter_type!r}")


def shift_history_date(filter_type: str, selected: date, step: int) -> date:
    """Move the History selection by whole days or whole months."""
    if filter_type == "month":
        month_index = selected.year * 12 + selected.month - 1 + step
        year, month = divmod(month_index, 12)
        return date(year, month + 1, 1)
    if filter_type == "day":
        return selected + timedelta(days=step)
    return selected
