from datetime import date, datetime
from decimal import Decimal

import pytest

from juice_pos.models import Bill, BillItem, MenuItem, PaymentMethod
from juice_pos.reporting import (
    daily_sales,
    history_range,
    hourly_histogram,
    payment_split,
    rolling_trend,
    sales_stats,
    shift_history_date,
    top_items,
    trend_window_start,
    visible_hours,
)

from tests.conftest import IST


def make_bill(number, amount, method=PaymentMethod.CASH, hour=10, day=date(2024, 3, 15), parcel="0"):
    return Bill(
        id=f"bill-{number}",
        bill_number=number,
        date_time=datetime(day.year, day.month, day.day, hour, 0, tzinfo=IST),
        business_date=day,
        subtotal=Decimal(amount) - Decimal(parcel),
        total_parcel_collected=Decimal(parcel),
        total_amount=Decimal(amount),
        payment_method=method,
        apply_parcel_to_all=False,
    )


def make_line(menu_item_id, quantity):
    return BillItem(
        id=f"line-{menu_item_id}-{quantity}",
        bill_id="bill-1",
        menu_item_id=menu_item_id,
        quantity=quantity,
        price_per_unit=Decimal("10"),
        line_subtotal=Decimal(10 * quantity),
        is_parcel=False,
        parcel_quantity=0,
        parcel_charge_per_unit=Decimal("5"),
        parcel_total=Decimal("0"),
        line_total=Decimal(10 * quantity),
    )


def test_sales_stats():
    bills = [
        make_bill(1, "100", parcel="10"),
        make_bill(2, "50", PaymentMethod.UPI),
    ]

    stats = sales_stats(bills)

    assert stats.sales == Decimal("150.00")
    assert stats.orders == 2
    assert stats.parcel_collected == Decimal("10.00")
    assert stats.average_bill == Decimal("75.00")
    assert stats.cash_total == Decimal("100.00")
    assert stats.upi_total == Decimal("50.00")


def test_sales_stats_without_bills():
    stats = sales_stats([])
    assert stats.orders == 0
    assert stats.average_bill == Decimal("0.00")


def test_daily_sales_only_counts_that_day():
    bills = [make_bill(1, "100"), make_bill(2, "40", day=date(2024, 3, 14))]
    assert daily_sales(bills, date(2024, 3, 15)) == Decimal("100.00")


def test_hourly_histogram_and_visible_hours():
    bills = [make_bill(1, "100", hour=9), make_bill(2, "20", hour=9), make_bill(3, "30", hour=22)]

    histogram = hourly_histogram(bills)

    assert len(histogram) == 24
    assert histogram[9] == Decimal("120.00")
    hours = [hour for hour, _ in visible_hours(histogram, current_hour=3)]
    assert hours == [0, 1, 2, 3, 9, 22]


def test_top_items_keeps_first_seen_on_ties():
    menu = [
        MenuItem(id="a", name="A", price=Decimal("10")),
        MenuItem(id="b", name="B", price=Decimal("10")),
        MenuItem(id="c", name="C", price=Decimal("10")),
    ]
    lines = [make_line("a", 3), make_line("b", 5), make_line("c", 3), make_line("a", 2)]

    assert top_items(lines, menu, limit=2) == [("A", 5), ("B", 5)]


def test_top_items_skips_deleted_menu_items():
    menu = [MenuItem(id="a", name="A", price=Decimal("10"))]
    assert top_items([make_line("a", 1), make_line("gone", 9)], menu) == [("A", 1)]


def test_rolling_trend_is_sorted_by_day():
    bills = [
        make_bill(1, "30", day=date(2024, 3, 15)),
        make_bill(2, "20", day=date(2024, 3, 10)),
        make_bill(3, "10", day=date(2024, 3, 15)),
    ]

    assert rolling_trend(bills) == [(date(2024, 3, 10), Decimal("20.00")), (date(2024, 3, 15), Decimal("40.00"))]
    assert trend_window_start(date(2024, 3, 31)) == date(2024, 3, 1)


def test_payment_split_omits_empty_methods():
    assert payment_split([make_bill(1, "80")]) == [(PaymentMethod.CASH, Decimal("80.00"))]
    assert payment_split([]) == []


@pytest.mark.parametrize(
    "filter_type, expected",
    [
        ("day", (date(2024, 2, 10), date(2024, 2, 10))),
        ("month", (date(2024, 2, 1), date(2024, 2, 29))),
        ("all", (None, None)),
    ],
)
def test_history_range(filter_type, expected):
    assert history_range(filter_type, date(2024, 2, 10)) == expected


def test_history_range_rejects_unknown_filter():
    with pytest.raises(ValueError):
        history_range("week", date(2024, 2, 10))


def test_shift_history_date():
    assert shift_history_date("day", date(2024, 3, 1), -1) == date(2024, 2, 29)
    assert shift_history_date("month", date(2024, 1, 31), -1) == date(2023, 12, 1)
    assert shift_history_date("month", date(2024, 12, 5), 1) == date(2025, 1, 1)
    assert shift_history_date("all", date(2024, 3, 1), 1) == date(2024, 3, 1)
