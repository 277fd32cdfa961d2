"""Dashboard screen: today's numbers, hourly sales, best sellers, 30 day trend."""

from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from rich.table import Table
from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.widgets import Footer, Header, Static

from juice_pos.config import DASHBOARD_REFRESH_SECONDS, TOP_ITEMS_LIMIT
from juice_pos.live_screen import LiveScreen, NavBar
from juice_pos.models import Bill
from juice_pos.rendering import bar, format_currency, format_payment_badge
from juice_pos.reporting import (
    SalesStats,
    hourly_histogram,
    payment_split,
    rolling_trend,
    sales_stats,
    top_items,
    visible_hours,
)


def stats_table(stats: SalesStats) -> Table:
    table = Table(expand=True, show_header=False, show_edge=False, box=None)
    table.add_column("Label", style="dim")
    table.add_column("Value", justify="right", style="bold")
    table.add_row("Today's Sales", format_currency(stats.sales))
    table.add_row("Orders", str(stats.orders))
    table.add_row("Parcel Collected", format_currency(stats.parcel_collected))
    table.add_row("Average Bill", format_currency(stats.average_bill))
    return table


def hourly_table(bills: Sequence[Bill], current_hour: int) -> Table:
    rows = visible_hours(hourly_histogram(bills), current_hour)
    peak = max((amount for _, amount in rows), default=Decimal(0))
    table = Table(expand=True, show_edge=False, box=None)
    table.add_column("Hour", width=5)
    table.add_column("Sales", ratio=1)
    table.add_column("Amount", justify="right")
    for hour, amount in rows:
        table.add_row(f"{hour:02d}:00", Text(bar(amount, peak), style="green"), format_currency(amount))
    return table


def trend_table(bills: Sequence[Bill]) -> Table:
    points = rolling_trend(bills)
    peak = max((amount for _, amount in points), default=Decimal(0))
    table = Table(expand=True, show_edge=False, box=None)
    table.add_column("Day", width=6)
    table.add_column("Sales", ratio=1)
    table.add_column("Amount", justify="right")
    for day, amount in points:
        table.add_row(day.strftime("%d %b"), Text(bar(amount, peak), style="cyan"), format_currency(amount))
    return table


class DashboardScreen(LiveScreen):
    """Live sales overview for the current business day."""

    WATCHED_TABLES = ("bills", "bill_items", "menu_items")

    CSS = """
    #dashboard-layout {
        height: 1fr;
    }

    #dashboard-left, #dashboard-right {
        width: 1fr;
    }

    .dashboard-card {
        border: round $secondary;
        padding: 0 1;
        height: auto;
    }

    #hourly-card, #trend-card {
        height: 1fr;
    }

    #dashboard-updated {
        height: 1;
        color: #dddddd;
        padding: 0 1;
    }
    """

    def compose(self) -> ComposeResult:
        yield Header()
        yield NavBar("dashboard")
        with Horizontal(id="dashboard-layout"):
            with Vertical(id="dashboard-left"):
                yield Static(id="stats-card", classes="dashboard-card")
                yield Static(id="payment-card", classes="dashboard-card")
                yield Static(id="top-items-card", classes="dashboard-card")
            with Vertical(id="dashboard-right"):
                yield Static(id="hourly-card", classes="dashboard-card")
                yield Static(id="trend-card", classes="dashboard-card")
        yield Static(id="dashboard-updated")
        yield Footer()

    def after_mount(self) -> None:
        # Catches the business-day rollover and the hourly chart growing.
        self.set_interval(DASHBOARD_REFRESH_SECONDS, self.redraw)

    def refresh_view(self) -> None:
        try:
            stats_card = self.query_one("#stats-card", Static)
            payment_card = self.query_one("#payment-card", Static)
            top_card = self.query_one("#top-items-card", Static)
            hourly_card = self.query_one("#hourly-card", Static)
            trend_card = self.query_one("#trend-card", Static)
            updated = self.query_one("#dashboard-updated", Static)
        except NoMatches:
            return

        bill_store = self.app.bill_store
        bills = bill_store.today_bills()
        moment = bill_store.backend.clock()

        stats_card.update(stats_table(sales_stats(bills)))

        split = payment_split(bills)
        payments = Text()
        payments.append("Payment Split\n", style="bold")
        if not split:
            payments.append("No sales yet", style="dim")
        for idx, (method, amount) in enumerate(split):
            if idx:
                payments.append("   ")
            payments.append_text(format_payment_badge(method))
            payments.append(f" {format_currency(amount)}")
        payment_card.update(payments)

        best = top_items(bill_store.today_bill_items(), self.app.menu_store.menu_items(), TOP_ITEMS_LIMIT)
        top = Text()
        top.append(f"Top {TOP_ITEMS_LIMIT} Items Today\n", style="bold")
        if not best:
            top.append("No items sold yet", style="dim")
        for rank, (name, quantity) in enumerate(best, start=1):
            if rank > 1:
                top.append("\n")
            top.append(f"{rank}. {name}")
            top.append(f"  x{quantity}", style="green")
        top_card.update(top)

        hourly = Table.grid(expand=True)
        hourly.add_row(Text("Sales by Hour", style="bold"))
        hourly.add_row(hourly_table(bills, moment.hour))
        hourly_card.update(hourly)

        trend_bills = bill_store.last_30_days_bills()
        trend = Table.grid(expand=True)
        trend.add_row(Text("Last 30 Days", style="bold"))
        trend.add_row(trend_table(trend_bills) if trend_bills else Text("No sales in the last 30 days", style="dim"))
        trend_card.update(trend)

        updated.update(f"Last updated {moment.strftime('%I:%M:%S %p')}")
