"""History screen: browse past bills by day, month or all time."""

from __future__ import annotations

import logging
from datetime import date

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.widgets import Footer, Header, Static

from juice_pos.bill_detail_modal import BillDetailModal
from juice_pos.live_screen import LiveScreen, NavBar, reports_errors, visible_rows, window_bounds
from juice_pos.models import Bill
from juice_pos.rendering import format_currency, format_date, format_date_time, format_payment_badge
from juice_pos.reporting import HISTORY_FILTERS, sales_stats, shift_history_date

logger = logging.getLogger(__name__)

FILTER_LABELS = {"day": "Day", "month": "Month", "all": "All time"}


class HistoryScreen(LiveScreen):
    """Bills for the selected period, newest first, with a summary line."""

    WATCHED_TABLES = ("bills", "bill_items")

    CSS = """
    #history-filter {
        height: 1;
        padding: 0 1;
    }

    #history-summary {
        height: auto;
        border: round $secondary;
        padding: 0 1;
    }

    #history-pane {
        height: 1fr;
        border: round $primary;
        padding: 0 1;
    }

    #history-list {
        height: 1fr;
    }

    #history-help {
        height: auto;
        color: #dddddd;
        padding: 0 1;
    }
    """

    BINDINGS = [
        ("up", "move_cursor(-1)", "Prev bill"),
        ("down", "move_cursor(1)", "Next bill"),
        ("left", "shift_period(-1)", "Earlier"),
        ("right", "shift_period(1)", "Later"),
        ("enter", "open_selected", "Details"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.filter_type = "day"
        self.selected_date: date | None = None
        self.bill_index = 0

    def compose(self) -> ComposeResult:
        yield Header()
        yield NavBar("history")
        yield Static(id="history-filter")
        yield Static(id="history-summary")
        with Vertical(id="history-pane"):
            yield Static(id="history-list")
        yield Static(
            "F cycle Day/Month/All  ←/→ previous/next period  T today  ↑/↓ or J/K select  Enter details",
            id="history-help",
        )
        yield Footer()

    def after_mount(self) -> None:
        self.selected_date = self.app.bill_store.today()

    @reports_errors
    def on_key(self, event: Key) -> None:
        if not event.is_printable or not event.character:
            return
        handlers = {
            "f": self.action_cycle_filter,
            "t": self.action_jump_today,
            "j": lambda: self.action_move_cursor(1),
            "k": lambda: self.action_move_cursor(-1),
        }
        handler = handlers.get(event.character.lower())
        if handler is None:
            return
        handler()
        event.stop()

    def action_cycle_filter(self) -> None:
        idx = HISTORY_FILTERS.index(self.filter_type)
        self.filter_type = HISTORY_FILTERS[(idx + 1) % len(HISTORY_FILTERS)]
        self.bill_index = 0
        self.redraw()

    def action_jump_today(self) -> None:
        self.selected_date = self.app.bill_store.today()
        self.bill_index = 0
        self.redraw()

    def action_shift_period(self, step: int) -> None:
        self.selected_date = shift_history_date(self.filter_type, self._selected_date(), step)
        self.bill_index = 0
        self.redraw()

    @reports_errors
    def action_move_cursor(self, delta: int) -> None:
        bills = self.bills()
        if bills:
            self.bill_index = (self.bill_index + delta) % len(bills)
        self.redraw()

    @reports_errors
    def action_open_selected(self) -> None:
        bills = self.bills()
        if not bills:
            return
        bill = bills[min(self.bill_index, len(bills) - 1)]
        items = self.app.bill_store.bill_items_for(bill.id)
        names = {item.id: item.name for item in self.app.menu_store.menu_items()}
        logger.info("bill_opened bill=%s items=%d", bill.bill_number, len(items))
        self.app.push_screen(BillDetailModal(bill, items, names))

    def bills(self) -> list[Bill]:
        return self.app.bill_store.history_bills(self.filter_type, self._selected_date())

    def _selected_date(self) -> date:
        if self.selected_date is None:
            self.selected_date = self.app.bill_store.today()
        return self.selected_date

    def _period_label(self) -> str:
        selected = self._selected_date()
        if self.filter_type == "day":
            return format_date(selected)
        if self.filter_type == "month":
            return selected.strftime("%B %Y")
        return "Every bill"

    def refresh_view(self) -> None:
        try:
            filter_widget = self.query_one("#history-filter", Static)
            summary_widget = self.query_one("#history-summary", Static)
            list_widget = self.query_one("#history-list", Static)
        except NoMatches:
            return

        tabs = Text()
        for name in HISTORY_FILTERS:
            style = "bold reverse" if name == self.filter_type else "dim"
            tabs.append(f" {FILTER_LABELS[name]} ", style=style)
        tabs.append(f"   {self._period_label()}", style="bold")
        filter_widget.update(tabs)

        bills = self.bills()
        stats = sales_stats(bills)
        summary = Text()
        summary.append(f"Sales {format_currency(stats.sales)}", style="bold")
        summary.append(f"   Orders {stats.orders}")
        summary.append(f"   Parcel {format_currency(stats.parcel_collected)}")
        summary.append(f"   Cash {format_currency(stats.cash_total)}")
        summary.append(f"   UPI {format_currency(stats.upi_total)}")
        summary_widget.update(summary)

        if not bills:
            self.bill_index = 0
            list_widget.update("No bills for this period")
            return

        self.bill_index = min(self.bill_index, len(bills) - 1)
        start, end = window_bounds(len(bills), visible_rows(list_widget), self.bill_index)
        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")
        for idx in range(start, end):
            bill = bills[idx]
            if idx > start:
                lines.append("\n")
            lines.append("➤ " if idx == self.bill_index else "  ")
            lines.append(f"#{bill.bill_number:<5} ", style="bold")
            lines.append(f"{format_date_time(bill.date_time)}  ")
            lines.append_text(format_payment_badge(bill.payment_method))
            lines.append(f"  {format_currency(bill.total_amount)}", style="green")
            if bill.total_parcel_collected > 0:
                lines.append(f"  parcel {format_currency(bill.total_parcel_collected)}", style="yellow")
        if end < len(bills):
            lines.append("\n⋮", style="dim")
        list_widget.update(lines)
