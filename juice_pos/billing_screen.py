"""Billing screen: pick items, set parcel options, take payment."""

from __future__ import annotations

import logging

from rich.markup import escape
from rich.text import Text
from textual import work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.widgets import Footer, Header, Static

from juice_pos import pricing
from juice_pos.errors import PosError
from juice_pos.live_screen import LiveScreen, NavBar, reports_errors, visible_rows, window_bounds
from juice_pos.models import Bill, MenuItem, OrderLine, PaymentMethod
from juice_pos.printer import print_bill_receipt
from juice_pos.rendering import format_currency, format_menu_label

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"


class BillingScreen(LiveScreen):
    """Order entry. The cart lives only here until payment creates a bill."""

    WATCHED_TABLES = ("menu_items", "categories")

    CSS = """
    #billing-layout {
        height: 1fr;
    }

    #menu-pane {
        width: 1fr;
        border: round $secondary;
        padding: 0 1;
    }

    #cart-pane {
        width: 1fr;
        border: round $primary;
        padding: 0 1;
    }

    #search-bar {
        border: heavy $secondary;
        padding: 0 1;
        height: 3;
    }

    #category-bar {
        height: 1;
        margin-bottom: 1;
    }

    #results, #cart-list {
        height: 1fr;
    }

    #totals {
        height: auto;
        border-top: solid $surface;
        padding-top: 1;
    }

    #billing-status {
        height: auto;
        color: #dddddd;
    }

    .pane-title {
        text-style: bold;
    }
    """

    BINDINGS = [
        ("up", "move_menu(-1)", "Prev item"),
        ("down", "move_menu(1)", "Next item"),
        ("enter", "add_selected", "Add"),
        ("tab", "cycle_category(1)", "Category"),
        ("shift+tab", "cycle_category(-1)", "Category"),
        ("backspace", "backspace_query", "Delete char"),
        ("escape", "cancel_search", "Stop search"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.cart: list[OrderLine] = []
        self.apply_parcel_to_all = False
        self.submitting = False
        self.searching = False
        self.search_query = ""
        self.category_index = 0
        self.menu_index = 0
        self.cart_index: int | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield NavBar("billing")
        with Horizontal(id="billing-layout"):
            with Vertical(id="menu-pane"):
                yield Static(id="search-bar")
                yield Static(id="category-bar")
                yield Static(id="results")
            with Vertical(id="cart-pane"):
                yield Static("Current Order", classes="pane-title")
                yield Static(id="cart-list")
                yield Static(id="totals")
                yield Static(id="billing-status")
        yield Footer()

    @reports_errors
    def on_key(self, event: Key) -> None:
        if not event.is_printable or not event.character:
            return

        if self.searching:
            self.search_query += event.character
            self.menu_index = 0
            self._refresh_menu()
            event.stop()
            return

        handlers = {
            "/": self._start_search,
            "j": lambda: self._move_cart_selection(1),
            "k": lambda: self._move_cart_selection(-1),
            "+": lambda: self._change_quantity(1),
            "=": lambda: self._change_quantity(1),
            "-": lambda: self._change_quantity(-1),
            "d": self._remove_selected_line,
            "p": self._toggle_selected_parcel,
            "]": lambda: self._shift_parcel_quantity(1),
            "[": lambda: self._shift_parcel_quantity(-1),
            "a": self._toggle_parcel_all,
            "x": self._clear_cart,
            "c": lambda: self.pay(PaymentMethod.CASH),
            "u": lambda: self.pay(PaymentMethod.UPI),
        }
        handler = handlers.get(event.character.lower())
        if handler is None:
            return
        handler()
        event.stop()

    @reports_errors
    def action_move_menu(self, delta: int) -> None:
        results = self.filtered_items()
        if not results:
            self.menu_index = 0
        else:
            self.menu_index = (self.menu_index + delta) % len(results)
        self._refresh_menu()

    @reports_errors
    def action_add_selected(self) -> None:
        results = self.filtered_items()
        if not results:
            return
        self.add_item(results[min(self.menu_index, len(results) - 1)])

    @reports_errors
    def action_cycle_category(self, delta: int) -> None:
        options = self._category_options()
        self.category_index = (self.category_index + delta) % len(options)
        self.menu_index = 0
        self._refresh_menu()

    @reports_errors
    def action_backspace_query(self) -> None:
        if not self.searching or not self.search_query:
            return
        self.search_query = self.search_query[:-1]
        self.menu_index = 0
        self._refresh_menu()

    @reports_errors
    def action_cancel_search(self) -> None:
        if not self.searching:
            return
        self.searching = False
        self.search_query = ""
        self.menu_index = 0
        self._refresh_menu()

    def filtered_items(self) -> list[MenuItem]:
        category = self._category_options()[self.category_index % len(self._category_options())]
        query = self.search_query.lower()
        return [
            item
            for item in self.app.menu_store.active_menu_items()
            if query in item.name.lower() and (category == ALL_CATEGORIES or item.category == category)
        ]

    def add_item(self, item: MenuItem) -> None:
        self.cart = pricing.add_to_cart(self.cart, item)
        self.cart_index = next(idx for idx, line in enumerate(self.cart) if line.menu_item.id == item.id)
        self._refresh_cart()

    def pay(self, method: PaymentMethod) -> None:
        if self.submitting:
            return
        if not self.cart:
            self.app.notify("Add items to the order first", severity="warning")
            return
        self.submitting = True
        logger.info("bill_submit method=%s lines=%d parcel_all=%s", method.value, len(self.cart), self.apply_parcel_to_all)
        self._refresh_cart()
        self._create_bill(list(self.cart), method, self.apply_parcel_to_all)

    @work(thread=True, exclusive=True, group="bill")
    def _create_bill(self, cart: list[OrderLine], method: PaymentMethod, apply_parcel_to_all: bool) -> None:
        try:
            bill = self.app.bill_store.create_bill(cart, method, apply_parcel_to_all)
        except PosError as exc:
            self.app.call_from_thread(self._bill_failed, exc)
            return
        self.app.call_from_thread(self._bill_created, bill)

    def _bill_created(self, bill: Bill) -> None:
        self.submitting = False
        self.cart = []
        self.cart_index = None
        self.apply_parcel_to_all = False
        self.app.notify(f"Bill #{bill.bill_number} generated successfully!")
        self._refresh_cart()
        if self.app.print_receipts:
            self._print_receipt(bill)

    def _bill_failed(self, exc: PosError) -> None:
        self.submitting = False
        self.app.notify(escape(str(exc)), severity="error")
        self._refresh_cart()

    @work(thread=True, group="print")
    def _print_receipt(self, bill: Bill) -> None:
        try:
            items = self.app.bill_store.bill_items_for(bill.id)
            names = {item.id: item.name for item in self.app.menu_store.menu_items()}
            print_bill_receipt(bill, items, names)
        except Exception as exc:
            logger.warning("receipt_print_failed bill=%s error=%r", bill.bill_number, exc)
            self.app.call_from_thread(
                self.app.notify, escape(f"Bill #{bill.bill_number} saved but print failed: {exc}"), severity="warning"
            )

    def _start_search(self) -> None:
        self.searching = True
        self.search_query = ""
        self.menu_index = 0
        self._refresh_menu()

    def _selected_line(self) -> OrderLine | None:
        if self.cart_index is None or not (0 <= self.cart_index < len(self.cart)):
            return None
        return self.cart[self.cart_index]

    def _move_cart_selection(self, delta: int) -> None:
        if not self.cart:
            return
        if self.cart_index is None:
            self.cart_index = 0 if delta > 0 else len(self.cart) - 1
        else:
            self.cart_index = (self.cart_index + delta) % len(self.cart)
        self._refresh_cart()

    def _change_quantity(self, delta: int) -> None:
        line = self._selected_line()
        if line is None:
            return
        self.cart = pricing.update_quantity(self.cart, line.menu_item.id, delta)
        self._refresh_cart()

    def _remove_selected_line(self) -> None:
        line = self._selected_line()
        if line is None:
            return
        self.cart = pricing.remove_from_cart(self.cart, line.menu_item.id)
        self._refresh_cart()

    def _toggle_selected_parcel(self) -> None:
        line = self._selected_line()
        if line is None:
            return
        self.cart = pricing.toggle_line_parcel(self.cart, line.menu_item.id, self.apply_parcel_to_all)
        self._refresh_cart()

    def _shift_parcel_quantity(self, delta: int) -> None:
        line = self._selected_line()
        if line is None:
            return
        self.cart = pricing.set_line_parcel_quantity(
            self.cart, line.menu_item.id, line.parcel_quantity + delta, self.apply_parcel_to_all
        )
        self._refresh_cart()

    def _toggle_parcel_all(self) -> None:
        self.apply_parcel_to_all = not self.apply_parcel_to_all
        self._refresh_cart()

    def _clear_cart(self) -> None:
        if self.submitting:
            return
        self.cart = []
        self.cart_index = None
        self._refresh_cart()

    def _category_options(self) -> list[str]:
        return [ALL_CATEGORIES, *(category.name for category in self.app.category_store.categories())]

    def refresh_view(self) -> None:
        # Menu edits elsewhere do not reprice lines already in the cart.
        self._refresh_menu()
        self._refresh_cart()

    def _refresh_menu(self) -> None:
        try:
            bar = self.query_one("#search-bar", Static)
            category_bar = self.query_one("#category-bar", Static)
            results_widget = self.query_one("#results", Static)
        except NoMatches:
            return

        if self.searching:
            bar.update(Text.assemble(("Search: ", "bold"), self.search_query, ("|", "blink")))
        else:
            bar.update("Press / to search. Enter adds the highlighted item.")

        options = self._category_options()
        self.category_index %= len(options)
        categories = Text()
        for idx, name in enumerate(options):
            label = "All" if name == ALL_CATEGORIES else name
            style = "bold reverse" if idx == self.category_index else "dim"
            categories.append(f" {label} ", style=style)
        category_bar.update(categories)

        results = self.filtered_items()
        if not results:
            results_widget.update("No items found")
            return
        if self.menu_index >= len(results):
            self.menu_index = 0

        start, end = window_bounds(len(results), visible_rows(results_widget), self.menu_index)
        lines = Text()
        if start > 0:
            lines.append("⋮\n", style="dim")
        for idx in range(start, end):
            if idx > start:
                lines.append("\n")
            item = results[idx]
            lines.append("➤ " if idx == self.menu_index else "  ")
            lines.append_text(format_menu_label(item))
            lines.append(f"  {format_currency(item.price)}", style="green")
        if end < len(results):
            lines.append("\n⋮", style="dim")
        results_widget.update(lines)

    def _refresh_cart(self) -> None:
        try:
            cart_widget = self.query_one("#cart-list", Static)
            totals_widget = self.query_one("#totals", Static)
            status_widget = self.query_one("#billing-status", Static)
        except NoMatches:
            return

        charge = self.app.bill_store.parcel_charge_per_unit
        if not self.cart:
            self.cart_index = None
            cart_widget.update("(no items yet)")
        else:
            if self.cart_index is None or self.cart_index >= len(self.cart):
                self.cart_index = len(self.cart) - 1
            start, end = window_bounds(len(self.cart), max(1, visible_rows(cart_widget) // 2), self.cart_index)
            lines = Text()
            for idx in range(start, end):
                line = self.cart[idx]
                totals = pricing.compute_line_totals(line, charge, self.apply_parcel_to_all)
                if idx > start:
                    lines.append("\n")
                lines.append("➤ " if idx == self.cart_index else "  ")
                lines.append_text(format_menu_label(line.menu_item))
                lines.append(f"  x{line.quantity}  {format_currency(totals.total)}")
                lines.append("\n    ")
                if self.apply_parcel_to_all:
                    lines.append(f"parcel {totals.parcel_quantity}/{line.quantity} (all)", style="dim")
                elif line.is_parcel:
                    lines.append(f"parcel {line.parcel_quantity}/{line.quantity}", style="yellow")
                else:
                    lines.append("dine in", style="dim")
            cart_widget.update(lines)

        totals = pricing.compute_cart_totals(self.cart, charge, self.apply_parcel_to_all)
        summary = Text()
        summary.append(f"Parcel for all: {'ON' if self.apply_parcel_to_all else 'off'}")
        summary.append(f"  ({format_currency(charge)} per unit)\n", style="dim")
        summary.append(f"Subtotal       {format_currency(totals.subtotal)}\n")
        summary.append(f"Parcel charges {format_currency(totals.parcel_charges)}\n")
        summary.append(f"Total          {format_currency(totals.total)}", style="bold")
        totals_widget.update(summary)

        if self.submitting:
            status_widget.update(Text("Creating bill...", style="bold yellow"))
        else:
            status_widget.update(
                Text(
                    "J/K select  +/- qty  D remove  P parcel  [/] parcel qty  A parcel all\n"
                    "C pay cash  U pay UPI  X clear"
                )
            )
