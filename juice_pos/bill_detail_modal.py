"""Read-only bill detail modal screen."""

from __future__ import annotations

from typing import Mapping, Sequence

from rich.table import Table
from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Static

from juice_pos.models import Bill, BillItem
from juice_pos.rendering import format_currency, format_date, format_date_time, format_payment_badge


def bill_items_table(items: Sequence[BillItem], names: Mapping[str, str]) -> Table:
    table = Table(expand=True, show_edge=False)
    table.add_column("Item")
    table.add_column("Qty", justify="right")
    table.add_column("Rate", justify="right")
    table.add_column("Parcel", justify="right")
    table.add_column("Total", justify="right")
    for item in items:
        parcel = f"{item.parcel_quantity} × {format_currency(item.parcel_charge_per_unit)}" if item.parcel_quantity else "-"
        table.add_row(
            Text(names.get(item.menu_item_id, "Deleted item")),
            str(item.quantity),
            format_currency(item.price_per_unit),
            parcel,
            format_currency(item.line_total),
        )
    return table


class BillDetailModal(ModalScreen[None]):
    BINDINGS = [
        ("escape", "close", "Close"),
        ("q", "close", "Close"),
        ("enter", "close", "Close"),
    ]

    CSS = """
    BillDetailModal {
        align: center middle;
        background: $background 60%;
    }

    #bill-dialog {
        width: 76;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #bill-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #bill-help {
        color: #dddddd;
        margin-top: 1;
    }
    """

    def __init__(self, bill: Bill, items: Sequence[BillItem], names: Mapping[str, str]) -> None:
        super().__init__()
        self.bill = bill
        self.items = list(items)
        self.names = names

    def compose(self) -> ComposeResult:
        bill = self.bill
        header = Text()
        header.append(f"Bill #{bill.bill_number}  ", style="bold")
        header.append_text(format_payment_badge(bill.payment_method))
        header.append(f"\n{format_date_time(bill.date_time)}  (business day {format_date(bill.business_date)})")
        if bill.apply_parcel_to_all:
            header.append("\nParcel applied to all items", style="yellow")

        totals = Text()
        totals.append(f"Subtotal        {format_currency(bill.subtotal)}\n")
        totals.append(f"Parcel charges  {format_currency(bill.total_parcel_collected)}\n")
        totals.append(f"Total           {format_currency(bill.total_amount)}", style="bold")

        with Container(id="bill-dialog"):
            yield Static(header, id="bill-title")
            yield Static(bill_items_table(self.items, self.names))
            yield Static(totals)
            yield Static("Esc/q/Enter close", id="bill-help")

    def action_close(self) -> None:
        self.dismiss()
