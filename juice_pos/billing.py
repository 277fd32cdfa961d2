"""Turning a cart into a persisted bill."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Protocol, Sequence

from juice_pos.config import PARCEL_CHARGE_PER_UNIT
from juice_pos.errors import BackendError, BillCreationError, EmptyOrderError
from juice_pos.models import Bill, OrderLine, PaymentMethod, to_money
from juice_pos.pricing import compute_line_totals

logger = logging.getLogger(__name__)


class BillWriter(Protocol):
    def insert_bill(
        self, bill_values: dict[str, Any], item_values: list[dict[str, Any]]
    ) -> tuple[dict[str, Any], list[dict[str, Any]]]: ...


def build_bill_rows(
    cart: Sequence[OrderLine],
    payment_method: PaymentMethod,
    apply_parcel_to_all: bool,
    parcel_charge_per_unit: Decimal = PARCEL_CHARGE_PER_UNIT,
) -> tuple[dict[str, Any], list[dict[str, Any]]]:
    """Compute the bill row and one item row per cart line."""
    charge = to_money(parcel_charge_per_unit)
    subtotal = to_money(0)
    parcel_collected = to_money(0)
    item_rows: list[dict[str, Any]] = []

    for line in cart:
        totals = compute_line_totals(line, charge, apply_parcel_to_all)
        subtotal += totals.subtotal
        parcel_collected += totals.parcel
        item_rows.append(
            {
                "menu_item_id": line.menu_item.id,
                "quantity": line.quantity,
                "price_per_unit": line.menu_item.price,
                "line_subtotal": totals.subtotal,
                "is_parcel": apply_parcel_to_all or line.is_parcel,
                "parcel_quantity": totals.parcel_quantity,
                "parcel_charge_per_unit": charge,
                "parcel_total": totals.parcel,
                "line_total": totals.total,
            }
        )

    bill_row = {
        "subtotal": subtotal,
        "total_parcel_collected": parcel_collected,
        "total_amount": subtotal + parcel_collected,
        "payment_method": PaymentMethod(payment_method),
        "apply_parcel_to_all": apply_parcel_to_all,
    }
    return bill_row, item_rows


def finalize_bill(
    backend: BillWriter,
    cart: Sequence[OrderLine],
    payment_method: PaymentMethod,
    apply_parcel_to_all: bool,
    parcel_charge_per_unit: Decimal = PARCEL_CHARGE_PER_UNIT,
) -> Bill:
    """
    Persist the cart as a bill and return it.

    Raises ``EmptyOrderError`` without touching the backend when the cart is
    empty, and ``BillCreationError`` when the write fails. The cart itself is
    never modified; clearing it is the caller's job once this returns.
    """
    if not cart:
        raise EmptyOrderError()

    bill_row, item_rows = build_bill_rows(cart, payment_method, apply_parcel_to_all, parcel_charge_per_unit)
    try:
        saved_bill, _ = backend.insert_bill(bill_row, item_rows)
    except BackendError as exc:
        logger.warning("bill_create_failed lines=%d error=%s", len(item_rows), exc)
        raise BillCreationError(exc) from exc

    bill = Bill.from_row(saved_bill)
    logger.info("bill_created number=%s total=%s method=%s", bill.bill_number, bill.total_amount, bill.payment_method.value)
    return bill
