"""Cart pricing and cart state transitions.

Every function here is pure: carts are tuples/lists of frozen ``OrderLine``
values and each transition returns a new list.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Sequence

from juice_pos.models import CartTotals, LineTotals, MenuItem, OrderLine, to_money

Cart = Sequence[OrderLine]


def effective_parcel_quantity(line: OrderLine, apply_parcel_to_all: bool) -> int:
    """Units of a line that carry the parcel charge."""
    qty = line.quantity if apply_parcel_to_all else line.parcel_quantity
    return max(0, min(qty, line.quantity))


def compute_line_totals(
    line: OrderLine, parcel_charge_per_unit: Decimal, apply_parcel_to_all: bool
) -> LineTotals:
    parcel_qty = effective_parcel_quantity(line, apply_parcel_to_all)
    subtotal = to_money(line.menu_item.price * line.quantity)
    parcel = to_money(Decimal(parcel_charge_per_unit) * parcel_qty)
    return LineTotals(subtotal=subtotal, parcel_quantity=parcel_qty, parcel=parcel, total=subtotal + parcel)


def compute_cart_totals(cart: Cart, parcel_charge_per_unit: Decimal, apply_parcel_to_all: bool) -> CartTotals:
    subtotal = to_money(0)
    parcel_charges = to_money(0)
    for line in cart:
        totals = compute_line_totals(line, parcel_charge_per_unit, apply_parcel_to_all)
        subtotal += totals.subtotal
        parcel_charges += totals.parcel
    return CartTotals(subtotal=subtotal, parcel_charges=parcel_charges, total=subtotal + parcel_charges)


def find_line(cart: Cart, item_id: str) -> OrderLine | None:
    for line in cart:
        if line.menu_item.id == item_id:
            return line
    return None


def add_to_cart(cart: Cart, menu_item: MenuItem) -> list[OrderLine]:
    """Add one unit of a menu item, appending a new line when it is not in the cart yet."""
    if find_line(cart, menu_item.id) is None:
        return [*cart, OrderLine(menu_item=menu_item, quantity=1)]
    return update_quantity(cart, menu_item.id, 1)


def update_quantity(cart: Cart, item_id: str, delta: int) -> list[OrderLine]:
    """Shift a line's quantity; lines that drop to zero or below leave the cart."""
    updated: list[OrderLine] = []
    for line in cart:
        if line.menu_item.id != item_id:
            updated.append(line)
            continue
        new_qty = line.quantity + delta
        if new_qty <= 0:
            continue
        updated.append(replace(line, quantity=new_qty, parcel_quantity=min(line.parcel_quantity, new_qty)))
    return updated


def remove_from_cart(cart: Cart, item_id: str) -> list[OrderLine]:
    return [line for line in cart if line.menu_item.id != item_id]


def toggle_line_parcel(cart: Cart, item_id: str, apply_parcel_to_all: bool) -> list[OrderLine]:
    """Flip a line between dine-in and fully packed. Disabled while parcel-all is on."""
    if apply_parcel_to_all:
        return list(cart)
    updated: list[OrderLine] = []
    for line in cart:
        if line.menu_item.id == item_id:
            turning_on = not line.is_parcel
            line = replace(line, is_parcel=turning_on, parcel_quantity=line.quantity if turning_on else 0)
        updated.append(line)
    return updated


def set_line_parcel_quantity(cart: Cart, item_id: str, qty: int, apply_parcel_to_all: bool) -> list[OrderLine]:
    """Pack part of a line. Disabled while parcel-all is on."""
    if apply_parcel_to_all:
        return list(cart)
    updated: list[OrderLine] = []
    for line in cart:
        if line.menu_item.id == item_id:
            clamped = max(0, min(qty, line.quantity))
            line = replace(line, parcel_quantity=clamped, is_parcel=clamped > 0)
        updated.append(line)
    return updated
