import itertools
from decimal import Decimal

from juice_pos import pricing
from juice_pos.models import OrderLine

from tests.conftest import make_item

CHARGE = Decimal("5")


def test_line_with_partial_parcel():
    line = OrderLine(make_item(price="50"), quantity=3, is_parcel=True, parcel_quantity=2)

    totals = pricing.compute_line_totals(line, CHARGE, apply_parcel_to_all=False)

    assert totals.subtotal == Decimal("150.00")
    assert totals.parcel_quantity == 2
    assert totals.parcel == Decimal("10.00")
    assert totals.total == Decimal("160.00")


def test_parcel_all_overrides_line_quantity():
    line = OrderLine(make_item(price="50"), quantity=3, is_parcel=True, parcel_quantity=2)

    totals = pricing.compute_line_totals(line, CHARGE, apply_parcel_to_all=True)

    assert totals.parcel_quantity == 3
    assert totals.total == Decimal("165.00")


def test_cart_totals_across_lines():
    cart = [
        OrderLine(make_item("a", "Apple", "40"), quantity=2),
        OrderLine(make_item("b", "Banana", "30"), quantity=2, is_parcel=True, parcel_quantity=1),
    ]

    totals = pricing.compute_cart_totals(cart, CHARGE, apply_parcel_to_all=False)

    assert totals.subtotal == Decimal("140.00")
    assert totals.parcel_charges == Decimal("5.00")
    assert totals.total == Decimal("145.00")


def test_empty_cart_totals_are_zero():
    totals = pricing.compute_cart_totals([], CHARGE, apply_parcel_to_all=True)
    assert totals.total == Decimal("0.00")


def test_effective_parcel_quantity_is_clamped():
    line = OrderLine(make_item(), quantity=2, is_parcel=True, parcel_quantity=7)
    assert pricing.effective_parcel_quantity(line, apply_parcel_to_all=False) == 2


def test_add_to_cart_merges_same_item():
    item = make_item()
    cart = pricing.add_to_cart([], item)
    cart = pricing.add_to_cart(cart, item)

    assert len(cart) == 1
    assert cart[0].quantity == 2


def test_update_quantity_removes_line_at_zero():
    item = make_item()
    cart = [OrderLine(item, quantity=1)]

    assert pricing.update_quantity(cart, item.id, -1) == []


def test_update_quantity_reclamps_parcel_quantity():
    item = make_item()
    cart = [OrderLine(item, quantity=3, is_parcel=True, parcel_quantity=3)]

    cart = pricing.update_quantity(cart, item.id, -1)

    assert cart[0].quantity == 2
    assert cart[0].parcel_quantity == 2


def test_transitions_do_not_mutate_input():
    item = make_item()
    cart = [OrderLine(item, quantity=1)]

    pricing.update_quantity(cart, item.id, 2)
    pricing.remove_from_cart(cart, item.id)

    assert cart == [OrderLine(item, quantity=1)]


def test_toggle_parcel_packs_whole_line():
    item = make_item()
    cart = [OrderLine(item, quantity=3)]

    cart = pricing.toggle_line_parcel(cart, item.id, apply_parcel_to_all=False)
    assert cart[0].is_parcel is True
    assert cart[0].parcel_quantity == 3

    cart = pricing.toggle_line_parcel(cart, item.id, apply_parcel_to_all=False)
    assert cart[0].is_parcel is False
    assert cart[0].parcel_quantity == 0


def test_line_parcel_edits_ignored_while_parcel_all_is_on():
    item = make_item()
    cart = [OrderLine(item, quantity=3)]

    assert pricing.toggle_line_parcel(cart, item.id, apply_parcel_to_all=True) == cart
    assert pricing.set_line_parcel_quantity(cart, item.id, 2, apply_parcel_to_all=True) == cart


def test_set_line_parcel_quantity_clamps():
    item = make_item()
    cart = [OrderLine(item, quantity=3)]

    assert pricing.set_line_parcel_quantity(cart, item.id, 9, False)[0].parcel_quantity == 3
    cleared = pricing.set_line_parcel_quantity(cart, item.id, -1, False)[0]
    assert cleared.parcel_quantity == 0
    assert cleared.is_parcel is False


def test_line_totals_hold_for_every_combination():
    prices = ["0.01", "12.50", "60", "999.99"]
    for price, quantity, parcel_quantity, is_parcel, apply_all, charge in itertools.product(
        prices, range(1, 5), range(-2, 7), (False, True), (False, True), ("0", "5", "7.50")
    ):
        line = OrderLine(make_item(price=price), quantity=quantity, is_parcel=is_parcel, parcel_quantity=parcel_quantity)

        totals = pricing.compute_line_totals(line, Decimal(charge), apply_parcel_to_all=apply_all)

        assert 0 <= totals.parcel_quantity <= quantity
        assert totals.total >= totals.subtotal
        assert totals.total == totals.subtotal + totals.parcel
        if apply_all:
            assert totals.parcel_quantity == quantity
