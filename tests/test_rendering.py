from datetime import date, datetime
from decimal import Decimal

import pytest
from PIL import Image, ImageDraw, ImageFont

from juice_pos.models import Bill, BillItem, MenuItem, PaymentMethod
from juice_pos.printer import fit_text, font_candidates, receipt_lines
from juice_pos.rendering import bar, format_currency, format_menu_label, item_glyph

from tests.conftest import IST


@pytest.mark.parametrize(
    "amount, expected",
    [
        ("0", "₹0.00"),
        ("60", "₹60.00"),
        ("1234.5", "₹1,234.50"),
        ("123456", "₹1,23,456.00"),
        ("12345678.9", "₹1,23,45,678.90"),
        ("-250", "-₹250.00"),
    ],
)
def test_format_currency_uses_indian_grouping(amount, expected):
    assert format_currency(Decimal(amount)) == expected


def test_item_glyph():
    assert item_glyph(MenuItem(id="a", name="A", price=Decimal("1"), image_url="🍊")) == "🍊"
    assert item_glyph(MenuItem(id="a", name="A", price=Decimal("1"), image_url="file:///tmp/a.png")) == "📷"


def test_inactive_label():
    label = format_menu_label(MenuItem(id="a", name="Kiwi", price=Decimal("1"), is_active=False))
    assert label.plain.endswith("Kiwi (inactive)")


def test_bar_scales_to_peak():
    assert bar(Decimal("50"), Decimal("100"), width=10) == "█" * 5
    assert bar(Decimal("1"), Decimal("1000"), width=10) == "█"
    assert bar(Decimal("0"), Decimal("100")) == ""


def test_receipt_lines():
    bill = Bill(
        id="bill-1",
        bill_number=12,
        date_time=datetime(2024, 3, 15, 18, 5, tzinfo=IST),
        business_date=date(2024, 3, 15),
        subtotal=Decimal("150"),
        total_parcel_collected=Decimal("10"),
        total_amount=Decimal("160"),
        payment_method=PaymentMethod.UPI,
        apply_parcel_to_all=False,
    )
    items = [
        BillItem(
            id="line-1",
            bill_id="bill-1",
            menu_item_id="mango",
            quantity=3,
            price_per_unit=Decimal("50"),
            line_subtotal=Decimal("150"),
            is_parcel=True,
            parcel_quantity=2,
            parcel_charge_per_unit=Decimal("5"),
            parcel_total=Decimal("10"),
            line_total=Decimal("160"),
        )
    ]

    lines = receipt_lines(bill, items, {})

    assert lines[1] == ("Bill #12", "15 Mar 2024, 06:05 PM")
    assert ("Item x3", "₹150.00") in lines
    assert ("  Parcel x2", "₹10.00") in lines
    assert lines[-2:] == [("TOTAL", "₹160.00"), ("Paid by", "UPI")]


def test_font_candidates_prefer_env_override(monkeypatch, tmp_path):
    font = tmp_path / "receipt.ttf"
    monkeypatch.setenv("JUICE_POS_PRINTER_FONT_PATH", str(font))

    candidates = font_candidates()

    assert candidates[0] == str(font)
    assert len(candidates) == len(set(candidates))


def test_fit_text_adds_ellipsis():
    draw = ImageDraw.Draw(Image.new("1", (10, 10)))
    font = ImageFont.load_default()

    assert fit_text(draw, "Mango", font, 1000) == "Mango"
    shortened = fit_text(draw, "Watermelon Mint Cooler", font, 40)
    assert shortened.endswith("...")
    assert draw.textlength(shortened, font=font) <= 40
