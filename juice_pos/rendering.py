"""Formatting helpers shared by the screens."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from rich.text import Text

from juice_pos.config import CURRENCY_SYMBOL
from juice_pos.images import is_emoji
from juice_pos.models import MenuItem, PaymentMethod


def _group_indian(digits: str) -> str:
    """Group an integer string the en-IN way: 12,34,567."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs) + "," + tail


def format_currency(value: Decimal) -> str:
    amount = Decimal(value).quantize(Decimal("0.01"))
    sign = "-" if amount < 0 else ""
    whole, _, fraction = f"{abs(amount):.2f}".partition(".")
    return f"{sign}{CURRENCY_SYMBOL}{_group_indian(whole)}.{fraction}"


def format_date_time(moment: datetime) -> str:
    return moment.strftime("%d %b %Y, %I:%M %p")


def format_date(day: date) -> str:
    return day.strftime("%d %b %Y")


def payment_style(method: PaymentMethod) -> str:
    """Return a consistent badge style for payment tags."""
    if method is PaymentMethod.UPI:
        return "bold #ffffff on #2f6db5"
    return "bold #0b1f0f on #5fbf72"


def format_payment_badge(method: PaymentMethod) -> Text:
    return Text(f" {method.value} ", style=payment_style(method))


def item_glyph(item: MenuItem) -> str:
    """Emoji shown next to a menu item, or a camera marker for uploaded photos."""
    if item.image_url and is_emoji(item.image_url):
        return item.image_url
    if item.image_url:
        return "📷"
    return "  "


def format_menu_label(item: MenuItem) -> Text:
    text = Text()
    text.append(f"{item_glyph(item)} ")
    text.append(item.name, style=f"bold {item.color}" if item.color else "bold")
    if not item.is_active:
        text.append(" (inactive)", style="dim")
    return text


def bar(value: Decimal, peak: Decimal, width: int = 24) -> str:
    """Proportional block bar for text tables."""
    if peak <= 0 or value <= 0:
        return ""
    return "█" * max(1, int(width * value / peak))
