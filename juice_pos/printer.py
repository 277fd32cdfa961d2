"""Thermal receipt printing for finalized bills."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Sequence

from PIL import Image, ImageDraw, ImageFont

from juice_pos.config import (
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_TAIL_SPACER_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
    SHOP_NAME,
)
from juice_pos.models import Bill, BillItem
from juice_pos.rendering import format_currency, format_date_time

logger = logging.getLogger(__name__)

FONT_PATH_ENV = "JUICE_POS_PRINTER_FONT_PATH"
FALLBACK_FONTS = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/noto/NotoSans-Regular.ttf",
    "/usr/share/fonts/liberation/LiberationSans-Regular.ttf",
)
RULE = "-"
_ROW_PADDING_PX = 10
_COLUMN_GAP_PX = 8

ReceiptLine = tuple[str, str]


def receipt_lines(bill: Bill, items: Sequence[BillItem], names: Mapping[str, str]) -> list[ReceiptLine]:
    """
    Lay a bill out as ``(left, right)`` text pairs.

    ``names`` maps menu item ids to display names; items whose menu entry is
    gone print as "Item".
    """
    lines: list[ReceiptLine] = [
        (SHOP_NAME, ""),
        (f"Bill #{bill.bill_number}", format_date_time(bill.date_time)),
        (RULE, ""),
    ]
    for item in items:
        name = names.get(item.menu_item_id, "Item")
        lines.append((f"{name} x{item.quantity}", format_currency(item.line_subtotal)))
        if item.parcel_quantity > 0:
            lines.append((f"  Parcel x{item.parcel_quantity}", format_currency(item.parcel_total)))
    lines.append((RULE, ""))
    lines.append(("Subtotal", format_currency(bill.subtotal)))
    if bill.total_parcel_collected > 0:
        lines.append(("Parcel", format_currency(bill.total_parcel_collected)))
    lines.append(("TOTAL", format_currency(bill.total_amount)))
    lines.append(("Paid by", bill.payment_method.value))
    return lines


def font_candidates() -> list[str]:
    """Font files to try, in order: env override, configured path, distro fonts."""
    override = os.environ.get(FONT_PATH_ENV, "").strip()
    ordered = [override, PRINTER_FONT_PATH, *FALLBACK_FONTS]
    return list(dict.fromkeys(path for path in ordered if path))


def load_receipt_font() -> ImageFont.FreeTypeFont:
    for path in font_candidates():
        if Path(path).is_file():
            return ImageFont.truetype(path, PRINTER_FONT_SIZE)
    raise RuntimeError(f"No receipt font found; set {FONT_PATH_ENV} to a .ttf or .otf file")


def check_printer_dependencies() -> tuple[bool, str]:
    """Report whether a receipt could be rendered and sent right now."""
    try:
        from escpos.printer import Usb  # noqa: F401

        load_receipt_font()
    except (ImportError, RuntimeError, OSError) as exc:
        return (False, f"Receipt printing unavailable: {exc}")
    return (True, "Printer ready")


def fit_text(draw: ImageDraw.ImageDraw, text: str, font: ImageFont.FreeTypeFont, max_width_px: int) -> str:
    """Shorten ``text`` with a trailing ellipsis until it fits ``max_width_px``."""
    if draw.textlength(text, font=font) <= max_width_px:
        return text
    for cut in range(len(text) - 1, 0, -1):
        shortened = text[:cut].rstrip() + "..."
        if draw.textlength(shortened, font=font) <= max_width_px:
            return shortened
    return "..."


def render_row(line: ReceiptLine, font: ImageFont.FreeTypeFont) -> Image.Image:
    """Draw one receipt row as a 1-bit strip; rules become a horizontal bar."""
    left, right = line
    if left == RULE:
        strip = Image.new("1", (PRINTER_WIDTH_PX, 12), color=1)
        ImageDraw.Draw(strip).rectangle(
            (PRINTER_LEFT_INDENT_PX, 5, PRINTER_WIDTH_PX - PRINTER_LEFT_INDENT_PX, 6), fill=0
        )
        return strip

    height = PRINTER_FONT_SIZE + _ROW_PADDING_PX
    strip = Image.new("1", (PRINTER_WIDTH_PX, height), color=1)
    draw = ImageDraw.Draw(strip)
    usable = PRINTER_WIDTH_PX - 2 * PRINTER_LEFT_INDENT_PX

    right_width = 0
    if right:
        right_width = int(draw.textlength(right, font=font))
        draw.text((PRINTER_WIDTH_PX - PRINTER_LEFT_INDENT_PX, height // 2), right, font=font, fill=0, anchor="rm")

    left = fit_text(draw, left, font, usable - right_width - _COLUMN_GAP_PX)
    # Vertically centred on the middle of the strip so descenders stay inside it.
    draw.text((PRINTER_LEFT_INDENT_PX, height // 2), left, font=font, fill=0, anchor="lm")
    return strip


def print_bill_receipt(bill: Bill, items: Sequence[BillItem], names: Mapping[str, str]) -> None:
    """Print a customer receipt and cut the ticket at the end."""
    from escpos.printer import Usb

    font = load_receipt_font()
    strips = [render_row(line, font) for line in receipt_lines(bill, items, names)]
    strips.append(Image.new("1", (PRINTER_WIDTH_PX, PRINTER_TAIL_SPACER_PX), color=1))

    printer = Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)
    for strip in strips:
        printer.image(strip)
    printer.cut()
    logger.info("receipt_printed bill=%s rows=%d", bill.bill_number, len(strips) - 1)
