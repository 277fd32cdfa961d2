"""Runtime configuration defaults for persistence, pricing and printing."""

from __future__ import annotations

import os
from decimal import Decimal, InvalidOperation


def _env_decimal(name: str, default: str) -> Decimal:
    raw = os.environ.get(name, "").strip() or default
    try:
        value = Decimal(raw)
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be a decimal amount, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{name} must not be negative")
    return value


def _env_hour(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    if not raw.isdigit() or not (0 <= int(raw) <= 23):
        raise ValueError(f"{name} must be an hour from 0 to 23, got {raw!r}")
    return int(raw)


DB_PATH = os.environ.get("JUICE_POS_DB_PATH", "data/juice_pos.db")
IMAGE_DIR = os.environ.get("JUICE_POS_IMAGE_DIR", "data/images")
LOG_PATH = os.environ.get("JUICE_POS_LOG_PATH", "/tmp/juice-pos-debug.log")

# Flat surcharge per packaged unit, snapshotted into every bill item.
PARCEL_CHARGE_PER_UNIT = _env_decimal("JUICE_POS_PARCEL_CHARGE", "5")

# Hour at which the business day rolls over. 0 keeps calendar days.
BUSINESS_DAY_CUTOVER_HOUR = _env_hour("JUICE_POS_BUSINESS_DAY_CUTOVER_HOUR", 0)

CURRENCY_SYMBOL = "₹"
TOP_ITEMS_LIMIT = 5
TREND_DAYS = 30
EXTERNAL_CHANGE_POLL_SECONDS = 2.0
DASHBOARD_REFRESH_SECONDS = 60.0

IMAGE_UPLOAD_MAX_BYTES = 2 * 1024 * 1024

PRINT_RECEIPTS = os.environ.get("JUICE_POS_PRINT_RECEIPTS", "").strip() == "1"
PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 28
PRINTER_FONT_PATH = "/System/Library/Fonts/SFNS.ttf"
PRINTER_LEFT_INDENT_PX = 8
PRINTER_TAIL_SPACER_PX = 70
SHOP_NAME = "Juice Jungle"
