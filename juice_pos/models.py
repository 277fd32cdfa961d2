"""Domain models for the juice counter POS."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

_CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Coerce a stored or typed amount into a 2-place Decimal."""
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        amount = Decimal(value)
    return amount.quantize(_CENT)


def _to_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _to_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


class PaymentMethod(str, Enum):
    CASH = "Cash"
    UPI = "UPI"


@dataclass(frozen=True)
class MenuItem:
    """A sellable menu entry."""

    id: str
    name: str
    price: Decimal
    is_active: bool = True
    color: str | None = None
    image_url: str | None = None
    category: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> MenuItem:
        return cls(
            id=row["id"],
            name=row["name"],
            price=to_money(row["price"]),
            is_active=bool(row["is_active"]),
            color=row.get("color"),
            image_url=row.get("image_url"),
            category=row.get("category"),
            created_at=_to_datetime(row.get("created_at")),
        )


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    display_order: int
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Category:
        return cls(
            id=row["id"],
            name=row["name"],
            display_order=int(row["display_order"]),
            created_at=_to_datetime(row.get("created_at")),
        )


@dataclass(frozen=True)
class OrderLine:
    """A cart row; never persisted until the bill is created."""

    menu_item: MenuItem
    quantity: int
    is_parcel: bool = False
    parcel_quantity: int = 0


@dataclass(frozen=True)
class LineTotals:
    subtotal: Decimal
    parcel_quantity: int
    parcel: Decimal
    total: Decimal


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    parcel_charges: Decimal
    total: Decimal


@dataclass(frozen=True)
class Bill:
    """A finalized, immutable sale."""

    id: str
    bill_number: int
    date_time: datetime
    business_date: date
    subtotal: Decimal
    total_parcel_collected: Decimal
    total_amount: Decimal
    payment_method: PaymentMethod
    apply_parcel_to_all: bool
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Bill:
        return cls(
            id=row["id"],
            bill_number=int(row["bill_number"]),
            date_time=_to_datetime(row["date_time"]),
            business_date=_to_date(row["business_date"]),
            subtotal=to_money(row["subtotal"]),
            total_parcel_collected=to_money(row["total_parcel_collected"]),
            total_amount=to_money(row["total_amount"]),
            payment_method=PaymentMethod(row["payment_method"]),
            apply_parcel_to_all=bool(row["apply_parcel_to_all"]),
            created_at=_to_datetime(row.get("created_at")),
        )


@dataclass(frozen=True)
class BillItem:
    """One bill line with price and parcel charge snapshotted at sale time."""

    id: str
    bill_id: str
    menu_item_id: str
    quantity: int
    price_per_unit: Decimal
    line_subtotal: Decimal
    is_parcel: bool
    parcel_quantity: int
    parcel_charge_per_unit: Decimal
    parcel_total: Decimal
    line_total: Decimal
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> BillItem:
        return cls(
            id=row["id"],
            bill_id=row["bill_id"],
            menu_item_id=row["menu_item_id"],
            quantity=int(row["quantity"]),
            price_per_unit=to_money(row["price_per_unit"]),
            line_subtotal=to_money(row["line_subtotal"]),
            is_parcel=bool(row["is_parcel"]),
            parcel_quantity=int(row["parcel_quantity"]),
            parcel_charge_per_unit=to_money(row["parcel_charge_per_unit"]),
            parcel_total=to_money(row["parcel_total"]),
            line_total=to_money(row["line_total"]),
            created_at=_to_datetime(row.get("created_at")),
        )
