"""SQLite backend: row-oriented tables plus change notifications."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Mapping
from uuid import uuid4

from juice_pos.clock import business_date_for, now
from juice_pos.config import BUSINESS_DAY_CUTOVER_HOUR
from juice_pos.errors import BackendError, DuplicateNameError
from juice_pos.events import ChangeFeed

logger = logging.getLogger(__name__)

Row = dict[str, Any]
Filter = tuple[str, str, Any]

_SCHEMA = """
CREATE TABLE IF NOT EXISTS menu_items (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    price TEXT NOT NULL CHECK (CAST(price AS REAL) > 0),
    is_active INTEGER NOT NULL DEFAULT 1,
    color TEXT,
    image_url TEXT,
    category TEXT,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS categories (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL UNIQUE,
    display_order INTEGER NOT NULL,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS bills (
    id TEXT PRIMARY KEY,
    bill_number INTEGER NOT NULL UNIQUE,
    date_time TEXT NOT NULL,
    business_date TEXT NOT NULL,
    subtotal TEXT NOT NULL,
    total_parcel_collected TEXT NOT NULL,
    total_amount TEXT NOT NULL,
    payment_method TEXT NOT NULL CHECK (payment_method IN ('Cash', 'UPI')),
    apply_parcel_to_all INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS bill_items (
    id TEXT PRIMARY KEY,
    bill_id TEXT NOT NULL,
    menu_item_id TEXT NOT NULL,
    quantity INTEGER NOT NULL CHECK (quantity > 0),
    price_per_unit TEXT NOT NULL,
    line_subtotal TEXT NOT NULL,
    is_parcel INTEGER NOT NULL DEFAULT 0,
    parcel_quantity INTEGER NOT NULL CHECK (parcel_quantity BETWEEN 0 AND quantity),
    parcel_charge_per_unit TEXT NOT NULL,
    parcel_total TEXT NOT NULL,
    line_total TEXT NOT NULL,
    created_at TEXT NOT NULL,
    FOREIGN KEY(bill_id) REFERENCES bills(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_bills_business_date ON bills(business_date);
CREATE INDEX IF NOT EXISTS idx_bill_items_bill_id ON bill_items(bill_id);
"""

TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    "menu_items": ("id", "name", "price", "is_active", "color", "image_url", "category", "created_at"),
    "categories": ("id", "name", "display_order", "created_at"),
    "bills": (
        "id",
        "bill_number",
        "date_time",
        "business_date",
        "subtotal",
        "total_parcel_collected",
        "total_amount",
        "payment_method",
        "apply_parcel_to_all",
        "created_at",
    ),
    "bill_items": (
        "id",
        "bill_id",
        "menu_item_id",
        "quantity",
        "price_per_unit",
        "line_subtotal",
        "is_parcel",
        "parcel_quantity",
        "parcel_charge_per_unit",
        "parcel_total",
        "line_total",
        "created_at",
    ),
}

# Bills are append-only.
_IMMUTABLE_TABLES = {"bills", "bill_items"}

_ROW_LABELS = {
    "menu_items": "Menu item",
    "categories": "Category",
    "bills": "Bill",
    "bill_items": "Bill item",
}

_OPERATORS = {"eq": "=", "gte": ">=", "lte": "<=", "in": "IN"}


def _encode(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _check_table(table: str) -> tuple[str, ...]:
    try:
        return TABLE_COLUMNS[table]
    except KeyError:
        raise BackendError(f"Unknown table {table!r}") from None


def _check_column(table: str, column: str) -> None:
    if column not in _check_table(table):
        raise BackendError(f"Unknown column {table}.{column}")


@contextmanager
def _translate_errors(table: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.IntegrityError as exc:
        if "UNIQUE" in str(exc) and f"{table}.name" in str(exc):
            raise DuplicateNameError(f"{_ROW_LABELS[table]} already exists") from exc
        raise BackendError(str(exc)) from exc
    except sqlite3.Error as exc:
        raise BackendError(str(exc)) from exc


class SqliteBackend:
    """Generic row access over the POS tables.

    Every successful write publishes a ``ChangeEvent`` for the touched tables
    once the transaction has committed.
    """

    def __init__(
        self,
        db_path: str | Path,
        feed: ChangeFeed,
        clock: Callable[[], datetime] = now,
        cutover_hour: int = BUSINESS_DAY_CUTOVER_HOUR,
    ) -> None:
        self.db_path = Path(db_path)
        self.feed = feed
        self.clock = clock
        self.cutover_hour = cutover_hour
        self._watch_conn: sqlite3.Connection | None = None
        self._data_version: int | None = None

    def _open(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        # Autocommit; transactions are opened explicitly.
        conn = sqlite3.connect(self.db_path, isolation_level=None, timeout=5.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = self._open()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def bootstrap_schema(self) -> None:
        """Create persistence schema if it does not already exist."""
        with _translate_errors("bills"), self._connect() as conn:
            conn.executescript(_SCHEMA)

    def select(
        self,
        table: str,
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        _check_table(table)
        clauses: list[str] = []
        params: list[Any] = []
        for column, op, value in filters:
            _check_column(table, column)
            if op not in _OPERATORS:
                raise BackendError(f"Unsupported filter operator {op!r}")
            if op == "in":
                values = [_encode(v) for v in value]
                if not values:
                    return []
                clauses.append(f"{column} IN ({', '.join('?' for _ in values)})")
                params.extend(values)
                continue
            clauses.append(f"{column} {_OPERATORS[op]} ?")
            params.append(_encode(value))

        sql = f"SELECT * FROM {table}"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        if order_by is not None:
            _check_column(table, order_by)
            sql += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}"

        with _translate_errors(table), self._connect() as conn:
            return [dict(row) for row in conn.execute(sql, params)]

    def insert(self, table: str, values: Mapping[str, Any]) -> Row:
        """Insert one row and return it with its server-assigned fields."""
        _check_table(table)
        row = {"id": uuid4().hex, "created_at": self.clock(), **values}
        with _translate_errors(table), self._transaction() as conn:
            created = self._insert_row(conn, table, row)
        logger.info("row_inserted table=%s id=%s", table, created["id"])
        self.feed.publish(table, "INSERT")
        return created

    def update(self, table: str, row_id: str, values: Mapping[str, Any]) -> Row:
        _check_table(table)
        if table in _IMMUTABLE_TABLES:
            raise BackendError(f"{_ROW_LABELS[table]} rows cannot be edited")
        if not values:
            raise BackendError("Nothing to update")
        for column in values:
            _check_column(table, column)
        assignments = ", ".join(f"{column} = ?" for column in values)
        params = [_encode(value) for value in values.values()]
        with _translate_errors(table), self._transaction() as conn:
            cur = conn.execute(f"UPDATE {table} SET {assignments} WHERE id = ?", (*params, row_id))
            if cur.rowcount == 0:
                raise BackendError(f"{_ROW_LABELS[table]} {row_id} not found")
            updated = self._fetch_row(conn, table, row_id)
        logger.info("row_updated table=%s id=%s columns=%s", table, row_id, ",".join(values))
        self.feed.publish(table, "UPDATE")
        return updated

    def delete(self, table: str, row_id: str) -> None:
        _check_table(table)
        if table in _IMMUTABLE_TABLES:
            raise BackendError(f"{_ROW_LABELS[table]} rows cannot be deleted")
        with _translate_errors(table), self._transaction() as conn:
            conn.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
        logger.info("row_deleted table=%s id=%s", table, row_id)
        self.feed.publish(table, "DELETE")

    def insert_bill(
        self, bill_values: Mapping[str, Any], item_values: Iterable[Mapping[str, Any]]
    ) -> tuple[Row, list[Row]]:
        """
        Persist a bill and its items in a single transaction.

        The bill number, timestamp and business date are assigned here, under
        an immediate write lock, so concurrent terminals get distinct numbers.
        """
        with _translate_errors("bills"), self._transaction() as conn:
            moment = self.clock()
            next_number = conn.execute("SELECT COALESCE(MAX(bill_number), 0) + 1 FROM bills").fetchone()[0]
            bill = self._insert_row(
                conn,
                "bills",
                {
                    **bill_values,
                    "id": uuid4().hex,
                    "bill_number": next_number,
                    "date_time": moment,
                    "business_date": business_date_for(moment, self.cutover_hour),
                    "created_at": moment,
                },
            )
            items = [
                self._insert_row(
                    conn,
                    "bill_items",
                    {**values, "id": uuid4().hex, "bill_id": bill["id"], "created_at": moment},
                )
                for values in item_values
            ]
        logger.info("bill_inserted id=%s number=%s items=%d", bill["id"], bill["bill_number"], len(items))
        self.feed.publish("bills", "INSERT")
        self.feed.publish("bill_items", "INSERT")
        return bill, items

    def poll_external_changes(self) -> bool:
        """
        Publish a change for every table when another connection has committed.

        Uses ``PRAGMA data_version`` on a long-lived connection, which moves
        whenever a different connection (including another terminal sharing
        the file) commits. Returns True when a change was published.
        """
        if self._watch_conn is None:
            self._watch_conn = self._open()
        version = self._watch_conn.execute("PRAGMA data_version").fetchone()[0]
        previous, self._data_version = self._data_version, version
        if previous is None or previous == version:
            return False
        logger.debug("external_change data_version=%s", version)
        for table in TABLE_COLUMNS:
            self.feed.publish(table, "EXTERNAL")
        return True

    def close(self) -> None:
        if self._watch_conn is not None:
            self._watch_conn.close()
            self._watch_conn = None

    def _insert_row(self, conn: sqlite3.Connection, table: str, row: Mapping[str, Any]) -> Row:
        for column in row:
            _check_column(table, column)
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        conn.execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
            [_encode(value) for value in row.values()],
        )
        return self._fetch_row(conn, table, row["id"])

    def _fetch_row(self, conn: sqlite3.Connection, table: str, row_id: str) -> Row:
        found = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,)).fetchone()
        if found is None:
            raise BackendError(f"{_ROW_LABELS[table]} {row_id} not found")
        return dict(found)
