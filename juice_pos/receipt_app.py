"""Main Textual app class."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Callable

from textual.app import App

from juice_pos.billing_screen import BillingScreen
from juice_pos.clock import now
from juice_pos.config import DB_PATH, EXTERNAL_CHANGE_POLL_SECONDS, IMAGE_DIR, PRINT_RECEIPTS, SHOP_NAME
from juice_pos.constant import DEFAULT_CATEGORIES
from juice_pos.dashboard_screen import DashboardScreen
from juice_pos.errors import BackendError
from juice_pos.events import ChangeFeed
from juice_pos.history_screen import HistoryScreen
from juice_pos.images import ImageStore
from juice_pos.menu_screen import MenuScreen
from juice_pos.persistence import SqliteBackend
from juice_pos.printer import check_printer_dependencies
from juice_pos.stores import open_stores

logger = logging.getLogger(__name__)


class JuicePosApp(App):
    """Counter app for taking orders, managing the menu and reviewing sales."""

    TITLE = SHOP_NAME
    SUB_TITLE = "Juice Counter POS"

    CSS = """
    Screen {
        layout: vertical;
    }
    """

    MODES = {
        "dashboard": DashboardScreen,
        "menu": MenuScreen,
        "billing": BillingScreen,
        "history": HistoryScreen,
    }

    BINDINGS = [
        ("f1", "switch_mode('dashboard')", "Dashboard"),
        ("f2", "switch_mode('menu')", "Menu"),
        ("f3", "switch_mode('billing')", "Billing"),
        ("f4", "switch_mode('history')", "History"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        db_path: str | Path = DB_PATH,
        clock: Callable[[], datetime] = now,
        image_root: str | Path = IMAGE_DIR,
        print_receipts: bool = PRINT_RECEIPTS,
    ) -> None:
        super().__init__()
        self.feed = ChangeFeed()
        self.backend = SqliteBackend(db_path, self.feed, clock=clock)
        self.menu_store, self.category_store, self.bill_store = open_stores(self.backend, self.feed)
        self.image_store = ImageStore(image_root)
        self.print_receipts = print_receipts
        logger.info("app_init db=%s print_receipts=%s", db_path, print_receipts)

    def on_mount(self) -> None:
        self.backend.bootstrap_schema()
        self._seed_categories()
        if self.print_receipts:
            ok, msg = check_printer_dependencies()
            logger.info("printer_status ok=%s detail=%r", ok, msg)
            if not ok:
                self.notify(msg, severity="warning")
        self.backend.poll_external_changes()
        self.set_interval(EXTERNAL_CHANGE_POLL_SECONDS, self._poll_external_changes)
        self.switch_mode("billing")

    def on_unmount(self) -> None:
        for store in (self.menu_store, self.category_store, self.bill_store):
            store.close()
        self.backend.close()
        logger.info("app_shutdown")

    def _seed_categories(self) -> None:
        if self.category_store.categories():
            return
        for name in DEFAULT_CATEGORIES:
            self.category_store.add_category(name)
        logger.info("categories_seeded count=%d", len(DEFAULT_CATEGORIES))

    def _poll_external_changes(self) -> None:
        try:
            self.backend.poll_external_changes()
        except (sqlite3.Error, BackendError) as exc:
            logger.warning("external_change_poll_failed error=%r", exc)
