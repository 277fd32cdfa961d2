"""Base screen that re-renders whenever a watched table changes."""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar

from rich.markup import escape
from rich.text import Text
from textual.message import Message
from textual.screen import Screen
from textual.widgets import Static

from juice_pos.constant import NAV_ITEMS
from juice_pos.errors import PosError
from juice_pos.events import ChangeEvent, Subscription

logger = logging.getLogger(__name__)

Handler = TypeVar("Handler", bound=Callable[..., Any])


def reports_errors(method: Handler) -> Handler:
    """Show a ``PosError`` raised by a screen handler as an error toast instead of ending the app."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except PosError as exc:
            logger.warning("screen_error screen=%s handler=%s error=%s", type(self).__name__, method.__name__, exc)
            self.app.notify(escape(str(exc)), severity="error")
            return None

    return wrapper  # type: ignore[return-value]


class TableChanged(Message):
    """Posted to a screen when the change feed reports ``table`` changed."""

    bubble = False

    def __init__(self, table: str) -> None:
        super().__init__()
        self.table = table


class NavBar(Static):
    """Top navigation strip with the active screen highlighted."""

    DEFAULT_CSS = """
    NavBar {
        height: 1;
        background: $panel;
        padding: 0 1;
    }
    """

    def __init__(self, active: str) -> None:
        super().__init__()
        self.active_mode = active

    def on_mount(self) -> None:
        text = Text()
        for key, mode, label in NAV_ITEMS:
            style = "bold #0b1f0f on #f59e0b" if mode == self.active_mode else "#dddddd"
            text.append(f" {key.upper()} {label} ", style=style)
            text.append(" ")
        self.update(text)


class LiveScreen(Screen):
    """Subscribes to the app's change feed while mounted.

    Subclasses list ``WATCHED_TABLES`` and implement ``refresh_view``. Feed
    callbacks may run on worker threads, so they only post a message; the
    redraw always happens on the UI thread.
    """

    WATCHED_TABLES: tuple[str, ...] = ()

    def __init__(self) -> None:
        super().__init__()
        self._subscriptions: list[Subscription] = []

    def on_mount(self) -> None:
        self._subscriptions = [self.app.feed.subscribe(table, self._forward_change) for table in self.WATCHED_TABLES]
        self.after_mount()
        self.redraw()

    def on_unmount(self) -> None:
        for subscription in self._subscriptions:
            subscription.close()
        self._subscriptions = []

    def on_screen_resume(self) -> None:
        self.redraw()

    def on_table_changed(self, message: TableChanged) -> None:
        logger.debug("screen_refresh screen=%s table=%s", type(self).__name__, message.table)
        self.redraw()

    def _forward_change(self, event: ChangeEvent) -> None:
        self.post_message(TableChanged(event.table))

    def after_mount(self) -> None:
        """Hook for timers and other per-screen setup."""

    @reports_errors
    def redraw(self) -> None:
        self.refresh_view()

    def refresh_view(self) -> None:
        """Re-read the stores and repaint. Call ``redraw`` from handlers."""
        raise NotImplementedError


def visible_rows(widget: Static, fallback: int = 8) -> int:
    height = widget.size.height
    if height <= 0:
        return fallback
    return max(1, height)


def window_bounds(total: int, rows: int, selected: int | None) -> tuple[int, int]:
    """Slice of a list to draw so the selected row stays on screen."""
    if total <= 0:
        return (0, 0)

    rows = max(1, rows)
    if total <= rows:
        return (0, total)

    if selected is None:
        start = 0
    else:
        half = rows // 2
        start = selected - half
        start = max(0, start)
        start = min(start, total - rows)

    return (start, start + rows)
