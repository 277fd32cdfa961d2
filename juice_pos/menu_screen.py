"""Menu management screen: items and categories."""

from __future__ import annotations

import logging
from typing import Any, Callable

from rich.markup import escape
from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.widgets import Footer, Header, Static

from juice_pos.confirm_modal import ConfirmModal
from juice_pos.errors import PosError
from juice_pos.live_screen import LiveScreen, NavBar, reports_errors, visible_rows, window_bounds
from juice_pos.menu_item_modal import MenuItemModal
from juice_pos.models import Category, MenuItem
from juice_pos.name_modal import NameModal
from juice_pos.rendering import format_currency, format_menu_label

logger = logging.getLogger(__name__)

ITEMS_PANE = "items"
CATEGORIES_PANE = "categories"


class MenuScreen(LiveScreen):
    """List, add, edit, disable and delete menu items and categories."""

    WATCHED_TABLES = ("menu_items", "categories")

    CSS = """
    #menu-layout {
        height: 1fr;
    }

    #items-pane {
        width: 3fr;
        border: round $primary;
        padding: 0 1;
    }

    #categories-pane {
        width: 1fr;
        border: round $secondary;
        padding: 0 1;
    }

    #items-pane.active-pane, #categories-pane.active-pane {
        border: heavy $accent;
    }

    #items-list, #categories-list {
        height: 1fr;
    }

    #menu-help {
        height: auto;
        color: #dddddd;
        padding: 0 1;
    }

    .pane-title {
        text-style: bold;
    }
    """

    BINDINGS = [
        ("up", "move_cursor(-1)", "Up"),
        ("down", "move_cursor(1)", "Down"),
        ("tab", "switch_pane", "Items/Categories"),
        ("enter", "edit_selected", "Edit"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.pane = ITEMS_PANE
        self.item_index = 0
        self.category_index = 0

    def compose(self) -> ComposeResult:
        yield Header()
        yield NavBar("menu")
        with Horizontal(id="menu-layout"):
            with Vertical(id="items-pane"):
                yield Static("Menu Items", classes="pane-title")
                yield Static(id="items-list")
            with Vertical(id="categories-pane"):
                yield Static("Categories", classes="pane-title")
                yield Static(id="categories-list")
        yield Static(id="menu-help")
        yield Footer()

    @reports_errors
    def on_key(self, event: Key) -> None:
        if not event.is_printable or not event.character:
            return
        key = event.character.lower()
        handlers: dict[str, Callable[[], None]] = {
            "n": self.action_new_item,
            "c": self.action_new_category,
            "e": self.action_edit_selected,
            "t": self.action_toggle_active,
            "d": self.action_delete_selected,
            "j": lambda: self.action_move_cursor(1),
            "k": lambda: self.action_move_cursor(-1),
        }
        handler = handlers.get(key)
        if handler is None:
            return
        handler()
        event.stop()

    @reports_errors
    def action_move_cursor(self, delta: int) -> None:
        if self.pane == ITEMS_PANE:
            total = len(self._items())
            if total:
                self.item_index = (self.item_index + delta) % total
        else:
            total = len(self._categories())
            if total:
                self.category_index = (self.category_index + delta) % total
        self.redraw()

    def action_switch_pane(self) -> None:
        self.pane = CATEGORIES_PANE if self.pane == ITEMS_PANE else ITEMS_PANE
        self.redraw()

    @reports_errors
    def action_new_item(self) -> None:
        names = [category.name for category in self._categories()]
        self.app.push_screen(MenuItemModal(names), self._on_new_item)

    def action_new_category(self) -> None:
        self.app.push_screen(NameModal("Add Category"), self._on_new_category)

    @reports_errors
    def action_edit_selected(self) -> None:
        if self.pane == ITEMS_PANE:
            item = self._selected_item()
            if item is None:
                return
            names = [category.name for category in self._categories()]
            self.app.push_screen(MenuItemModal(names, item), lambda values: self._on_edit_item(item, values))
            return

        category = self._selected_category()
        if category is None:
            return
        self.app.push_screen(
            NameModal("Rename Category", category.name),
            lambda name: self._on_rename_category(category, name),
        )

    @reports_errors
    def action_toggle_active(self) -> None:
        item = self._selected_item() if self.pane == ITEMS_PANE else None
        if item is None:
            return
        state = "disabled" if item.is_active else "enabled"
        self._mutate(lambda: self.app.menu_store.set_active(item.id, not item.is_active), f"{item.name} {state}")

    @reports_errors
    def action_delete_selected(self) -> None:
        if self.pane == ITEMS_PANE:
            item = self._selected_item()
            if item is None:
                return
            self._confirm_then(
                f"Delete {item.name}? Past bills keep their line items.",
                lambda: self.app.menu_store.delete_menu_item(item.id),
                "Menu item deleted successfully",
            )
            return

        category = self._selected_category()
        if category is None:
            return
        self._confirm_then(
            f"Delete category {category.name}? Its items become Uncategorized.",
            lambda: self.app.category_store.delete_category(category.id),
            "Category deleted successfully",
        )

    def _confirm_then(self, question: str, operation: Callable[[], Any], success: str) -> None:
        def on_answer(confirmed: bool | None) -> None:
            if confirmed:
                self._mutate(operation, success)

        self.app.push_screen(ConfirmModal(question), on_answer)

    def _on_new_item(self, values: dict[str, Any] | None) -> None:
        if values is None:
            return
        uploaded = values.pop("uploaded_image", None)
        if not self._mutate(lambda: self.app.menu_store.add_menu_item(**values), "Menu item added successfully"):
            self.app.image_store.discard(uploaded)

    def _on_edit_item(self, item: MenuItem, values: dict[str, Any] | None) -> None:
        if values is None:
            return
        uploaded = values.pop("uploaded_image", None)
        if not self._mutate(
            lambda: self.app.menu_store.update_menu_item(item.id, **values), "Menu item updated successfully"
        ):
            self.app.image_store.discard(uploaded)

    def _on_new_category(self, name: str | None) -> None:
        if name is None:
            return
        self._mutate(lambda: self.app.category_store.add_category(name), "Category added successfully")

    def _on_rename_category(self, category: Category, name: str | None) -> None:
        if name is None or name == category.name:
            return
        self._mutate(
            lambda: self.app.category_store.update_category(category.id, name), "Category updated successfully"
        )

    def _mutate(self, operation: Callable[[], Any], success: str) -> bool:
        try:
            operation()
        except PosError as exc:
            logger.warning("menu_mutation_failed error=%s", exc)
            self.app.notify(escape(str(exc)), severity="error")
            return False
        self.app.notify(success)
        self.redraw()
        return True

    def _items(self) -> list[MenuItem]:
        return self.app.menu_store.menu_items()

    def _categories(self) -> list[Category]:
        return self.app.category_store.categories()

    def _selected_item(self) -> MenuItem | None:
        items = self._items()
        if not items:
            return None
        return items[min(self.item_index, len(items) - 1)]

    def _selected_category(self) -> Category | None:
        categories = self._categories()
        if not categories:
            return None
        return categories[min(self.category_index, len(categories) - 1)]

    def refresh_view(self) -> None:
        try:
            items_widget = self.query_one("#items-list", Static)
            categories_widget = self.query_one("#categories-list", Static)
            help_widget = self.query_one("#menu-help", Static)
            items_pane = self.query_one("#items-pane")
            categories_pane = self.query_one("#categories-pane")
        except NoMatches:
            return

        items_pane.set_class(self.pane == ITEMS_PANE, "active-pane")
        categories_pane.set_class(self.pane == CATEGORIES_PANE, "active-pane")

        items = self._items()
        categories = self._categories()
        if not items:
            items_widget.update("No menu items yet. Press N to add one.")
        else:
            self.item_index = min(self.item_index, len(items) - 1)
            start, end = window_bounds(len(items), visible_rows(items_widget), self.item_index)
            lines = Text()
            for idx in range(start, end):
                item = items[idx]
                if idx > start:
                    lines.append("\n")
                pointer = "➤ " if self.pane == ITEMS_PANE and idx == self.item_index else "  "
                lines.append(pointer)
                lines.append_text(format_menu_label(item))
                lines.append(f"  {format_currency(item.price)}", style="green")
                lines.append(f"  [{self.app.menu_store.category_label(item, categories)}]", style="dim")
            items_widget.update(lines)

        if not categories:
            categories_widget.update("No categories. Press C to add one.")
        else:
            self.category_index = min(self.category_index, len(categories) - 1)
            lines = Text()
            for idx, category in enumerate(categories):
                if idx > 0:
                    lines.append("\n")
                pointer = "➤ " if self.pane == CATEGORIES_PANE and idx == self.category_index else "  "
                count = sum(1 for item in items if item.category == category.name)
                lines.append(f"{pointer}{category.name}")
                lines.append(f" ({count})", style="dim")
            categories_widget.update(lines)

        if self.pane == ITEMS_PANE:
            help_widget.update("N new item  E/Enter edit  T enable/disable  D delete  C new category  Tab categories")
        else:
            help_widget.update("C new category  E/Enter rename  D delete  Tab items")
