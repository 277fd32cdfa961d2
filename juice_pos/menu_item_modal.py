"""Add/edit menu item modal screen."""

from __future__ import annotations

from typing import Any, Sequence

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.suggester import SuggestFromList
from textual.widgets import Input, Static

from juice_pos.constant import MENU_COLORS, MENU_EMOJIS
from juice_pos.errors import ValidationError
from juice_pos.images import is_emoji
from juice_pos.models import MenuItem
from juice_pos.stores import parse_price, validate_name

_URL_PREFIXES = ("http://", "https://", "file://")


class MenuItemModal(ModalScreen[dict[str, Any] | None]):
    """Collect name, price, category, image and color for a menu item.

    Dismisses with the validated field values, or None when cancelled. A
    filesystem path typed into the image field is uploaded to the app's image
    store here so upload errors show inline; the values then carry the new
    file's URL under ``uploaded_image`` so the caller can discard it if the
    item is never saved.
    """

    BINDINGS = [
        ("escape", "close", "Cancel"),
        ("f5", "next_emoji", "Next emoji"),
        ("f6", "next_color", "Next color"),
    ]

    CSS = """
    MenuItemModal {
        align: center middle;
        background: $background 60%;
    }

    #item-dialog {
        width: 64;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #item-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #item-error {
        color: #ffb3b3;
    }

    #item-help {
        color: #dddddd;
        margin-top: 1;
    }
    """

    def __init__(self, categories: Sequence[str], item: MenuItem | None = None) -> None:
        super().__init__()
        self.categories = list(categories)
        self.item = item
        self.color = item.color if item is not None else None
        self.uploaded_image: str | None = None

    def compose(self) -> ComposeResult:
        item = self.item
        with Container(id="item-dialog"):
            yield Static("Edit Menu Item" if item else "Add Menu Item", id="item-title")
            yield Input(value=item.name if item else "", placeholder="Name, e.g. Orange Juice", id="item-name")
            yield Input(value=str(item.price) if item else "", placeholder="Price (₹)", id="item-price")
            yield Input(
                value=(item.category or "") if item else "",
                placeholder="Category (optional)",
                suggester=SuggestFromList(self.categories, case_sensitive=False),
                id="item-category",
            )
            yield Input(
                value=(item.image_url or "") if item else "",
                placeholder="Emoji, image URL or path to a photo",
                id="item-image",
            )
            yield Static(id="item-color")
            yield Static(id="item-error")
            yield Static(
                f"Enter save. Esc cancel. F5 cycle emoji {' '.join(MENU_EMOJIS[:6])}…  F6 cycle color.",
                id="item-help",
            )

    def on_mount(self) -> None:
        self._refresh_color()
        self.query_one("#item-name", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self._save()

    def action_close(self) -> None:
        self.dismiss(None)

    def action_next_emoji(self) -> None:
        image = self.query_one("#item-image", Input)
        current = image.value.strip()
        idx = MENU_EMOJIS.index(current) + 1 if current in MENU_EMOJIS else 0
        image.value = MENU_EMOJIS[idx % len(MENU_EMOJIS)]

    def action_next_color(self) -> None:
        choices: list[str | None] = [None, *MENU_COLORS]
        idx = choices.index(self.color) + 1 if self.color in choices else 0
        self.color = choices[idx % len(choices)]
        self._refresh_color()

    def _save(self) -> None:
        error = self.query_one("#item-error", Static)
        try:
            values = {
                "name": validate_name(self.query_one("#item-name", Input).value),
                "price": parse_price(self.query_one("#item-price", Input).value),
                "category": self._resolve_category(self.query_one("#item-category", Input).value),
                "image_url": self._resolve_image(self.query_one("#item-image", Input).value),
                "color": self.color,
            }
        except ValidationError as exc:
            error.update(Text(str(exc)))
            return
        values["uploaded_image"] = self.uploaded_image
        self.dismiss(values)

    def _resolve_category(self, raw: str) -> str | None:
        name = raw.strip()
        if not name:
            return None
        for category in self.categories:
            if category.lower() == name.lower():
                return category
        raise ValidationError(f"Unknown category {name!r}")

    def _resolve_image(self, raw: str) -> str | None:
        value = raw.strip()
        if not value:
            return None
        if is_emoji(value) or value.startswith(_URL_PREFIXES):
            return value
        self.uploaded_image = self.app.image_store.upload(value)
        return self.uploaded_image

    def _refresh_color(self) -> None:
        label = self.query_one("#item-color", Static)
        if self.color is None:
            label.update("Color: default")
        else:
            label.update(f"Color: [{self.color}]■[/] {self.color}")
