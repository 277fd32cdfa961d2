"""Editable static catalogs for the juice counter."""

from __future__ import annotations

# Seeded into an empty database so the Menu screen starts with sensible groups.
DEFAULT_CATEGORIES: list[str] = [
    "Juices",
    "Smoothies",
    "Milkshakes",
    "Mocktails",
    "Specials",
]

# Built-in glyphs offered instead of uploading a photo.
MENU_EMOJIS: list[str] = [
    "🍊",
    "🍎",
    "🍋",
    "🍇",
    "🍓",
    "🥭",
    "🍍",
    "🍉",
    "🍌",
    "🥝",
    "🍑",
    "🍒",
    "🥥",
    "🍈",
    "🫐",
    "🥕",
    "🥤",
    "🧃",
    "🍹",
    "🥛",
]

MENU_COLORS: list[str] = [
    "#f59e0b",
    "#ef4444",
    "#22c55e",
    "#a855f7",
    "#ec4899",
    "#0ea5e9",
]

NAV_ITEMS: list[tuple[str, str, str]] = [
    ("f1", "dashboard", "Dashboard"),
    ("f2", "menu", "Menu"),
    ("f3", "billing", "Billing"),
    ("f4", "history", "History"),
]
