"""Single-field name prompt, used for categories."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Input, Static

from juice_pos.errors import ValidationError
from juice_pos.stores import validate_name


class NameModal(ModalScreen[str | None]):
    """Prompt for a non-empty name."""

    BINDINGS = [("escape", "close", "Cancel")]

    CSS = """
    NameModal {
        align: center middle;
        background: $background 60%;
    }

    #name-dialog {
        width: 48;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #name-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #name-error {
        color: #ffb3b3;
    }
    """

    def __init__(self, title: str, value: str = "") -> None:
        super().__init__()
        self.title_text = title
        self.initial = value

    def compose(self) -> ComposeResult:
        with Container(id="name-dialog"):
            yield Static(self.title_text, id="name-title")
            yield Input(value=self.initial, placeholder="Name", id="name-value")
            yield Static(id="name-error")
            yield Static("Enter confirm. Esc cancel.")

    def on_mount(self) -> None:
        self.query_one("#name-value", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        try:
            name = validate_name(event.value)
        except ValidationError as exc:
            self.query_one("#name-error", Static).update(Text(str(exc)))
            return
        self.dismiss(name)

    def action_close(self) -> None:
        self.dismiss(None)
