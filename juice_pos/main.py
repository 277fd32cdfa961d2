"""Entry point for the juice counter Textual app."""

from __future__ import annotations

import logging
from pathlib import Path

from juice_pos.config import LOG_PATH
from juice_pos.receipt_app import JuicePosApp


def configure_logging(path: str = LOG_PATH, level: int = logging.INFO) -> None:
    """Send log records to a file; the terminal belongs to the UI."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=path,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    JuicePosApp().run()


if __name__ == "__main__":
    main()
