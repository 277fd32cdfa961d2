"""Local image storage for menu item photos."""

from __future__ import annotations

import logging
import mimetypes
import shutil
import unicodedata
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname
from uuid import uuid4

from PIL import Image, UnidentifiedImageError

from juice_pos.config import IMAGE_DIR, IMAGE_UPLOAD_MAX_BYTES
from juice_pos.errors import ImageUploadError

logger = logging.getLogger(__name__)

# Joiners and presentation selectors that may appear inside one emoji glyph.
_EMOJI_JOINERS = {"\u200d", "\ufe0e", "\ufe0f"}


def is_emoji(text: str | None) -> bool:
    """True for short strings made only of pictographic symbols (🍊, 🥭, ❤️)."""
    if not text or len(text) > 4:
        return False
    has_symbol = False
    for char in text:
        if char in _EMOJI_JOINERS or unicodedata.category(char) == "Sk":
            continue
        if unicodedata.category(char) != "So":
            return False
        has_symbol = True
    return has_symbol


class ImageStore:
    """Copies uploaded photos into a directory and hands back a file URL."""

    def __init__(self, root: str | Path = IMAGE_DIR, max_bytes: int = IMAGE_UPLOAD_MAX_BYTES) -> None:
        self.root = Path(root)
        self.max_bytes = max_bytes

    def upload(self, source: str | Path) -> str:
        path = Path(source).expanduser()
        if not path.is_file():
            raise ImageUploadError(f"File not found: {path}")

        size = path.stat().st_size
        if size > self.max_bytes:
            limit_mib = self.max_bytes / (1024 * 1024)
            raise ImageUploadError(f"Image must be smaller than {limit_mib:g} MB")

        mime, _ = mimetypes.guess_type(path.name)
        if mime is None or not mime.startswith("image/"):
            raise ImageUploadError("Please choose an image file")

        try:
            with Image.open(path) as img:
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError) as exc:
            raise ImageUploadError(f"Not a readable image: {exc}") from exc

        self.root.mkdir(parents=True, exist_ok=True)
        target = self.root / f"{uuid4().hex}{path.suffix.lower()}"
        shutil.copyfile(path, target)
        logger.info("image_uploaded source=%s target=%s bytes=%d", path, target, size)
        return target.resolve().as_uri()

    def discard(self, url: str | None) -> bool:
        """Delete a photo this store uploaded. Other URLs and emoji are left alone."""
        if not url or not url.startswith("file://"):
            return False
        target = Path(url2pathname(urlparse(url).path))
        if target.parent != self.root.resolve() or not target.is_file():
            return False
        target.unlink()
        logger.info("image_discarded target=%s", target)
        return True
