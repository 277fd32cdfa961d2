"""Error types raised across the POS."""

from __future__ import annotations


class PosError(Exception):
    """Base class for every handled POS failure."""


class ValidationError(PosError):
    """User input rejected before any backend call."""


class EmptyOrderError(ValidationError):
    """Checkout attempted with nothing in the cart."""

    def __init__(self, message: str = "Add items to the order first") -> None:
        super().__init__(message)


class ImageUploadError(ValidationError):
    """Uploaded file is too large or not an image."""


class BackendError(PosError):
    """A backend read or write failed."""


class DuplicateNameError(BackendError):
    """A unique name column already holds the value."""


class BillCreationError(PosError):
    """Persisting a bill failed; the cause is chained."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Failed to create bill: {cause}")
        self.cause = cause
