"""Models module exporting all database models."""

from .stored_value import StoredValue

__all__ = [
    "StoredValue",
]
