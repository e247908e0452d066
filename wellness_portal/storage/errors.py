"""Storage layer exceptions."""

from __future__ import annotations


class StorageError(RuntimeError):
    """A document store read or write failed."""

    def __init__(self, collection: str, message: str) -> None:
        super().__init__(f"{collection}: {message}")
        self.collection = collection
