"""Exception hierarchy for the table store.

Defines all custom exceptions used throughout the implementation.
"""

from __future__ import annotations


class StorageError(Exception):
    """Base exception for all table store errors."""
    pass


class NotFoundError(StorageError):
    """Raised when a named table or index does not exist."""
    pass


class TableNotFoundError(NotFoundError):
    """Raised when opening a table that was never defined."""

    def __init__(self, name: str):
        super().__init__(f"A table named '{name}' couldn't be found.")
        self.name = name


class IndexNotFoundError(NotFoundError):
    """Raised when listing by an index the table does not define."""

    def __init__(self, table: str, index: str):
        super().__init__(f"An index named '{index}' could not be found on table '{table}'.")
        self.table = table
        self.index = index


class InvalidContinuationError(StorageError):
    """Raised when a continuation token is not a non-negative offset."""
    pass


class SelfTestError(StorageError):
    """Raised when a self-test check fails."""
    pass
