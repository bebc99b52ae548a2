"""Exception types raised by the store and services."""

from __future__ import annotations


class BalanceBookError(Exception):
    """Base exception for BalanceBook operations."""


class ConstraintViolation(BalanceBookError):
    """A uniqueness constraint rejected an insert or replace."""

    def __init__(self, collection: str, message: str | None = None) -> None:
        self.collection = collection
        super().__init__(message or f"Uniqueness constraint violated in '{collection}'")


class NotFound(BalanceBookError):
    """Lookup miss.

    The store reports misses by returning ``None``; this type exists for
    callers that prefer to turn a miss into an exception.
    """


class InvalidFormat(BalanceBookError, ValueError):
    """An import payload does not match the export file shape."""


class InvalidInput(BalanceBookError, ValueError):
    """A registration or balance entry failed field validation."""


class StorageUnavailable(BalanceBookError):
    """The underlying database could not be opened."""


__all__ = [
    "BalanceBookError",
    "ConstraintViolation",
    "NotFound",
    "InvalidFormat",
    "InvalidInput",
    "StorageUnavailable",
]
