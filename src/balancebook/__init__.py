"""BalanceBook: local user registry with monthly balances."""

from __future__ import annotations

from .config import BaseConfig, TestingConfig
from .errors import (
    BalanceBookError,
    ConstraintViolation,
    InvalidFormat,
    InvalidInput,
    NotFound,
    StorageUnavailable,
)
from .store import BalanceStore

__all__ = [
    "BalanceBookError",
    "BalanceStore",
    "BaseConfig",
    "ConstraintViolation",
    "InvalidFormat",
    "InvalidInput",
    "NotFound",
    "StorageUnavailable",
    "TestingConfig",
]
