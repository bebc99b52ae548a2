"""Service module exports."""

from . import data_transfer, entries, reports

__all__ = ["data_transfer", "entries", "reports"]
