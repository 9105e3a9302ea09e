"""
Exception types for FlipLedger.

RowError is recovered by the importer; StoreUnavailableError and
MalformedInputError always reach the caller.
"""

from typing import Optional


class FlipLedgerError(Exception):
    """Base class for all FlipLedger errors."""


class RowError(FlipLedgerError):
    """A single import row could not be normalized or stored."""

    def __init__(self, message: str, row_number: Optional[int] = None):
        super().__init__(message)
        self.row_number = row_number

    def __str__(self) -> str:
        message = super().__str__()
        if self.row_number is None:
            return message
        return f"row {self.row_number}: {message}"


class StoreUnavailableError(FlipLedgerError):
    """The storage backend cannot be reached or initialized."""


class MalformedInputError(FlipLedgerError):
    """The raw row source itself cannot be read."""
