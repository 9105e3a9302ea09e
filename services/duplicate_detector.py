"""
Duplicate detection against the natural-key index of the record store.
"""

from typing import Optional

from models import TradeRecordBase
from repositories import TradeRecordRepository


class DuplicateDetector:
    """Read-only natural-key lookups; no side effects."""

    def __init__(self, repository: TradeRecordRepository):
        self.repository = repository

    def exists(self, first_buy_time: Optional[str], last_sell_time: Optional[str], item: Optional[str]) -> bool:
        """Check whether the (first_buy_time, last_sell_time, item) triple is stored."""
        return self.repository.exists(first_buy_time, last_sell_time, item)

    def is_duplicate(self, record: TradeRecordBase) -> bool:
        """Check whether a normalized draft collides with a stored record."""
        return self.exists(*record.natural_key)
