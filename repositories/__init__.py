"""
Repositories package for FlipLedger.
Provides data access layer for all database operations.
"""

from repositories.trade_record_repository import TradeRecordRepository, InsertResult, DailyRollupRow

__all__ = [
    'TradeRecordRepository',
    'InsertResult',
    'DailyRollupRow',
]
