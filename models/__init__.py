"""
Database models for FlipLedger.
All SQLModel table definitions are centralized here.
"""

from models.trade_record import TradeRecord, TradeRecordBase, FINISHED, SELLING

__all__ = [
    'TradeRecord',
    'TradeRecordBase',
    'FINISHED',
    'SELLING',
]
