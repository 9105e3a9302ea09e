"""
TradeRecord model - one buy/sell flip imported from a ledger export.
"""

from typing import Optional, Tuple
from datetime import datetime
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import SQLModel, Field

FINISHED = "FINISHED"
SELLING = "SELLING"


class TradeRecordBase(SQLModel):
    """
    Canonical fields of a flip, as produced by the normalizer.
    Timestamps are kept exactly as the export wrote them.
    """
    first_buy_time: Optional[str] = Field(default=None)
    last_sell_time: Optional[str] = Field(default=None)
    account: Optional[str] = Field(default=None)
    item: Optional[str] = Field(default=None)
    status: Optional[str] = Field(default=None)  # "FINISHED", "SELLING", any case

    bought: int = Field(default=0)
    sold: int = Field(default=0)
    avg_buy_price: int = Field(default=0)
    avg_sell_price: int = Field(default=0)
    tax: int = Field(default=0)
    profit: int = Field(default=0)  # May be negative
    profit_ea: int = Field(default=0)

    @property
    def natural_key(self) -> Tuple[Optional[str], Optional[str], Optional[str]]:
        """The (first_buy_time, last_sell_time, item) triple used for deduplication."""
        return (self.first_buy_time, self.last_sell_time, self.item)


class TradeRecord(TradeRecordBase, table=True):
    """A stored flip. Never updated once written."""
    __tablename__ = "trade_record"
    __table_args__ = (
        UniqueConstraint("first_buy_time", "last_sell_time", "item", name="uq_trade_record_natural_key"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    account: str = Field(nullable=False)
    item: str = Field(nullable=False, index=True)
    status: str = Field(nullable=False, index=True)
    # Local wall-clock time; the daily rollup buckets on its calendar date
    import_timestamp: datetime = Field(
        default_factory=datetime.now,
        index=True,
        sa_type=DateTime(timezone=False)
    )
