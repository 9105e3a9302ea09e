"""
TradeRecord Repository - data access layer for TradeRecord model.
Optimized with optional session parameter for transaction reuse.

Inserts are idempotent on the natural key (first_buy_time, last_sell_time, item):
a colliding insert is a no-op reported as inserted=False, never an error.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple, TypeVar

from sqlalchemy import case, func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session, select

from errors import StoreUnavailableError
from models import FINISHED, SELLING, TradeRecord, TradeRecordBase

logger = logging.getLogger(__name__)

T = TypeVar("T")

RECORD_FIELDS = set(TradeRecordBase.model_fields)


@dataclass
class InsertResult:
    """Outcome of a single insert."""
    record_id: Optional[int]
    inserted: bool


@dataclass
class DailyRollupRow:
    """Per-date totals straight from the store, before the top item is attached."""
    day: date
    total_trades: int
    daily_profit: int
    finished_trades: int
    active_trades: int
    distinct_items: int


def _status_is(status: str):
    """Case-insensitive status comparison."""
    return func.upper(TradeRecord.status) == status.upper()


def _import_day():
    return func.date(TradeRecord.import_timestamp)


def _as_date(value) -> date:
    """SQLite hands back DATE() as text, other backends as a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


class TradeRecordRepository:
    """Repository for TradeRecord create/read operations."""

    def __init__(self, engine: Engine, clock: Callable[[], datetime] = datetime.now):
        """
        Args:
            engine: Engine for the record store
            clock: Source of import timestamps, called once per inserted record
        """
        self.engine = engine
        self.clock = clock

    def _run(self, operation: Callable[[Session], T], session: Optional[Session] = None) -> T:
        """Run an operation on the given session, or on a fresh one."""
        try:
            if session is not None:
                return operation(session)
            with Session(self.engine) as session:
                return operation(session)
        except OperationalError as e:
            raise StoreUnavailableError(f"Record store unavailable: {e.orig or e}") from e

    @staticmethod
    def _find_by_key(
        sess: Session,
        first_buy_time: Optional[str],
        last_sell_time: Optional[str],
        item: Optional[str]
    ) -> Optional[TradeRecord]:
        # "== None" compiles to IS NULL, so absent key parts match each other
        statement = select(TradeRecord).where(
            TradeRecord.first_buy_time == first_buy_time,
            TradeRecord.last_sell_time == last_sell_time,
            TradeRecord.item == item
        ).order_by(TradeRecord.id.asc()).limit(1)
        return sess.exec(statement).first()

    # ==================== Writes ====================

    def insert(self, record: TradeRecordBase, session: Optional[Session] = None) -> InsertResult:
        """
        Insert a flip unless its natural key is already stored.

        Args:
            record: Normalized record draft; id and import_timestamp are ignored
            session: Optional existing session for transaction reuse

        Returns:
            InsertResult with the stored id and whether a row was written

        Raises:
            IntegrityError: If the row violates a constraint other than the natural key
            StoreUnavailableError: If the store cannot be reached
        """
        def _insert(sess: Session) -> InsertResult:
            key = record.natural_key
            existing = self._find_by_key(sess, *key)
            if existing is not None:
                logger.debug(f"Skipping insert, natural key {key} already stored as id {existing.id}")
                return InsertResult(record_id=existing.id, inserted=False)

            trade = TradeRecord(
                **record.model_dump(include=RECORD_FIELDS),
                import_timestamp=self.clock()
            )
            sess.add(trade)
            try:
                sess.commit()
            except IntegrityError:
                sess.rollback()
                existing = self._find_by_key(sess, *key)
                if existing is not None:
                    return InsertResult(record_id=existing.id, inserted=False)
                raise
            sess.refresh(trade)
            return InsertResult(record_id=trade.id, inserted=True)

        return self._run(_insert, session)

    # ==================== Reads ====================

    def exists(
        self,
        first_buy_time: Optional[str],
        last_sell_time: Optional[str],
        item: Optional[str],
        session: Optional[Session] = None
    ) -> bool:
        """Check whether a record with this natural key is stored."""
        return self._run(
            lambda sess: self._find_by_key(sess, first_buy_time, last_sell_time, item) is not None,
            session
        )

    def list_records(self, status: Optional[str] = None, session: Optional[Session] = None) -> List[TradeRecord]:
        """
        Retrieve records, most recently imported first.

        Args:
            status: Optional status filter, matched case-insensitively
            session: Optional existing session for transaction reuse

        Returns:
            List of TradeRecord objects
        """
        def _list(sess: Session) -> List[TradeRecord]:
            statement = select(TradeRecord)
            if status:
                statement = statement.where(_status_is(status))
            statement = statement.order_by(TradeRecord.import_timestamp.desc(), TradeRecord.id.desc())
            return list(sess.exec(statement).all())

        return self._run(_list, session)

    def get_by_id(self, record_id: int, session: Optional[Session] = None) -> Optional[TradeRecord]:
        """Retrieve a record by its surrogate id."""
        return self._run(lambda sess: sess.get(TradeRecord, record_id), session)

    def count(self, session: Optional[Session] = None) -> int:
        """Total number of stored records."""
        def _count(sess: Session) -> int:
            return sess.exec(select(func.count(TradeRecord.id))).one()

        return self._run(_count, session)

    # ==================== Aggregation primitives ====================

    def total_finished_profit(self, session: Optional[Session] = None) -> int:
        """Sum of profit over FINISHED records, 0 when there are none."""
        def _total(sess: Session) -> int:
            statement = select(func.coalesce(func.sum(TradeRecord.profit), 0)).where(_status_is(FINISHED))
            return int(sess.exec(statement).one())

        return self._run(_total, session)

    def count_finished(self, session: Optional[Session] = None) -> int:
        """Number of FINISHED records."""
        def _count(sess: Session) -> int:
            statement = select(func.count(TradeRecord.id)).where(_status_is(FINISHED))
            return sess.exec(statement).one()

        return self._run(_count, session)

    def top_by_profit(self, limit: int = 10, session: Optional[Session] = None) -> List[TradeRecord]:
        """Most profitable records of any status; ties keep insertion order."""
        def _top(sess: Session) -> List[TradeRecord]:
            statement = select(TradeRecord).order_by(
                TradeRecord.profit.desc(),
                TradeRecord.id.asc()
            ).limit(limit)
            return list(sess.exec(statement).all())

        return self._run(_top, session)

    def top_items_by_profit(self, limit: int = 10, session: Optional[Session] = None) -> List[Tuple[str, int]]:
        """
        Items ranked by summed profit over their FINISHED records.

        Returns:
            List of (item, total_profit) tuples; ties keep first-insertion order
        """
        def _top_items(sess: Session) -> List[Tuple[str, int]]:
            total_profit = func.sum(TradeRecord.profit).label("total_profit")
            first_id = func.min(TradeRecord.id).label("first_id")
            statement = (
                select(TradeRecord.item, total_profit, first_id)
                .where(_status_is(FINISHED))
                .group_by(TradeRecord.item)
                .order_by(total_profit.desc(), first_id.asc())
                .limit(limit)
            )
            return [(item, int(total or 0)) for item, total, _ in sess.exec(statement).all()]

        return self._run(_top_items, session)

    def daily_rollup(self, session: Optional[Session] = None) -> List[DailyRollupRow]:
        """
        Group records by the calendar date of their import timestamp.

        Returns:
            List of DailyRollupRow, newest date first
        """
        def _rollup(sess: Session) -> List[DailyRollupRow]:
            day = _import_day().label("day")
            finished = _status_is(FINISHED)
            selling = _status_is(SELLING)
            statement = (
                select(
                    day,
                    func.count(TradeRecord.id),
                    func.coalesce(func.sum(case((finished, TradeRecord.profit), else_=0)), 0),
                    func.count(case((finished, 1))),
                    func.count(case((selling, 1))),
                    func.count(TradeRecord.item.distinct()),
                )
                .group_by(day)
                .order_by(day.desc())
            )
            return [
                DailyRollupRow(
                    day=_as_date(row[0]),
                    total_trades=int(row[1]),
                    daily_profit=int(row[2]),
                    finished_trades=int(row[3]),
                    active_trades=int(row[4]),
                    distinct_items=int(row[5]),
                )
                for row in sess.exec(statement).all()
            ]

        return self._run(_rollup, session)

    def top_finished_for_day(self, day: date, session: Optional[Session] = None) -> Optional[TradeRecord]:
        """Highest-profit FINISHED record imported on a given date."""
        def _top(sess: Session) -> Optional[TradeRecord]:
            statement = select(TradeRecord).where(
                _status_is(FINISHED),
                _import_day() == day.isoformat()
            ).order_by(TradeRecord.profit.desc(), TradeRecord.id.asc()).limit(1)
            return sess.exec(statement).first()

        return self._run(_top, session)
