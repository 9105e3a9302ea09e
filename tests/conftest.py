from datetime import datetime

import pytest

from db_engine import create_db_engine, init_db
from models import TradeRecordBase
from repositories import TradeRecordRepository


class FakeClock:
    """Callable clock whose time the test moves by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_record(**overrides) -> TradeRecordBase:
    values = {
        'first_buy_time': "2026-03-01 10:00",
        'last_sell_time': "2026-03-01 11:00",
        'account': "Zezima",
        'item': "Rune scimitar",
        'status': "FINISHED",
        'bought': 10,
        'sold': 10,
        'avg_buy_price': 14_800,
        'avg_sell_price': 15_200,
        'tax': 100,
        'profit': 3_900,
        'profit_ea': 390,
    }
    values.update(overrides)
    return TradeRecordBase(**values)


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'ledger.db'}"


@pytest.fixture
def engine(db_url):
    engine = create_db_engine(db_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 12, 0, 0))


@pytest.fixture
def repository(engine, clock) -> TradeRecordRepository:
    return TradeRecordRepository(engine, clock=clock)
