from datetime import date, datetime

import pytest

from conftest import make_record
from errors import StoreUnavailableError
from services.analytics import (
    NO_COMPLETED_TRADES,
    AnalyticsService,
    DailyBucket,
    project_timeline,
)


def _service(repository, starting_net_worth=100, unit_investment_estimate=1_000, max_workers=4):
    return AnalyticsService(
        repository,
        starting_net_worth=starting_net_worth,
        unit_investment_estimate=unit_investment_estimate,
        max_workers=max_workers
    )


def _bucket(day, daily_profit, finished_trades=1, total_trades=1, active_trades=0):
    return DailyBucket(
        date=day,
        total_trades=total_trades,
        daily_profit=daily_profit,
        finished_trades=finished_trades,
        active_trades=active_trades
    )


def _seed_two_days(repository, clock):
    clock.now = datetime(2026, 3, 1, 9, 0)
    repository.insert(make_record(item="Coal", profit=10, first_buy_time="a"))
    repository.insert(make_record(item="Shark", profit=30, first_buy_time="b"))
    repository.insert(make_record(item="Yew logs", profit=70, first_buy_time="c", status="selling"))
    clock.now = datetime(2026, 3, 2, 9, 0)
    repository.insert(make_record(item="Coal", profit=-5, first_buy_time="d", status="Finished"))
    repository.insert(make_record(item="Bones", profit=500, first_buy_time="e", status="SELLING"))


# ==================== Dashboard ====================

def test_empty_store_dashboard(repository):
    summary = _service(repository).dashboard_summary()

    assert summary.to_dict() == {
        'total_profit': 0,
        'completed_flips': 0,
        'total_records': 0,
        'top_flips': [],
        'top_items': [],
    }


def test_dashboard_totals_only_count_finished(repository, clock):
    _seed_two_days(repository, clock)

    summary = _service(repository).dashboard_summary()

    assert summary.total_profit == 10 + 30 - 5
    assert summary.completed_flips == 3
    assert summary.total_records == 5


def test_top_flips_include_every_status(repository, clock):
    _seed_two_days(repository, clock)

    summary = _service(repository).dashboard_summary()

    assert [record.item for record in summary.top_flips] == ["Bones", "Yew logs", "Shark", "Coal", "Coal"]
    assert [item.item for item in summary.top_items] == ["Shark", "Coal"]
    assert summary.top_items[1].total_profit == 5


def test_top_flips_capped_at_ten_and_non_increasing(repository):
    for n in range(15):
        repository.insert(make_record(item=f"Item {n}", profit=(n * 37) % 11))

    summary = _service(repository).dashboard_summary()
    profits = [record.profit for record in summary.top_flips]

    assert len(profits) == 10
    assert profits == sorted(profits, reverse=True)
    assert len(summary.top_items) == 10


def test_sequential_and_concurrent_dashboards_agree(repository, clock):
    _seed_two_days(repository, clock)

    concurrent = _service(repository, max_workers=4).dashboard_summary().to_dict()
    sequential = _service(repository, max_workers=1).dashboard_summary().to_dict()

    assert concurrent == sequential


@pytest.mark.parametrize("max_workers", [1, 4])
def test_dashboard_fails_as_a_whole_when_a_query_fails(repository, monkeypatch, max_workers):
    def broken(*args, **kwargs):
        raise StoreUnavailableError("gone")

    monkeypatch.setattr(repository, "top_items_by_profit", broken)

    with pytest.raises(StoreUnavailableError):
        _service(repository, max_workers=max_workers).dashboard_summary()


# ==================== Daily returns ====================

def test_daily_buckets(repository, clock):
    _seed_two_days(repository, clock)

    buckets = _service(repository).daily_buckets()

    assert [bucket.date for bucket in buckets] == [date(2026, 3, 2), date(2026, 3, 1)]
    latest, first = buckets

    assert first.total_trades == 3
    assert first.daily_profit == 40
    assert first.finished_trades == 2
    assert first.active_trades == 1
    assert (first.top_item, first.top_item_profit) == ("Shark", 30)
    assert first.distinct_items == 3

    assert latest.daily_profit == -5
    assert (latest.top_item, latest.top_item_profit) == ("Coal", -5)


def test_day_without_finished_trades(repository, clock):
    repository.insert(make_record(item="Bones", profit=500, status="SELLING"))

    bucket, = _service(repository).daily_returns()

    assert bucket.top_item == NO_COMPLETED_TRADES
    assert bucket.top_item_profit == 0
    assert bucket.daily_profit == 0


def test_finished_plus_active_never_exceeds_total(repository, clock):
    statuses = ["FINISHED", "SELLING", "CANCELLED", "finished", "BUYING", "selling"]
    for n, status in enumerate(statuses):
        clock.now = datetime(2026, 3, 1 + n % 2, 12, 0)
        repository.insert(make_record(item=f"Item {n}", status=status))

    for bucket in _service(repository, max_workers=1).daily_buckets():
        assert bucket.finished_trades + bucket.active_trades <= bucket.total_trades


def test_weekly_comparison_is_chronological(repository, clock):
    for day in range(1, 10):
        clock.now = datetime(2026, 3, day, 12, 0)
        repository.insert(make_record(item=f"Item {day}", profit=day))

    week = _service(repository).weekly_comparison()

    assert [bucket.date.day for bucket in week.week_data] == [3, 4, 5, 6, 7, 8, 9]
    assert week.week_total_profit == sum(range(3, 10))


# ==================== Timeline ====================

def test_timeline_net_worth_and_growth():
    buckets = [
        _bucket(date(2026, 3, 2), daily_profit=-5),
        _bucket(date(2026, 3, 1), daily_profit=10),
    ]

    points = project_timeline(buckets, starting_net_worth=100, unit_investment_estimate=1_000)

    assert [point.date for point in points] == [date(2026, 3, 2), date(2026, 3, 1)]
    ascending = list(reversed(points))
    assert [point.net_worth for point in ascending] == [110, 105]
    assert ascending[0].growth == pytest.approx(10 * 100 / 100)
    assert ascending[1].growth == pytest.approx(-5 * 100 / 110)


def test_timeline_roi_uses_unit_investment_estimate():
    points = project_timeline(
        [_bucket(date(2026, 3, 1), daily_profit=500, finished_trades=2, total_trades=3)],
        starting_net_worth=1_000,
        unit_investment_estimate=1_000
    )

    assert points[0].roi == pytest.approx(500 * 100 / 2_000)
    assert points[0].flips == 3


def test_timeline_zero_denominators_give_zero():
    no_finished = project_timeline(
        [_bucket(date(2026, 3, 1), daily_profit=50, finished_trades=0)],
        starting_net_worth=0,
        unit_investment_estimate=1_000
    )
    no_estimate = project_timeline(
        [_bucket(date(2026, 3, 1), daily_profit=50, finished_trades=4)],
        starting_net_worth=0,
        unit_investment_estimate=0
    )

    assert no_finished[0].roi == 0
    assert no_finished[0].growth == 0
    assert no_estimate[0].roi == 0


def test_timeline_ends_at_start_plus_all_profit(repository, clock):
    _seed_two_days(repository, clock)
    service = _service(repository, starting_net_worth=198_000_000)

    points = service.timeline()
    buckets = service.daily_buckets()

    assert points[0].net_worth == 198_000_000 + sum(bucket.daily_profit for bucket in buckets)
    assert [point.items for point in points] == [2, 3]


def test_timeline_is_deterministic(repository, clock):
    _seed_two_days(repository, clock)
    service = _service(repository)

    assert service.timeline() == service.timeline()


def test_timeline_non_decreasing_on_profitable_days():
    buckets = [_bucket(date(2026, 3, day), daily_profit=day * 3) for day in range(1, 8)]

    ascending = list(reversed(project_timeline(buckets, 50, 10)))
    net_worths = [point.net_worth for point in ascending]

    assert net_worths == sorted(net_worths)


def test_empty_timeline(repository):
    assert _service(repository).timeline() == []
