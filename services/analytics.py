"""
Analytics service: dashboard summary, daily returns and the net-worth timeline.
All computations are read-only over the record store.

Sub-queries fan out over a thread pool and are joined before any result is
built; if one fails the whole call fails.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from models import TradeRecord
from repositories import TradeRecordRepository

logger = logging.getLogger(__name__)

TOP_LIMIT = 10
NO_COMPLETED_TRADES = "No completed trades"


@dataclass
class ItemProfit:
    """Summed profit of one item over its FINISHED records."""
    item: str
    total_profit: int


@dataclass
class DashboardSummary:
    """Headline statistics for the whole ledger."""
    total_profit: int = 0
    completed_flips: int = 0
    total_records: int = 0
    top_flips: List[TradeRecord] = field(default_factory=list)
    top_items: List[ItemProfit] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_profit': self.total_profit,
            'completed_flips': self.completed_flips,
            'total_records': self.total_records,
            'top_flips': [record.model_dump() for record in self.top_flips],
            'top_items': [asdict(item) for item in self.top_items],
        }


@dataclass
class DailyBucket:
    """One calendar day of trade activity, keyed by import date."""
    date: date
    total_trades: int
    daily_profit: int
    finished_trades: int
    active_trades: int
    top_item: str = NO_COMPLETED_TRADES
    top_item_profit: int = 0
    distinct_items: int = 0


@dataclass
class TimelinePoint:
    """A daily bucket projected onto the running net worth."""
    date: date
    daily_profit: int
    total_trades: int
    finished_trades: int
    active_trades: int
    top_item: str
    top_item_profit: int
    flips: int
    items: int
    net_worth: int
    roi: float  # Percent
    growth: float  # Percent of the previous day's net worth


@dataclass
class WeeklyComparison:
    """The most recent days in chronological order and their combined profit."""
    week_data: List[DailyBucket]
    week_total_profit: int


def project_timeline(
    buckets: List[DailyBucket],
    starting_net_worth: int,
    unit_investment_estimate: int
) -> List[TimelinePoint]:
    """
    Accumulate daily profit onto a starting net worth.

    Buckets are processed oldest first; the result is returned newest first.

    Args:
        buckets: Daily buckets in any order
        starting_net_worth: Net worth before the first day
        unit_investment_estimate: Assumed capital tied up per finished flip

    Returns:
        List of TimelinePoint, newest date first
    """
    points = []
    net_worth = starting_net_worth

    for bucket in sorted(buckets, key=lambda b: b.date):
        previous_net_worth = net_worth
        net_worth += bucket.daily_profit

        invested = bucket.finished_trades * unit_investment_estimate
        roi = (bucket.daily_profit * 100) / invested if invested > 0 else 0.0
        growth = (bucket.daily_profit * 100) / previous_net_worth if previous_net_worth > 0 else 0.0

        points.append(TimelinePoint(
            date=bucket.date,
            daily_profit=bucket.daily_profit,
            total_trades=bucket.total_trades,
            finished_trades=bucket.finished_trades,
            active_trades=bucket.active_trades,
            top_item=bucket.top_item,
            top_item_profit=bucket.top_item_profit,
            flips=bucket.total_trades,
            items=bucket.distinct_items,
            net_worth=net_worth,
            roi=roi,
            growth=growth
        ))

    points.reverse()
    return points


class AnalyticsService:
    """
    Aggregations over the record store.
    Configuration values are injected; nothing here reads settings.
    """

    def __init__(
        self,
        repository: TradeRecordRepository,
        starting_net_worth: int,
        unit_investment_estimate: int,
        max_workers: int = 4
    ):
        self.repository = repository
        self.starting_net_worth = starting_net_worth
        self.unit_investment_estimate = unit_investment_estimate
        self.max_workers = max_workers

    def _gather(self, tasks: Dict[Any, Callable[[], Any]]) -> Dict[Any, Any]:
        """
        Run independent queries and wait for all of them.

        Raises:
            The first failing query's exception, after every query has finished
        """
        if self.max_workers <= 1 or len(tasks) <= 1:
            return {key: task() for key, task in tasks.items()}

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(tasks))) as executor:
            futures = {key: executor.submit(task) for key, task in tasks.items()}
            return {key: future.result() for key, future in futures.items()}

    def dashboard_summary(self) -> DashboardSummary:
        """
        Calculate ledger-wide totals and leaderboards.

        Returns:
            DashboardSummary; all zeros and empty lists for an empty store
        """
        repo = self.repository
        results = self._gather({
            'total_profit': repo.total_finished_profit,
            'completed_flips': repo.count_finished,
            'total_records': repo.count,
            'top_flips': lambda: repo.top_by_profit(TOP_LIMIT),
            'top_items': lambda: repo.top_items_by_profit(TOP_LIMIT),
        })

        return DashboardSummary(
            total_profit=results['total_profit'],
            completed_flips=results['completed_flips'],
            total_records=results['total_records'],
            top_flips=results['top_flips'],
            top_items=[ItemProfit(item=item, total_profit=total) for item, total in results['top_items']]
        )

    def daily_buckets(self) -> List[DailyBucket]:
        """
        Roll records up per import date and attach each day's best finished flip.

        Returns:
            List of DailyBucket, newest date first
        """
        rows = self.repository.daily_rollup()
        tops = self._gather({
            row.day: (lambda day=row.day: self.repository.top_finished_for_day(day))
            for row in rows
        })

        buckets = []
        for row in rows:
            top: Optional[TradeRecord] = tops.get(row.day)
            buckets.append(DailyBucket(
                date=row.day,
                total_trades=row.total_trades,
                daily_profit=row.daily_profit,
                finished_trades=row.finished_trades,
                active_trades=row.active_trades,
                top_item=top.item if top is not None else NO_COMPLETED_TRADES,
                top_item_profit=top.profit if top is not None else 0,
                distinct_items=row.distinct_items
            ))

        buckets.sort(key=lambda b: b.date, reverse=True)
        return buckets

    def daily_returns(self) -> List[DailyBucket]:
        """Alias of daily_buckets() under the name the reports use."""
        return self.daily_buckets()

    def timeline(self) -> List[TimelinePoint]:
        """Net-worth timeline built from the daily buckets, newest date first."""
        points = project_timeline(
            self.daily_buckets(),
            self.starting_net_worth,
            self.unit_investment_estimate
        )
        if points:
            logger.debug(f"Timeline over {len(points)} days ends at net worth {points[0].net_worth}")
        return points

    def weekly_comparison(self, days: int = 7) -> WeeklyComparison:
        """
        Profit over the most recent days that have activity.

        Args:
            days: Number of most recent buckets to include

        Returns:
            WeeklyComparison with buckets oldest first
        """
        recent = self.daily_buckets()[:days]
        recent.reverse()
        return WeeklyComparison(
            week_data=recent,
            week_total_profit=sum(bucket.daily_profit for bucket in recent)
        )
