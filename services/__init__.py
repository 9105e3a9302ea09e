"""
Services package for FlipLedger.
Provides core business logic separated from presentation and data layers.
"""

from services.normalizer import (
    FIELD_ALIASES,
    NormalizedRow,
    normalize_row,
    parse_int,
    pick_value
)
from services.duplicate_detector import DuplicateDetector
from services.csv_source import read_rows
from services.importer import ImportService, ImportResult
from services.analytics import (
    AnalyticsService,
    DashboardSummary,
    DailyBucket,
    ItemProfit,
    TimelinePoint,
    WeeklyComparison,
    project_timeline
)

__all__ = [
    # Normalization
    'FIELD_ALIASES',
    'NormalizedRow',
    'normalize_row',
    'parse_int',
    'pick_value',
    # Services
    'DuplicateDetector',
    'read_rows',
    'ImportService',
    'ImportResult',
    # Analytics
    'AnalyticsService',
    'DashboardSummary',
    'DailyBucket',
    'ItemProfit',
    'TimelinePoint',
    'WeeklyComparison',
    'project_timeline',
]
