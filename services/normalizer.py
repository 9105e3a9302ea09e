"""
Record normalization for ledger exports.
Maps a raw spreadsheet row with heterogeneous column names onto a TradeRecordBase.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from models import TradeRecordBase

logger = logging.getLogger(__name__)


# Canonical field -> (human label, normalized key). The label wins when both are present.
FIELD_ALIASES = {
    'first_buy_time': ('First buy time', 'first_buy_time'),
    'last_sell_time': ('Last sell time', 'last_sell_time'),
    'account': ('Account', 'account'),
    'item': ('Item', 'item'),
    'status': ('Status', 'status'),
    'bought': ('Bought', 'bought'),
    'sold': ('Sold', 'sold'),
    'avg_buy_price': ('Avg. buy price', 'avg_buy_price'),
    'avg_sell_price': ('Avg. sell price', 'avg_sell_price'),
    'tax': ('Tax', 'tax'),
    'profit': ('Profit', 'profit'),
    'profit_ea': ('Profit ea.', 'profit_ea'),
}

TEXT_FIELDS: Tuple[str, ...] = ('first_buy_time', 'last_sell_time', 'account', 'item', 'status')
INTEGER_FIELDS: Tuple[str, ...] = (
    'bought', 'sold', 'avg_buy_price', 'avg_sell_price', 'tax', 'profit', 'profit_ea'
)

_LEADING_INT = re.compile(r'[+-]?\d+')
_THOUSANDS_SEPARATORS = str.maketrans('', '', ',_ ')


@dataclass
class NormalizedRow:
    """A normalized draft plus the integer fields that fell back to 0."""
    record: TradeRecordBase
    coerced_fields: List[str] = field(default_factory=list)


def pick_value(row: Mapping[str, Any], canonical: str) -> Optional[str]:
    """
    Look up a field under its human label first, then its normalized key.

    Values are returned exactly as exported, surrounding spaces included, so
    natural keys compare byte for byte. Blank or whitespace-only values count
    as missing, so an empty label column falls through to the normalized one.
    """
    for column in FIELD_ALIASES[canonical]:
        value = row.get(column)
        if value is None:
            continue
        text = str(value)
        if text.strip():
            return text
    return None


def parse_int(value: Optional[str]) -> Optional[int]:
    """
    Parse the leading signed integer of a cell.

    Examples:
        >>> parse_int("1,234,567")
        1234567
        >>> parse_int("-52")
        -52
        >>> parse_int("12.7")
        12
        >>> parse_int("abc") is None
        True
    """
    if value is None:
        return None
    match = _LEADING_INT.match(value.strip().translate(_THOUSANDS_SEPARATORS))
    if match is None:
        return None
    return int(match.group())


def normalize_row(row: Mapping[str, Any]) -> NormalizedRow:
    """
    Convert a raw row into a canonical record draft.
    Never raises; unparsable or missing integers become 0.

    Args:
        row: Column name -> raw cell value

    Returns:
        NormalizedRow with the draft and the names of integer fields that were coerced
    """
    values = {}
    coerced = []

    for name in TEXT_FIELDS:
        values[name] = pick_value(row, name)

    for name in INTEGER_FIELDS:
        raw = pick_value(row, name)
        parsed = parse_int(raw)
        if parsed is None:
            parsed = 0
            if raw is not None:
                coerced.append(name)
        values[name] = parsed

    if coerced:
        logger.warning(f"Unparsable numbers for {values['item']!r} defaulted to 0: {', '.join(coerced)}")

    return NormalizedRow(record=TradeRecordBase(**values), coerced_fields=coerced)
