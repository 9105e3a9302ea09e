"""
CSV row source for ledger exports.
Uses pandas to read the file; every cell is kept as text for the normalizer.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from errors import MalformedInputError

logger = logging.getLogger(__name__)


def read_rows(path: Union[str, Path], max_bytes: Optional[int] = None) -> List[Dict[str, str]]:
    """
    Read a ledger export into a list of column -> text mappings.

    Args:
        path: Path to a .csv file
        max_bytes: Reject files larger than this many bytes

    Returns:
        One dict per data row, in file order; blank cells are empty strings

    Raises:
        MalformedInputError: If the file is missing, not a CSV, too large or unparsable
    """
    path = Path(path)
    if path.suffix.lower() != '.csv':
        raise MalformedInputError(f"Only CSV files are allowed: {path.name}")
    if not path.is_file():
        raise MalformedInputError(f"File not found: {path}")

    size = path.stat().st_size
    if max_bytes is not None and size > max_bytes:
        raise MalformedInputError(f"{path.name} is {size} bytes, limit is {max_bytes}")
    if size == 0:
        logger.info(f"{path.name} is empty")
        return []

    try:
        df = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            encoding='utf-8-sig'
        )
    except pd.errors.EmptyDataError:
        return []
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError) as e:
        raise MalformedInputError(f"Could not parse {path.name}: {e}") from e
    except OSError as e:
        raise MalformedInputError(f"Could not read {path.name}: {e}") from e

    df.columns = [str(column).strip() for column in df.columns]
    rows = df.to_dict(orient='records')
    logger.info(f"Read {len(rows)} rows from {path.name}")
    return rows
