"""
Import service: drives raw ledger rows through normalization, duplicate
detection and insertion, and tallies the outcome of the batch.

Imports are expected to run one at a time; there is no locking here.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Union

from errors import RowError
from repositories import TradeRecordRepository
from services.csv_source import read_rows
from services.duplicate_detector import DuplicateDetector
from services.normalizer import normalize_row

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Counters for one import batch."""
    new_records: int = 0
    duplicates: int = 0
    errors: int = 0
    total_in_store: int = 0
    coerced_rows: int = 0  # Rows with at least one integer that fell back to 0; informational only
    row_errors: List[RowError] = field(default_factory=list)

    @property
    def status(self) -> str:
        """'success' if anything was added, 'warning' if only duplicates, else 'info'."""
        if self.new_records > 0:
            return "success"
        if self.duplicates > 0:
            return "warning"
        return "info"

    def summary(self) -> str:
        """One-line, human-readable description of the batch."""
        if self.new_records > 0:
            outcome = f"{self.errors} errors encountered." if self.errors else "No errors."
            return (
                f"Import complete! Added {self.new_records} new records. "
                f"Skipped {self.duplicates} duplicates. "
                f"Total records: {self.total_in_store}. {outcome}"
            )
        if self.duplicates > 0:
            return (
                f"No new data imported. All {self.duplicates} records were duplicates. "
                f"Total records: {self.total_in_store}"
            )
        return "No valid trading records found in the uploaded file. Please check the format."


class ImportService:
    """
    Batch importer for ledger exports.
    Row failures, store errors included, are counted and skipped. An unreachable
    store fails the batch before the first row or when reading the final total.
    """

    def __init__(self, repository: TradeRecordRepository, detector: Optional[DuplicateDetector] = None):
        self.repository = repository
        self.detector = detector or DuplicateDetector(repository)

    def import_rows(self, rows: Iterable[Mapping[str, Any]]) -> ImportResult:
        """
        Import a batch of raw rows in order.

        Args:
            rows: Column name -> raw value mappings

        Returns:
            ImportResult with per-batch counters and the store's new total

        Raises:
            StoreUnavailableError: If the store cannot be reached before the first row
                or for the closing count
        """
        # Fail before touching any row if the store is down
        self.repository.count()

        result = ImportResult()
        for row_number, row in enumerate(rows, start=1):
            try:
                normalized = normalize_row(row)
                if normalized.coerced_fields:
                    result.coerced_rows += 1
                record = normalized.record

                if self.detector.is_duplicate(record):
                    result.duplicates += 1
                    logger.debug(f"Row {row_number} is a duplicate of {record.natural_key}")
                    continue

                outcome = self.repository.insert(record)
                if outcome.inserted:
                    result.new_records += 1

            except Exception as e:
                error = e if isinstance(e, RowError) else RowError(str(e), row_number=row_number)
                result.errors += 1
                result.row_errors.append(error)
                logger.error(f"Error processing {error}")

        result.total_in_store = self.repository.count()
        logger.info(
            f"Imported {result.new_records} new records, {result.duplicates} duplicates, "
            f"{result.errors} errors; {result.total_in_store} records in store"
        )
        return result

    def import_csv(self, path: Union[str, Path], max_bytes: Optional[int] = None) -> ImportResult:
        """
        Read a CSV export and import its rows.

        Raises:
            MalformedInputError: If the file cannot be read; no rows are imported
            StoreUnavailableError: If the store cannot be reached
        """
        rows = read_rows(path, max_bytes=max_bytes)
        return self.import_rows(rows)
