"""
Per-table row buffers that hand full batches to the loader
"""

from typing import Any, Dict, Iterable, List, Optional
from core.config import settings
from ingestion.loaders.postgres_loader import PostgresLoader
from ingestion.transformers.record_builder import EntityRecord
import logging

logger = logging.getLogger(__name__)


def to_row(values: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert record values to an insertion-ready row.

    - None stays None (never an empty string)
    - lists become fresh lists, bound as PostgreSQL text[] arrays
    - strings lose NUL characters, which PostgreSQL text cannot hold

    Values are sent as bound parameters, so no quoting is applied here.
    """
    row = {}
    for column, value in values.items():
        if isinstance(value, str):
            value = _clean_text(value)
        elif isinstance(value, list):
            value = [_clean_text(v) if isinstance(v, str) else v for v in value]
        row[column] = value
    return row


def _clean_text(value: str) -> str:
    if "\x00" in value:
        return value.replace("\x00", "")
    return value


class BatchAccumulator:
    """
    Collect rows per target table and flush each table at ``batch_size``.

    Tables are flushed independently; ``flush_all`` empties parent tables
    before child tables (the order given in ``tables``).
    """

    def __init__(
        self,
        loader: PostgresLoader,
        batch_size: Optional[int] = None,
        tables: Optional[Iterable[str]] = None
    ):
        self.loader = loader
        self.batch_size = batch_size if batch_size is not None else settings.ETL_BATCH_SIZE
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")

        self._buffers: Dict[str, List[Dict[str, Any]]] = {
            table: [] for table in (tables or [])
        }
        self.rows_appended: Dict[str, int] = {}
        self.batches_flushed = 0

    def pending(self, table: str) -> int:
        """Rows buffered for a table and not yet handed to the loader"""
        return len(self._buffers.get(table, []))

    async def append(self, record: EntityRecord):
        """Buffer a completed entity and its child records"""
        for table, values in record.iter_rows():
            buffer = self._buffers.setdefault(table, [])
            buffer.append(to_row(values))
            self.rows_appended[table] = self.rows_appended.get(table, 0) + 1

            if len(buffer) >= self.batch_size:
                await self._flush(table)

    async def flush_all(self):
        """Hand every non-empty buffer to the loader, regardless of size"""
        for table in list(self._buffers):
            if self._buffers[table]:
                await self._flush(table)

    def discard(self):
        """Drop unflushed rows (file aborted)"""
        dropped = sum(len(rows) for rows in self._buffers.values())
        if dropped:
            logger.warning(f"Discarding {dropped} unflushed rows")
        for table in self._buffers:
            self._buffers[table] = []

    async def _flush(self, table: str):
        rows = self._buffers[table]
        # a fresh buffer replaces the one handed over, even if the load fails
        self._buffers[table] = []
        await self.loader.load_batch(table, rows)
        self.batches_flushed += 1
