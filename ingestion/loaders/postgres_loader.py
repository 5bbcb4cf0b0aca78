"""
Load row batches into PostgreSQL, one multi-row insert per batch
"""

from typing import Any, Dict, List, Mapping, Optional
from sqlalchemy import Table, insert
from sqlalchemy.ext.asyncio import AsyncSession
from models import Base
from core.exceptions import LoadFailure
import logging

logger = logging.getLogger(__name__)


class PostgresLoader:
    """
    Insert batches of rows into the target tables.

    Ensures:
    - One transaction per batch (commit on success, rollback on failure)
    - Batches already committed are never touched again
    - Failures name the table and the batch ordinal
    """

    def __init__(
        self,
        db_session: AsyncSession,
        tables: Optional[Mapping[str, Table]] = None
    ):
        self.db = db_session
        self.tables = tables if tables is not None else Base.metadata.tables
        self.batches_committed: Dict[str, int] = {}
        self.rows_loaded: Dict[str, int] = {}

    async def load_batch(self, table_name: str, rows: List[Dict[str, Any]]) -> int:
        """
        Insert one batch as a single unit of work.

        Args:
            table_name: Target table
            rows: Row dicts keyed by column name

        Returns:
            Number of rows inserted

        Raises:
            LoadFailure: The store rejected the batch
        """
        if not rows:
            return 0

        batch_index = self.batches_committed.get(table_name, 0) + 1
        table = self.tables.get(table_name)
        if table is None:
            raise LoadFailure(
                f"Unknown target table '{table_name}'",
                table_name=table_name,
                batch_index=batch_index,
                context={"batch_size": len(rows)}
            )

        try:
            # executemany: rendered as multi-row VALUES by the asyncpg dialect
            await self.db.execute(insert(table), rows)
            await self.db.commit()
        except Exception as e:
            logger.error(
                f"Batch {batch_index} for {table_name} failed: {str(e)}"
            )
            await self.db.rollback()
            raise LoadFailure(
                f"Failed to insert batch into {table_name}",
                table_name=table_name,
                batch_index=batch_index,
                context={"batch_size": len(rows), "operation": "INSERT"},
                original_exception=e
            )

        self.batches_committed[table_name] = batch_index
        self.rows_loaded[table_name] = self.rows_loaded.get(table_name, 0) + len(rows)

        logger.info(f"Batch {batch_index}: Loaded {len(rows)} rows into {table_name}")
        return len(rows)
