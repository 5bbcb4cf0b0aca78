# ============================================================================
# File: ingestion/runner.py
# Description: Dump file orchestrator with per-file error isolation
# ============================================================================
"""
Dump Runner - Orchestrates Byte Source → Tokenizer → Record Builder →
Batch Accumulator → Bulk Loader for one or more dump files.

This module provides:
- Entity schema selection per file (declared kind or dump root element)
- Per-file error isolation (a failed file never stops the other files)
- Flushing of already completed entities when a file fails mid-stream
- Optional concurrent processing of files, one session per file
"""

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Union
import logging

from ingestion.extractors.byte_source import DumpByteSource
from ingestion.extractors.markup_events import EventKind, MarkupEvent, iter_markup_events
from ingestion.transformers.record_builder import RecordBuilder
from ingestion.loaders.batch_accumulator import BatchAccumulator
from ingestion.loaders.postgres_loader import PostgresLoader
from models.base import EntityKind, ETLStatus
from schemas.catalog import resolve_schema
from schemas.entity import DumpSchema
from core.config import settings
from core.exceptions import (
    ETLException,
    LoadError,
    MalformedInput,
    TruncatedInput,
)

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Any]


class DumpRunner:
    """
    Dump file orchestrator

    Responsibilities:
    - Pick the entity schema for each file
    - Drive the pull-based pipeline one entity and one batch at a time
    - Flush remaining buffers at clean end of stream
    - Report per-file statistics and failures
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        batch_size: Optional[int] = None,
        field_parse_policy: Optional[str] = None,
        chunk_size: Optional[int] = None,
        progress_interval: Optional[int] = None
    ):
        self.session_factory = session_factory
        self.batch_size = batch_size if batch_size is not None else settings.ETL_BATCH_SIZE
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        self.field_parse_policy = field_parse_policy or settings.FIELD_PARSE_POLICY
        self.chunk_size = chunk_size or settings.READ_CHUNK_SIZE
        self.progress_interval = progress_interval or settings.PROGRESS_LOG_INTERVAL

    async def run(
        self,
        file_paths: Iterable[Union[str, Path]],
        entity_kind: Optional[EntityKind] = None,
        concurrency: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Load every file; failures are reported per file, never raised.

        Args:
            file_paths: Dump files, any mix of entity kinds
            entity_kind: Declared kind for all files (default: from dump root)
            concurrency: Files processed at once (default: MAX_CONCURRENT_FILES)

        Returns:
            One result dictionary per file, in input order
        """
        paths = [Path(p) for p in file_paths]
        limit = max(1, concurrency or settings.MAX_CONCURRENT_FILES)

        if limit == 1:
            return [await self.run_file(path, entity_kind) for path in paths]

        semaphore = asyncio.Semaphore(limit)

        async def bounded(path: Path) -> Dict[str, Any]:
            async with semaphore:
                return await self.run_file(path, entity_kind)

        return list(await asyncio.gather(*(bounded(path) for path in paths)))

    async def run_file(
        self,
        file_path: Union[str, Path],
        entity_kind: Optional[EntityKind] = None
    ) -> Dict[str, Any]:
        """
        Run the full pipeline for one dump file.

        Returns:
            Dictionary with file statistics:
            - status: "success" or "failed"
            - entity_kind: Kind of entities in the file (if determined)
            - entities_parsed: Entities completed by the record builder
            - rows_loaded: Committed rows per table
            - batches_committed: Committed batches per table
            - field_parse_failures: Numeric fields nulled
            - error: Error details (failed files only)
        """
        file_path = Path(file_path)
        result: Dict[str, Any] = {
            "file": str(file_path),
            "status": ETLStatus.RUNNING.value,
            "entity_kind": None,
            "entities_parsed": 0,
            "rows_loaded": {},
            "batches_committed": {},
            "field_parse_failures": 0,
        }

        logger.info(f"Parsing and inserting: {file_path.name}")

        async with self.session_factory() as session:
            loader = PostgresLoader(session)
            accumulator: Optional[BatchAccumulator] = None
            builder: Optional[RecordBuilder] = None
            events: Optional[Iterator[MarkupEvent]] = None

            try:
                source = DumpByteSource(file_path, chunk_size=self.chunk_size)
                events = iter_markup_events(source.iter_chunks())

                # --------------------------------------------------
                # SCHEMA SELECTION
                # --------------------------------------------------
                root = self._read_root(events)
                schema = resolve_schema(root.name, entity_kind)
                result["entity_kind"] = schema.kind.value
                logger.info(f"{file_path.name}: <{root.name}> dump of {schema.kind.value} entities")

                builder = RecordBuilder(
                    schema.record,
                    entity_depth=root.depth + 1,
                    field_parse_policy=self.field_parse_policy
                )
                accumulator = BatchAccumulator(
                    loader,
                    batch_size=self.batch_size,
                    tables=schema.tables()
                )

                # --------------------------------------------------
                # STREAM: events → records → batches
                # --------------------------------------------------
                await self._drain(events, builder, accumulator, schema)
                builder.finish()

                # --------------------------------------------------
                # FINAL FLUSH
                # --------------------------------------------------
                await accumulator.flush_all()
                result["status"] = ETLStatus.SUCCESS.value

            except LoadError as e:
                # The store rejected a batch: nothing else is attempted
                logger.error(
                    f"Load failed for {file_path.name}: {e.message}",
                    extra={"error_context": e.to_dict()}
                )
                if accumulator is not None:
                    accumulator.discard()
                result["status"] = ETLStatus.FAILED.value
                result["error"] = e.to_dict()

            except ETLException as e:
                logger.error(
                    f"Parsing failed for {file_path.name}: {e.message}",
                    extra={"error_context": e.to_dict()}
                )
                result["status"] = ETLStatus.FAILED.value
                result["error"] = e.to_dict()
                # Rows of entities completed before the failure still go in
                if accumulator is not None:
                    await self._flush_after_failure(accumulator, file_path, result)

            except Exception as e:
                logger.exception(f"Unexpected error while loading {file_path.name}")
                if accumulator is not None:
                    accumulator.discard()
                result["status"] = ETLStatus.FAILED.value
                result["error"] = ETLException(
                    "Unexpected error in dump pipeline",
                    context={"file_path": str(file_path)},
                    original_exception=e
                ).to_dict()

            finally:
                if events is not None:
                    events.close()
                if builder is not None:
                    result["entities_parsed"] = builder.entities_built
                    result["field_parse_failures"] = builder.field_parse_failures
                result["rows_loaded"] = dict(loader.rows_loaded)
                result["batches_committed"] = dict(loader.batches_committed)

        logger.info(
            f"{file_path.name}: {result['status']} - "
            f"Entities: {result['entities_parsed']}, Rows: {result['rows_loaded']}"
        )
        return result

    def _read_root(self, events: Iterator[MarkupEvent]) -> MarkupEvent:
        """First START event: the dump root"""
        for event in events:
            if event.kind == EventKind.START:
                return event
        raise MalformedInput("Dump has no root element")

    async def _drain(
        self,
        events: Iterator[MarkupEvent],
        builder: RecordBuilder,
        accumulator: BatchAccumulator,
        schema: DumpSchema
    ):
        try:
            for event in events:
                record = builder.feed(event)
                if record is None:
                    continue

                await accumulator.append(record)

                if builder.entities_built % self.progress_interval == 0:
                    logger.info(
                        f"{schema.kind.value}: {builder.entities_built} entities parsed"
                    )
        except TruncatedInput as e:
            # Report where the builder stood when the bytes ran out
            e.context.setdefault("builder_state", builder.state.value)
            e.context.setdefault("entities_built", builder.entities_built)
            raise

    async def _flush_after_failure(
        self,
        accumulator: BatchAccumulator,
        file_path: Path,
        result: Dict[str, Any]
    ):
        try:
            await accumulator.flush_all()
        except LoadError as e:
            logger.error(
                f"Flush after failure also failed for {file_path.name}: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            accumulator.discard()
            result["flush_error"] = e.to_dict()
