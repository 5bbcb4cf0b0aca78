"""
Script to load one or more Discogs dump files into PostgreSQL
"""

import argparse
import asyncio
import sys
import logging

from core.config import settings
from core.database import build_engine, build_session_maker, create_indexes
from core.logging import setup_logging
from ingestion.runner import DumpRunner
from models.base import EntityKind, ETLStatus
from schemas.catalog import SCHEMAS_BY_KIND

logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1"""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="discogs-load",
        description="Stream Discogs monthly dumps (*.xml.gz) into PostgreSQL."
    )
    p.add_argument("files", nargs="+", help="Path to one or more dump files, still compressed")
    p.add_argument("--batch-size", type=positive_int, default=settings.ETL_BATCH_SIZE,
                   help=f"Number of rows per insert (default: {settings.ETL_BATCH_SIZE})")
    p.add_argument("--kind", choices=[k.value for k in EntityKind], default=None,
                   help="Entity kind of every file (default: taken from the dump root element)")
    p.add_argument("--concurrency", type=positive_int, default=settings.MAX_CONCURRENT_FILES,
                   help="Files loaded at once, one connection each")
    p.add_argument("--field-parse-policy", choices=["null", "abort"], default=settings.FIELD_PARSE_POLICY,
                   help="Unparsable numeric field: null it, or abort the file")
    p.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    p.add_argument("--create-indexes", action="store_true",
                   help="Create the post-load indexes once every file succeeded")
    return p.parse_args(argv)


async def run_load(args: argparse.Namespace) -> int:
    """Run the loader for every file; returns the process exit code"""
    engine = build_engine(args.database_url)
    session_maker = build_session_maker(engine)

    try:
        runner = DumpRunner(
            session_maker,
            batch_size=args.batch_size,
            field_parse_policy=args.field_parse_policy
        )
        results = await runner.run(
            args.files,
            entity_kind=EntityKind(args.kind) if args.kind else None,
            concurrency=args.concurrency
        )

        failed = [r for r in results if r["status"] != ETLStatus.SUCCESS.value]
        for result in failed:
            logger.error(f"FAILED {result['file']}: {result['error']['message']}")

        if failed:
            logger.error(f"{len(failed)} of {len(results)} files failed")
            return 1

        if args.create_indexes:
            loaded_tables = [
                table
                for kind in {r["entity_kind"] for r in results}
                for table in SCHEMAS_BY_KIND[EntityKind(kind)].tables()
            ]
            await create_indexes(engine, table_names=loaded_tables)

        logger.info("All files loaded")
        return 0
    finally:
        await engine.dispose()


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging()
    return asyncio.run(run_load(args))


if __name__ == "__main__":
    sys.exit(main())
