"""
Create the target tables (and optionally the post-load indexes) in a
development database.
"""

import argparse
import asyncio
import logging

from core.database import build_engine, create_indexes, create_tables
from core.logging import setup_logging
from models.base import EntityKind
from schemas.catalog import SCHEMAS_BY_KIND

logger = logging.getLogger(__name__)


async def init_database(args: argparse.Namespace):
    logger.info("Connecting to database...")
    engine = build_engine(args.database_url)

    try:
        table_names = None
        if args.kind:
            table_names = SCHEMAS_BY_KIND[EntityKind(args.kind)].tables()

        await create_tables(engine, table_names=table_names, drop_existing=args.drop)
        logger.info("Tables created successfully.")

        if args.indexes:
            await create_indexes(engine, table_names=table_names)
            logger.info("Indexes created successfully.")
    finally:
        await engine.dispose()


def main(argv=None):
    p = argparse.ArgumentParser(description="Create the Discogs target tables.")
    p.add_argument("--kind", choices=[k.value for k in EntityKind], default=None,
                   help="Only the tables of this entity kind")
    p.add_argument("--drop", action="store_true", help="Drop the tables first")
    p.add_argument("--indexes", action="store_true", help="Also create the post-load indexes")
    p.add_argument("--database-url", default=None, help="Overrides DATABASE_URL")
    args = p.parse_args(argv)

    setup_logging()
    asyncio.run(init_database(args))


if __name__ == "__main__":
    main()
