"""
Database engine, session management and schema bootstrap with SQLAlchemy async
"""

from typing import Iterable, Optional
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from core.config import settings
from models import Base
from models.indexes import POST_LOAD_INDEXES
import logging

logger = logging.getLogger(__name__)


def build_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create the async engine for the target store"""
    return create_async_engine(
        database_url or settings.DATABASE_URL,
        echo=False,
        poolclass=NullPool,
        future=True
    )


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Session factory; one session per dump file"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


async def create_tables(
    engine: AsyncEngine,
    table_names: Optional[Iterable[str]] = None,
    drop_existing: bool = False
):
    """
    Create the target tables from the model metadata.
    
    Args:
        engine: Async engine bound to the target store
        table_names: Restrict to these tables (default: all)
        drop_existing: Drop the tables first, like a fresh dump import
    """
    tables = None
    if table_names is not None:
        tables = [Base.metadata.tables[name] for name in table_names]
    
    async with engine.begin() as conn:
        if drop_existing:
            logger.info("Dropping existing tables")
            await conn.run_sync(Base.metadata.drop_all, tables=tables)
        logger.info("Creating tables")
        await conn.run_sync(Base.metadata.create_all, tables=tables)


async def create_indexes(engine: AsyncEngine, table_names: Optional[Iterable[str]] = None):
    """Create the post-load indexes (run after all dumps are loaded)"""
    tables = list(table_names) if table_names is not None else list(POST_LOAD_INDEXES)
    statements = [s for t in tables for s in POST_LOAD_INDEXES.get(t, [])]

    async with engine.begin() as conn:
        for statement in statements:
            logger.info(f"Executing: {statement}")
            await conn.execute(text(statement))
