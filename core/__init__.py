"""
Core utilities and configuration for the Discogs dump loader.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Engine/session factories and target table bootstrap
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import build_engine, build_session_maker
    from core.exceptions import TruncatedInput, LoadFailure
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Get a session factory for the target store
    engine = build_engine()
    session_maker = build_session_maker(engine)
"""

