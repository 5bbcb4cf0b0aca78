"""
Streaming pipeline components for loading Discogs dumps.

Modules:
    runner: File orchestrator that drives the pipeline per dump file

Subpackages:
    extractors: Decompressing byte source and markup event stream
    transformers: Record builder (event stream → entity records)
    loaders: Batch accumulator and PostgreSQL bulk loader

Architecture:
    The pipeline is pull-based and single-directional:

    1. Extract - Read decompressed bytes and tokenize them into markup events
    2. Transform - Rebuild one entity at a time with its list fields and children
    3. Load - Buffer rows per table and insert one batch per transaction

    Memory stays bounded by one chunk, one entity and one batch per table,
    whatever the size of the dump.

Usage:
    from ingestion.runner import DumpRunner

Example:
    runner = DumpRunner(session_maker, batch_size=10000)
    results = await runner.run(["discogs_20240101_releases.xml.gz"])

    print(f"Loaded {results[0]['rows_loaded']}")

Error Handling:
    All components raise custom exceptions from core.exceptions. The runner
    isolates failures per file and reports them in the result dictionaries.
"""

__all__ = [
    "DumpRunner",
]

from ingestion.runner import DumpRunner
