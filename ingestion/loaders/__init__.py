from ingestion.loaders.postgres_loader import PostgresLoader
from ingestion.loaders.batch_accumulator import BatchAccumulator, to_row

__all__ = ["PostgresLoader", "BatchAccumulator", "to_row"]
