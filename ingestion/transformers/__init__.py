from ingestion.transformers.record_builder import BuilderState, EntityRecord, RecordBuilder

__all__ = ["BuilderState", "EntityRecord", "RecordBuilder"]
