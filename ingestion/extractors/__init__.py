from ingestion.extractors.byte_source import DumpByteSource
from ingestion.extractors.markup_events import EventKind, MarkupEvent, iter_markup_events

__all__ = ["DumpByteSource", "EventKind", "MarkupEvent", "iter_markup_events"]
