"""Persistence adapters for generated forms, versions and assignments."""

from .sink import InMemorySink, JsonlSink, PersistenceSink, RecordBatch

__all__ = [
    "InMemorySink",
    "JsonlSink",
    "PersistenceSink",
    "RecordBatch",
]
