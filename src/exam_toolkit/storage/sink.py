"""
Module: storage.sink

Purpose:
    Persistence adapters. Generation and distribution produce a single
    RecordBatch per run; a sink writes the whole batch or nothing.

Key Classes:
    - RecordBatch: Forms, versions, assignments, logs and audit events of one run
    - PersistenceSink: Protocol with write_batch()
    - InMemorySink: Keeps batches in a list (tests, embedding)
    - JsonlSink: Appends one JSON line per record to a locked file

Dependencies:
    - storage.file_locking: portalocker-backed append

Used By:
    - exam_toolkit.controller: build_versions persistence
    - exam_toolkit.distribution.engine: distribute persistence
    - exam_toolkit.security.audit: Security event trail
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Protocol, Tuple, runtime_checkable

from exam_toolkit.core.models import Assignment, DistributionLog, Form, SecurityEvent, Version

from .file_locking import locked_append_lines, locked_read_jsonl

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordBatch:
    """Everything one run writes, persisted together."""

    forms: Tuple[Form, ...] = ()
    versions: Tuple[Version, ...] = ()
    assignments: Tuple[Assignment, ...] = ()
    logs: Tuple[DistributionLog, ...] = ()
    security_events: Tuple[SecurityEvent, ...] = ()

    def __len__(self) -> int:
        return (
            len(self.forms) + len(self.versions) + len(self.assignments)
            + len(self.logs) + len(self.security_events)
        )

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def records(self) -> Iterator[Dict[str, Any]]:
        """Yield one tagged dict per record: forms, versions, assignments, logs, then security events."""
        for kind, items in (
            ("form", self.forms),
            ("version", self.versions),
            ("assignment", self.assignments),
            ("distribution_log", self.logs),
            ("security_event", self.security_events),
        ):
            for item in items:
                yield {"kind": kind, **item.to_dict()}


@runtime_checkable
class PersistenceSink(Protocol):
    """Anything that can store a RecordBatch atomically."""

    def write_batch(self, batch: RecordBatch) -> None:
        ...


class InMemorySink:
    """
    Sink that keeps every batch in memory.

    Example:
        >>> sink = InMemorySink()
        >>> sink.write_batch(RecordBatch())
        >>> len(sink.batches)
        1
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._batches: List[RecordBatch] = []

    def write_batch(self, batch: RecordBatch) -> None:
        with self._lock:
            self._batches.append(batch)

    @property
    def batches(self) -> Tuple[RecordBatch, ...]:
        with self._lock:
            return tuple(self._batches)

    def records(self) -> List[Dict[str, Any]]:
        return [record for batch in self.batches for record in batch.records()]


class JsonlSink:
    """
    Sink appending one JSON line per record.

    The batch is serialized completely before the file is opened; the
    lines are then appended under a single exclusive lock.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def write_batch(self, batch: RecordBatch) -> None:
        lines = [json.dumps(record, ensure_ascii=False) for record in batch.records()]
        try:
            locked_append_lines(self.path, lines)
        except OSError as e:
            logger.error(f"Failed to write {len(lines)} records to {self.path}: {e}")
            raise
        logger.info(f"Persisted {len(lines)} records to {self.path}")

    def read_records(self) -> List[Dict[str, Any]]:
        """Every record written so far, in file order."""
        return locked_read_jsonl(self.path)

    def __repr__(self) -> str:
        return f"JsonlSink({str(self.path)!r})"
