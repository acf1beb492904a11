"""
Module: storage.file_locking

Purpose:
    Cross-platform file locking for the JSONL persistence sink. Several
    builds (threads or processes) may append to the same audit file; each
    batch is written under one exclusive lock so lines from different
    batches never interleave.

Key Functions:
    - locked_file: Context manager for locked file access
    - locked_append_lines: Append pre-serialized lines under one lock
    - locked_read_jsonl: Read every record under a shared lock

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - storage.sink: JsonlSink
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Sequence

import portalocker

logger = logging.getLogger(__name__)


@contextmanager
def locked_file(
    path: Path,
    mode: str = 'r',
    lock_type: int = portalocker.LOCK_EX,
) -> Generator:
    """
    Context manager for cross-platform locked file access.

    Args:
        path: Path to file.
        mode: File open mode ('r', 'a', ...).
        lock_type: LOCK_EX for writers, LOCK_SH for readers.

    Yields:
        Open file handle with lock held.

    Example:
        >>> with locked_file(path, 'a') as f:
        ...     f.write('{"kind": "log"}\\n')
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Readers of a sink that has not been written yet see an empty file
    if 'r' in mode and not path.exists():
        path.touch()

    with open(path, mode, encoding='utf-8') as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


def locked_append_lines(path: Path, lines: Sequence[str]) -> None:
    """
    Append already-serialized JSON lines under a single exclusive lock.

    Serialization happens before this call, so a record that cannot be
    encoded never leaves a partial batch behind.

    Example:
        >>> locked_append_lines(audit_path, ['{"kind": "form"}', '{"kind": "log"}'])
    """
    if not lines:
        return
    payload = ''.join(line + '\n' for line in lines)
    with locked_file(path, 'a', portalocker.LOCK_EX) as f:
        f.write(payload)
        f.flush()

    logger.debug(f"Appended {len(lines)} records to {path.name}")


def locked_read_jsonl(path: Path) -> List[Dict[str, Any]]:
    """Read every non-blank line of a JSONL file under a shared lock."""
    with locked_file(path, 'r', portalocker.LOCK_SH) as f:
        return [json.loads(line) for line in f if line.strip()]
