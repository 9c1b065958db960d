"""Streaming manifest of materialized pages and assets."""

import json
import threading
from pathlib import Path
from typing import TextIO


class ManifestWriter:
    """Writes one JSONL record per page or asset outcome.

    Safe to share between worker threads; each record is written and flushed
    under a lock so lines never interleave.
    """

    def __init__(self, output_path: str | Path):
        self.output_path = Path(output_path)
        self._file: TextIO | None = None
        self._count = 0
        self._lock = threading.Lock()

    def open(self) -> "ManifestWriter":
        """Create the manifest file. Idempotent."""
        with self._lock:
            if self._file is None:
                self.output_path.parent.mkdir(parents=True, exist_ok=True)
                self._file = open(self.output_path, "w", encoding="utf-8")
        return self

    def __enter__(self) -> "ManifestWriter":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None

    def write_one(self, record: dict):
        """Write a single record to the manifest."""
        line = json.dumps(record, ensure_ascii=False) + "\n"
        with self._lock:
            if self._file is None:
                raise RuntimeError("ManifestWriter must be used as context manager")
            self._file.write(line)
            self._file.flush()
            self._count += 1

    @property
    def count(self) -> int:
        """Number of records written."""
        with self._lock:
            return self._count
