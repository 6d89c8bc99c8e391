"""In-memory metadata cache keyed by stored filename."""

from __future__ import annotations

import threading

from .models import FileRecord


class MetadataCache:
    """
    Thread-safe mapping from stored filename to FileRecord.

    There is no eviction policy: the cache mirrors what is on disk and
    entries only go away through remove() or clear(). The storage engine
    owns one instance and is responsible for keeping it consistent with
    the filesystem.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._records: dict[str, FileRecord] = {}

    def get(self, name: str) -> FileRecord | None:
        with self._lock:
            return self._records.get(name)

    def put(self, name: str, record: FileRecord) -> None:
        with self._lock:
            self._records[name] = record

    def put_if_absent(self, name: str, record: FileRecord) -> FileRecord:
        """Insert record unless one exists; return whichever is cached."""
        with self._lock:
            return self._records.setdefault(name, record)

    def remove(self, name: str) -> FileRecord | None:
        with self._lock:
            return self._records.pop(name, None)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._records)

    def names(self) -> list[str]:
        """Snapshot of the cached stored names."""
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._records
