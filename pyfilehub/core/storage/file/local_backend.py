"""Local filesystem storage engine."""

from __future__ import annotations

import mimetypes
import os
import shutil
import stat
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, BinaryIO
from urllib.parse import quote

from pyfilehub.logging.setup import get_logger
from .cache import MetadataCache
from .categories import FileCategory
from .errors import (
    FileValidationError,
    InvalidNameError,
    PathSecurityError,
    StorageDeleteError,
    StorageWriteError,
)
from .models import DEFAULT_CONTENT_TYPE, FileRecord
from .naming import StoredNameScheme, TimestampTokenNamer
from .validator import MAX_STORED_NAME_BYTES, FileValidator

logger = get_logger(__name__)


class LocalStorageEngine:
    """
    Stores uploads as flat files in a single storage root.

    Files are named ``<millis>_<token>_<original name>`` by the configured
    StoredNameScheme; there are no sidecar metadata files. Metadata lives in
    a MetadataCache that is filled on upload and lazily back-filled from
    filesystem attributes when listing or looking up files the cache does
    not know about (e.g. after a restart).

    Security features:
    - Filenames are sanitized before any disk operation
    - Every path is normalized and must stay under the storage root
    - Symlinks and directories in the storage root are ignored
    - No execute permissions on stored files

    The engine is safe to call from many threads at once: every upload
    writes to its own unique path and the cache synchronizes internally.
    """

    def __init__(
        self,
        upload_dir: str | os.PathLike,
        validator: FileValidator,
        cache: MetadataCache | None = None,
        namer: StoredNameScheme | None = None,
        default_upload_user: str = "system",
        download_url_prefix: str = "/api/v1/files/download/",
    ):
        """
        Initialize local storage engine.

        Args:
            upload_dir: Storage root; created if missing
            validator: Upload validator (size, extension, filename)
            cache: Metadata cache (a fresh one is created if omitted)
            namer: Stored-name scheme (timestamp + token by default)
            default_upload_user: Uploader recorded when none is given
            download_url_prefix: Prefix for the display-only download URL
        """
        self.storage_root = Path(upload_dir).resolve()
        self.validator = validator
        self.cache = cache if cache is not None else MetadataCache()
        self.namer = namer or TimestampTokenNamer()
        self.default_upload_user = default_upload_user
        self.download_url_prefix = download_url_prefix

        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Local file storage initialized at {self.storage_root}")

    @classmethod
    def from_settings(
        cls,
        storage_settings: Any,
        cache: MetadataCache | None = None,
    ) -> LocalStorageEngine:
        """Build an engine from a StorageSettings object."""
        return cls(
            upload_dir=storage_settings.upload_dir,
            validator=FileValidator.from_settings(storage_settings),
            cache=cache,
            default_upload_user=storage_settings.default_upload_user,
            download_url_prefix=storage_settings.download_url_prefix,
        )

    @property
    def max_file_size(self) -> int:
        return self.validator.max_file_size

    def store(
        self,
        file_data: bytes,
        original_name: str | None,
        declared_size: int | None = None,
        content_type: str | None = None,
        category: FileCategory | str | None = None,
        upload_user: str | None = None,
    ) -> FileRecord:
        """
        Validate and write an upload, then record it in the cache.

        Args:
            file_data: File content
            original_name: Filename supplied by the client
            declared_size: Size reported by the client (defaults to len(file_data))
            content_type: MIME type reported by the client
            category: Explicit category; unknown values fall back to inference
            upload_user: Uploader identity

        Returns:
            FileRecord for the stored file

        Raises:
            InvalidNameError, EmptyFileError, FileTooLargeError,
            UnsupportedTypeError: If validation fails
            StorageWriteError: If the file could not be written
        """
        try:
            name = self.validator.validate_upload(
                file_data, original_name, declared_size)
        except FileValidationError as e:
            logger.warning(
                f"Upload rejected: filename={original_name!r}, reason={e.reason}")
            raise

        stored_name = self.namer.generate(name)
        if len(stored_name.encode("utf-8")) > MAX_STORED_NAME_BYTES:
            logger.warning(
                f"Upload rejected: filename={original_name!r}, "
                f"stored name exceeds {MAX_STORED_NAME_BYTES} bytes")
            raise InvalidNameError(
                f"Filename is too long to store: {name}")
        target = self._resolve(stored_name)

        try:
            with open(target, "wb") as f:
                f.write(file_data)
            os.chmod(target, 0o644)
        except OSError as e:
            logger.error(
                f"Failed to write {target} for upload {name!r}: {e}",
                exc_info=True)
            self._discard_partial(target)
            raise StorageWriteError(
                f"Could not store file {name}, please try again") from e

        if isinstance(category, str):
            category = FileCategory.parse(category)

        record = FileRecord.create(
            stored_name=stored_name,
            original_name=name,
            size_bytes=len(file_data),
            upload_time=datetime.now(timezone.utc),
            upload_user=upload_user or self.default_upload_user,
            file_path=str(target),
            content_type=self.validator.detect_content_type(name, content_type),
            category=category,
            download_url=self.download_url(stored_name),
        )
        # Only after the write succeeded, so a failed upload leaves no entry
        self.cache.put(stored_name, record)

        logger.info(
            f"Stored file: stored_name={stored_name}, size={record.size_bytes}, "
            f"category={record.category.value}, user={record.upload_user}")
        return record

    def list_files(
            self,
            category: FileCategory | str | None = None) -> list[FileRecord]:
        """
        List stored files, most recent first.

        Files the cache does not know are reconstructed from filesystem
        attributes and added to it; cache entries whose file has vanished are
        evicted. Unreadable entries are logged and skipped.

        Args:
            category: Optional filter. An unrecognized value means no filter.

        Returns:
            FileRecords ordered by upload_time descending
        """
        try:
            entries = list(os.scandir(self.storage_root))
        except OSError as e:
            logger.error(f"Cannot list storage root {self.storage_root}: {e}")
            return []

        records: list[FileRecord] = []
        seen: set[str] = set()

        for entry in entries:
            try:
                if not entry.is_file(follow_symlinks=False):
                    continue
                record = self.cache.get(entry.name) or self._reconstruct(
                    Path(entry.path))
            except OSError as e:
                logger.warning(f"Skipping unreadable file {entry.name}: {e}")
                continue
            if record is not None:
                records.append(record)
                seen.add(entry.name)

        for name in self.cache.names():
            if name not in seen and not self._is_regular_file(
                    self.storage_root / name):
                self.cache.remove(name)
                logger.debug(f"Evicted stale cache entry: {name}")

        if category is not None and not isinstance(category, FileCategory):
            category = FileCategory.parse(category)
        if category is not None:
            records = [r for r in records if r.category == category]

        records.sort(key=lambda r: (r.upload_time, r.stored_name), reverse=True)
        return records

    def get(self, stored_name: str) -> FileRecord | None:
        """
        Look up a stored file by name.

        Returns:
            FileRecord, or None if the file does not exist
        """
        try:
            path = self._resolve(stored_name)
        except PathSecurityError:
            logger.warning(
                f"Lookup outside storage root rejected: {stored_name!r}")
            return None

        key = self._cache_key(path)
        cached = self.cache.get(key)
        if cached is not None:
            if self._is_regular_file(path):
                return cached
            self.cache.remove(key)
            logger.debug(f"Evicted stale cache entry: {key}")
            return None

        if path.parent != self.storage_root:
            return None

        try:
            return self._reconstruct(path)
        except OSError as e:
            logger.warning(f"Cannot read file info for {stored_name}: {e}")
            return None

    def exists(self, stored_name: str) -> bool:
        return self.get(stored_name) is not None

    def open(self, stored_name: str) -> tuple[BinaryIO, FileRecord] | None:
        """
        Open a stored file for reading.

        Returns:
            Tuple of (binary file handle, record), or None if not found.
            The caller closes the handle.
        """
        record = self.get(stored_name)
        if record is None:
            return None
        try:
            handle = open(record.file_path, "rb")
        except FileNotFoundError:
            self.cache.remove(record.stored_name)
            return None
        except OSError as e:
            logger.warning(f"Cannot open {stored_name} for reading: {e}")
            return None
        return handle, record

    def delete(self, stored_name: str) -> bool:
        """
        Delete a stored file and its cache entry.

        Returns:
            True if a file was removed, False if it was already absent

        Raises:
            PathSecurityError: If the name resolves outside the storage root
            StorageDeleteError: If the file exists but cannot be removed
        """
        try:
            path = self._resolve(stored_name)
        except PathSecurityError:
            logger.warning(
                f"Delete outside storage root rejected: {stored_name!r}")
            raise

        try:
            path.unlink()
            deleted = True
        except FileNotFoundError:
            deleted = False
        except OSError as e:
            logger.error(f"Failed to delete {path}: {e}", exc_info=True)
            raise StorageDeleteError(
                f"Could not delete file: {stored_name}") from e

        self.cache.remove(self._cache_key(path))

        logger.info(f"Delete file: stored_name={stored_name}, deleted={deleted}")
        return deleted

    def category_statistics(self) -> dict[FileCategory, int]:
        """Count stored files per category; empty categories are omitted."""
        return dict(Counter(record.category for record in self.list_files()))

    def files_by_category(self) -> dict[FileCategory, list[FileRecord]]:
        """Group stored files by category, each group most recent first."""
        groups: dict[FileCategory, list[FileRecord]] = {}
        for record in self.list_files():
            groups.setdefault(record.category, []).append(record)
        return groups

    def storage_info(self) -> dict[str, Any]:
        """Summarize the storage root: file count, bytes used, disk space."""
        records = self.list_files()
        usage = shutil.disk_usage(self.storage_root)
        return {
            "storage_path": str(self.storage_root),
            "total_size": sum(record.size_bytes for record in records),
            "total_files": len(records),
            "free_space": usage.free,
            "used_space": usage.used,
            "total_space": usage.total,
        }

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Metadata cache cleared")

    def cache_size(self) -> int:
        return self.cache.size()

    def download_url(self, stored_name: str) -> str:
        return f"{self.download_url_prefix}{quote(stored_name)}"

    def _resolve(self, stored_name: str) -> Path:
        """
        Normalize a stored name into a path strictly under the storage root.

        Raises:
            PathSecurityError: If the result is the root itself or outside it
        """
        if not stored_name or "\x00" in stored_name:
            raise PathSecurityError("File path is not allowed")

        candidate = Path(os.path.normpath(self.storage_root / stored_name))
        if self.storage_root not in candidate.parents:
            raise PathSecurityError(
                f"File path is not allowed: {stored_name}")
        return candidate

    def _cache_key(self, path: Path) -> str:
        return path.relative_to(self.storage_root).as_posix()

    def _reconstruct(self, path: Path) -> FileRecord | None:
        """
        Rebuild a record from filesystem attributes and back-fill the cache.

        Returns None when the path is gone or is not a regular file.
        Other filesystem errors propagate.
        """
        try:
            st = path.lstat()
        except FileNotFoundError:
            return None
        if not stat.S_ISREG(st.st_mode):
            return None

        stored_name = path.name
        content_type, _ = mimetypes.guess_type(stored_name)
        record = FileRecord.create(
            stored_name=stored_name,
            original_name=self.namer.extract_original_name(stored_name),
            size_bytes=st.st_size,
            upload_time=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            upload_user=self.default_upload_user,
            file_path=str(path),
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            download_url=self.download_url(stored_name),
        )
        logger.debug(f"Reconstructed metadata from disk: {stored_name}")
        return self.cache.put_if_absent(stored_name, record)

    @staticmethod
    def _is_regular_file(path: Path) -> bool:
        try:
            return stat.S_ISREG(path.lstat().st_mode)
        except OSError:
            return False

    @staticmethod
    def _discard_partial(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove partial upload {path}: {e}")
