"""File manager: the entry points the API layer calls into."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Iterable

from pyfilehub.logging.setup import get_logger
from pyfilehub.utils import format_file_size, total_pages
from .categories import FileCategory
from .errors import EmptyFileError, FileStorageError, FileValidationError
from .local_backend import LocalStorageEngine
from .models import DEFAULT_CONTENT_TYPE, FileRecord

logger = get_logger(__name__)


@dataclass
class UploadItem:
    """One file of an upload request."""
    filename: str | None
    data: bytes
    content_type: str | None = None
    # Set when the body could not be read; the item is reported as failed
    read_error: str | None = None


@dataclass
class FilePage:
    """A page of a file listing."""
    files: list[FileRecord]
    page: int
    size: int
    total: int

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.size)

    def to_dict(self) -> dict[str, Any]:
        return {
            "files": [record.to_dict() for record in self.files],
            "pagination": {
                "page": self.page,
                "size": self.size,
                "offset": self.offset,
                "total": self.total,
                "total_pages": self.total_pages,
            },
        }


@dataclass
class BatchUploadResult:
    """Per-item outcome of a batch upload."""
    succeeded: list[FileRecord] = field(default_factory=list)
    failed: list[dict[str, Any]] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.succeeded) + len(self.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success_files": [record.to_dict() for record in self.succeeded],
            "failed_files": list(self.failed),
            "total_count": self.total_count,
            "success_count": len(self.succeeded),
            "failed_count": len(self.failed),
        }


class FileManager:
    """
    High-level file operations on top of a LocalStorageEngine.

    Features:
    - Single and batch uploads with per-item error reporting
    - Paginated, category-filtered listings
    - Download handles with a display filename and media type
    - Category statistics and display metadata
    """

    def __init__(
        self,
        storage: LocalStorageEngine,
        default_page_size: int = 20,
        max_page_size: int = 200,
    ):
        """
        Initialize file manager.

        Args:
            storage: Storage engine
            default_page_size: Page size used when none is requested
            max_page_size: Upper bound for requested page sizes
        """
        self.storage = storage
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def upload_file(
        self,
        file_data: bytes,
        filename: str | None,
        content_type: str | None = None,
        category: str | FileCategory | None = None,
        upload_user: str | None = None,
        declared_size: int | None = None,
    ) -> FileRecord:
        """
        Store a single upload.

        Raises:
            FileValidationError: If the upload is rejected
            StorageWriteError: If writing to disk fails
        """
        return self.storage.store(
            file_data,
            filename,
            declared_size=declared_size,
            content_type=content_type,
            category=category,
            upload_user=upload_user,
        )

    def upload_batch(
        self,
        items: Iterable[UploadItem],
        category: str | FileCategory | None = None,
        upload_user: str | None = None,
    ) -> BatchUploadResult:
        """
        Store several uploads independently.

        A failing item is reported in the result and never aborts the rest.

        Raises:
            EmptyFileError: If no items were given
        """
        items = list(items)
        if not items:
            raise EmptyFileError("No files selected for upload")

        result = BatchUploadResult()
        for item in items:
            if item.read_error is not None:
                result.failed.append({
                    "filename": item.filename,
                    "reason": item.read_error,
                    "code": "FILE_READ_ERROR",
                })
                continue
            try:
                record = self.upload_file(
                    item.data,
                    item.filename,
                    content_type=item.content_type,
                    category=category,
                    upload_user=upload_user,
                )
            except FileValidationError as e:
                result.failed.append({"filename": item.filename, "reason": e.reason})
            except FileStorageError as e:
                # Server-side details are already logged by the engine
                result.failed.append({
                    "filename": item.filename,
                    "reason": "Storage failure, please try again",
                    "code": e.code,
                })
            else:
                result.succeeded.append(record)

        logger.info(
            f"Batch upload finished: {len(result.succeeded)} succeeded, "
            f"{len(result.failed)} failed")
        return result

    def list_files(
        self,
        category: str | FileCategory | None = None,
        page: int = 0,
        size: int | None = None,
    ) -> FilePage:
        """
        List files, most recent first, one page at a time.

        Args:
            category: Optional filter; unrecognized values list everything
            page: Zero-based page number
            size: Page size, clamped to [1, max_page_size]
        """
        size = self.default_page_size if size is None else size
        size = max(1, min(size, self.max_page_size))
        page = max(0, page)

        files, total = self.list_range(category, offset=page * size, limit=size)
        return FilePage(files=files, page=page, size=size, total=total)

    def list_range(
        self,
        category: str | FileCategory | None = None,
        offset: int = 0,
        limit: int | None = None,
    ) -> tuple[list[FileRecord], int]:
        """
        Slice of the listing by offset and limit.

        Returns:
            Tuple of (records in the slice, total matching records)
        """
        files = self.storage.list_files(category)
        offset = max(0, offset)
        end = len(files) if limit is None else offset + max(0, limit)
        return files[offset:end], len(files)

    def get_file(self, stored_name: str) -> FileRecord | None:
        return self.storage.get(stored_name)

    def open_download(
            self,
            stored_name: str) -> tuple[BinaryIO, FileRecord, str] | None:
        """
        Open a file for download.

        Returns:
            Tuple of (file handle, record, media type), or None if not found
        """
        opened = self.storage.open(stored_name)
        if opened is None:
            return None
        handle, record = opened
        media_type, _ = mimetypes.guess_type(record.stored_name)
        return handle, record, media_type or record.content_type or DEFAULT_CONTENT_TYPE

    def delete_file(self, stored_name: str) -> bool:
        return self.storage.delete(stored_name)

    def category_statistics(self) -> dict[FileCategory, int]:
        return self.storage.category_statistics()

    def category_summary(self) -> list[dict[str, Any]]:
        """Display metadata for every category with its current file count."""
        counts = self.storage.category_statistics()
        return [
            {
                "category": category.value,
                "name": category.name,
                "display_name": category.display_name,
                "color": category.color,
                "extensions": sorted(category.extensions),
                "count": counts.get(category, 0),
            }
            for category in FileCategory
        ]

    def storage_info(self) -> dict[str, Any]:
        """Storage root usage plus the configured limits and cache size."""
        info = self.storage.storage_info()
        info["total_size_formatted"] = format_file_size(info["total_size"])
        info["max_file_size"] = self.storage.max_file_size
        info["max_file_size_formatted"] = format_file_size(
            self.storage.max_file_size)
        info["cache_size"] = self.storage.cache_size()
        return info

    def clear_cache(self) -> None:
        self.storage.clear_cache()
