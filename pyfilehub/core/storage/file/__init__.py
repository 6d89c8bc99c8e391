"""File storage module for handling uploads, listings and downloads."""

from __future__ import annotations

from .categories import (
    FileCategory,
    category_from_extension,
    category_from_filename,
    get_extension,
)
from .errors import (
    FileStorageError,
    FileValidationError,
    InvalidNameError,
    EmptyFileError,
    FileTooLargeError,
    UnsupportedTypeError,
    StorageWriteError,
    StorageDeleteError,
    PathSecurityError,
)
from .models import FileRecord
from .validator import FileValidator, sanitize_filename
from .naming import StoredNameScheme, TimestampTokenNamer
from .cache import MetadataCache
from .local_backend import LocalStorageEngine
from .manager import FileManager, FilePage, BatchUploadResult, UploadItem

__all__ = [
    "FileCategory",
    "category_from_extension",
    "category_from_filename",
    "get_extension",
    "FileStorageError",
    "FileValidationError",
    "InvalidNameError",
    "EmptyFileError",
    "FileTooLargeError",
    "UnsupportedTypeError",
    "StorageWriteError",
    "StorageDeleteError",
    "PathSecurityError",
    "FileRecord",
    "FileValidator",
    "sanitize_filename",
    "StoredNameScheme",
    "TimestampTokenNamer",
    "MetadataCache",
    "LocalStorageEngine",
    "FileManager",
    "FilePage",
    "BatchUploadResult",
    "UploadItem",
]
