"""Exceptions raised by the file storage core."""

from __future__ import annotations


class FileStorageError(Exception):
    """Base class for storage failures; carries a human-readable reason."""

    code = "STORAGE_ERROR"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class FileValidationError(FileStorageError):
    """Client-correctable upload rejection."""

    code = "VALIDATION_ERROR"


class InvalidNameError(FileValidationError):
    """Filename is empty or escapes a single path segment."""

    code = "INVALID_NAME"


class EmptyFileError(FileValidationError):
    code = "EMPTY_FILE"


class FileTooLargeError(FileValidationError):
    code = "FILE_TOO_LARGE"


class UnsupportedTypeError(FileValidationError):
    code = "UNSUPPORTED_TYPE"


class StorageWriteError(FileStorageError):
    code = "STORAGE_WRITE_ERROR"


class StorageDeleteError(FileStorageError):
    code = "STORAGE_DELETE_ERROR"


class PathSecurityError(FileStorageError):
    """A stored name resolved outside the storage root."""

    code = "PATH_SECURITY"
