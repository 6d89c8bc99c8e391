"""Upload validation: filename sanitization, size limits and extension whitelist."""

from __future__ import annotations

import mimetypes
import posixpath
from typing import Any, Iterable

from pyfilehub.utils import format_file_size
from .categories import get_extension
from .errors import (
    EmptyFileError,
    FileTooLargeError,
    InvalidNameError,
    UnsupportedTypeError,
)
from .models import DEFAULT_CONTENT_TYPE


DEFAULT_MAX_FILENAME_LENGTH = 200

# Filesystem limit for a single path component, in bytes
MAX_STORED_NAME_BYTES = 255
# Stored-name prefix: up to 14 digits of millis, 8-char token, two underscores
STORED_NAME_PREFIX_BYTES = 24
DEFAULT_MAX_FILENAME_BYTES = MAX_STORED_NAME_BYTES - STORED_NAME_PREFIX_BYTES


def sanitize_filename(
        filename: str | None,
        max_length: int = DEFAULT_MAX_FILENAME_LENGTH,
        max_bytes: int = DEFAULT_MAX_FILENAME_BYTES) -> str:
    """
    Normalize a client-supplied filename to a single safe path segment.

    Backslashes are treated as separators and redundant segments such as
    "./" are collapsed. Anything that still spans more than one segment,
    refers to a parent directory or contains control characters is rejected
    rather than rewritten.

    Args:
        filename: Raw filename from the client
        max_length: Maximum length of the normalized name, in characters
        max_bytes: Maximum UTF-8 size of the normalized name, leaving room
            for the stored-name prefix within the filesystem limit

    Returns:
        The normalized filename

    Raises:
        InvalidNameError: If the name is empty or unsafe
    """
    if filename is None or not filename.strip():
        raise InvalidNameError("Filename must not be empty")

    if any(ord(ch) < 32 for ch in filename):
        raise InvalidNameError("Filename contains control characters")

    name = posixpath.normpath(filename.replace("\\", "/"))

    if name in (".", "") or "/" in name or ".." in name:
        raise InvalidNameError(
            f"Filename contains an invalid path sequence: {filename}")

    if len(name) > max_length:
        raise InvalidNameError(
            f"Filename is too long ({len(name)} characters, max {max_length})")

    try:
        encoded_size = len(name.encode("utf-8"))
    except UnicodeEncodeError:
        raise InvalidNameError("Filename is not valid UTF-8") from None
    if encoded_size > max_bytes:
        raise InvalidNameError(
            f"Filename is too long ({encoded_size} bytes, max {max_bytes})")

    return name


class FileValidator:
    """
    Validates uploads before anything touches the disk.

    Checks, in order:
    1. Filename sanitization (path traversal, separators, control chars)
    2. Non-empty content
    3. Size limit (declared and actual)
    4. File extension whitelist
    """

    def __init__(
        self,
        allowed_extensions: Iterable[str],
        max_file_size: int,
        max_filename_length: int = DEFAULT_MAX_FILENAME_LENGTH,
    ):
        """
        Initialize file validator.

        Args:
            allowed_extensions: Extensions accepted for upload (without dot)
            max_file_size: Maximum upload size in bytes
            max_filename_length: Maximum length of a sanitized filename
        """
        self.allowed_extensions = frozenset(
            ext.strip().lower().lstrip(".") for ext in allowed_extensions)
        self.max_file_size = max_file_size
        self.max_filename_length = max_filename_length

    @classmethod
    def from_settings(cls, storage_settings: Any) -> FileValidator:
        """Build a validator from a StorageSettings object."""
        return cls(
            allowed_extensions=storage_settings.allowed_extension_set(),
            max_file_size=storage_settings.max_file_size,
            max_filename_length=storage_settings.max_filename_length,
        )

    def sanitize_filename(self, filename: str | None) -> str:
        return sanitize_filename(filename, self.max_filename_length)

    def is_extension_allowed(self, extension: str) -> bool:
        return bool(extension) and extension.lower() in self.allowed_extensions

    def validate_upload(
        self,
        file_data: bytes,
        filename: str | None,
        declared_size: int | None = None,
    ) -> str:
        """
        Validate an upload and return its sanitized filename.

        Args:
            file_data: File content
            filename: Original filename from the client
            declared_size: Size reported by the client, if any

        Returns:
            Sanitized filename

        Raises:
            InvalidNameError: Unsafe or empty filename
            EmptyFileError: No content
            FileTooLargeError: Declared or actual size over the limit
            UnsupportedTypeError: Extension not in the whitelist
        """
        name = self.sanitize_filename(filename)

        if not file_data:
            raise EmptyFileError("File must not be empty")

        size = len(file_data)
        if declared_size is not None:
            size = max(size, declared_size)
        if size > self.max_file_size:
            raise FileTooLargeError(
                f"File size must not exceed "
                f"{format_file_size(self.max_file_size)}")

        extension = get_extension(name)
        if not self.is_extension_allowed(extension):
            raise UnsupportedTypeError(
                f"Unsupported file type: {extension or '(none)'}")

        return name

    @staticmethod
    def detect_content_type(
            filename: str, declared: str | None = None) -> str:
        """
        Pick a MIME type for a file.

        A declared type wins unless it is empty or the generic binary type;
        otherwise the type is guessed from the filename.
        """
        if declared and declared != DEFAULT_CONTENT_TYPE:
            return declared
        guessed_type, _ = mimetypes.guess_type(filename)
        return guessed_type or declared or DEFAULT_CONTENT_TYPE
