"""
Stored file records.

A FileRecord describes one physical file in the storage root. Identity
fields are fixed at creation; only the display-facing download URL is
ever filled in afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .categories import FileCategory, category_from_extension, get_extension


DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class FileRecord:
    """Metadata for a single stored upload."""

    stored_name: str
    original_name: str
    size_bytes: int
    content_type: str
    category: FileCategory
    extension: str
    upload_time: datetime
    upload_user: str
    file_path: str
    download_url: str | None = field(default=None, compare=False)

    @classmethod
    def create(
        cls,
        stored_name: str,
        original_name: str,
        size_bytes: int,
        upload_time: datetime,
        upload_user: str,
        file_path: str,
        content_type: str | None = None,
        category: FileCategory | None = None,
        download_url: str | None = None,
    ) -> FileRecord:
        """
        Build a record, deriving extension and category from original_name.

        An explicit category overrides the inferred one.
        """
        extension = get_extension(original_name)
        return cls(
            stored_name=stored_name,
            original_name=original_name,
            size_bytes=size_bytes,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            category=category or category_from_extension(extension),
            extension=extension,
            upload_time=upload_time,
            upload_user=upload_user,
            file_path=file_path,
            download_url=download_url,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "stored_name": self.stored_name,
            "original_name": self.original_name,
            "size_bytes": self.size_bytes,
            "content_type": self.content_type,
            "category": self.category.value,
            "extension": self.extension,
            "upload_time": self.upload_time.isoformat(),
            "upload_user": self.upload_user,
            "file_path": self.file_path,
            "download_url": self.download_url,
        }

