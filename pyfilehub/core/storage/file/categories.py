"""File categories derived from file extensions."""

from __future__ import annotations

from enum import Enum


class FileCategory(str, Enum):
    """Coarse file-type classification used for filtering and statistics."""
    DOCUMENT = "DOCUMENT"
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    AUDIO = "AUDIO"
    ARCHIVE = "ARCHIVE"
    CODE = "CODE"
    EXECUTABLE = "EXECUTABLE"
    OTHER = "OTHER"

    @property
    def display_name(self) -> str:
        return CATEGORY_DISPLAY[self][0]

    @property
    def color(self) -> str:
        return CATEGORY_DISPLAY[self][1]

    @property
    def extensions(self) -> frozenset[str]:
        return CATEGORY_EXTENSIONS.get(self, frozenset())

    @classmethod
    def parse(cls, value: str | None) -> FileCategory | None:
        """
        Look up a category by name, ignoring case.

        Returns None for empty or unrecognized input instead of raising,
        so callers can decide how lenient to be.
        """
        if not value:
            return None
        return cls.__members__.get(value.strip().upper())


CATEGORY_EXTENSIONS: dict[FileCategory, frozenset[str]] = {
    FileCategory.DOCUMENT: frozenset(
        {"pdf", "doc", "docx", "txt", "ppt", "pptx", "xls", "xlsx", "md"}),
    FileCategory.IMAGE: frozenset(
        {"jpg", "jpeg", "png", "gif", "bmp", "svg", "webp", "ico"}),
    FileCategory.VIDEO: frozenset(
        {"mp4", "avi", "mov", "wmv", "flv", "mkv", "webm"}),
    FileCategory.AUDIO: frozenset(
        {"mp3", "wav", "ogg", "flac", "aac", "m4a"}),
    FileCategory.ARCHIVE: frozenset(
        {"zip", "rar", "7z", "tar", "gz", "bz2"}),
    FileCategory.CODE: frozenset(
        {"java", "js", "html", "css", "py", "cpp", "c", "h", "xml", "json"}),
    FileCategory.EXECUTABLE: frozenset(
        {"exe", "msi", "dmg", "pkg", "deb", "rpm", "jar", "bat", "cmd"}),
}

CATEGORY_DISPLAY: dict[FileCategory, tuple[str, str]] = {
    FileCategory.DOCUMENT: ("Documents", "#2196F3"),
    FileCategory.IMAGE: ("Images", "#4CAF50"),
    FileCategory.VIDEO: ("Videos", "#FF9800"),
    FileCategory.AUDIO: ("Audio", "#9C27B0"),
    FileCategory.ARCHIVE: ("Archives", "#795548"),
    FileCategory.CODE: ("Code", "#607D8B"),
    FileCategory.EXECUTABLE: ("Executables", "#F44336"),
    FileCategory.OTHER: ("Other", "#9E9E9E"),
}


def _build_extension_index(
        table: dict[FileCategory, frozenset[str]]) -> dict[str, FileCategory]:
    """
    Invert the category table into an extension lookup.

    Raises:
        ValueError: If an extension is claimed by two categories
    """
    index: dict[str, FileCategory] = {}
    for category, extensions in table.items():
        for ext in extensions:
            if ext in index:
                raise ValueError(
                    f"Extension '{ext}' is mapped to both "
                    f"{index[ext].name} and {category.name}")
            index[ext] = category
    return index


EXTENSION_CATEGORIES = _build_extension_index(CATEGORY_EXTENSIONS)


def get_extension(filename: str | None) -> str:
    """
    Return the lower-cased text after the last dot of a filename.

    A dot counts only with at least one character on each side, so
    ".bashrc" and "archive." have no extension. Returns "" when absent.
    """
    if not filename:
        return ""
    dot = filename.rfind(".")
    if 0 < dot < len(filename) - 1:
        return filename[dot + 1:].lower()
    return ""


def category_from_extension(extension: str | None) -> FileCategory:
    """Map an extension (with or without leading dot) to its category."""
    if not extension:
        return FileCategory.OTHER
    return EXTENSION_CATEGORIES.get(
        extension.lower().lstrip("."), FileCategory.OTHER)


def category_from_filename(filename: str | None) -> FileCategory:
    """Map a filename to the category of its extension."""
    return category_from_extension(get_extension(filename))
