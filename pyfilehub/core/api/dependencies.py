"""
FastAPI dependencies for the file API.
"""

from __future__ import annotations

from fastapi import Request

from pyfilehub.config.settings import ConfigManager, get_config_manager
from pyfilehub.core.storage.file import FileManager, LocalStorageEngine


def build_file_manager(config_manager: ConfigManager) -> FileManager:
    """Create the storage engine and file manager from configuration."""
    storage = LocalStorageEngine.from_settings(config_manager.storage)
    return FileManager(
        storage,
        default_page_size=config_manager.pagination.default_size,
        max_page_size=config_manager.pagination.max_size,
    )


def get_file_manager(request: Request) -> FileManager:
    """
    Get the application's FileManager, creating it on first use.

    Args:
        request: FastAPI request

    Returns:
        FileManager instance
    """
    if not hasattr(request.app.state, "file_manager"):
        config_manager = getattr(
            request.app.state, "config_manager", None) or get_config_manager()
        request.app.state.file_manager = build_file_manager(config_manager)
    return request.app.state.file_manager
