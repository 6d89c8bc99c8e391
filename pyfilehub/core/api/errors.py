"""
Standardized error response handling for PyFileHub API.

This module provides utilities for creating consistent error responses
across all API endpoints, ensuring a uniform error format for clients.
"""

from __future__ import annotations

from typing import Any, NoReturn
from fastapi import HTTPException, status

from pyfilehub.core.storage.file import (
    FileStorageError,
    FileTooLargeError,
    PathSecurityError,
    StorageDeleteError,
    StorageWriteError,
    UnsupportedTypeError,
)


def error_response(
    message: str,
    details: list[str] | None = None,
    field: str | None = None,
    code: str | None = None
) -> dict[str, Any]:
    """
    Create a standardized error response.

    Args:
        message: Human-readable error summary
        details: List of specific error details (optional)
        field: Field name that caused the error (optional)
        code: Error code for programmatic handling (optional)

    Returns:
        Standardized error response dictionary

    Examples:
        >>> error_response("File not found", code="NOT_FOUND")
        {'error': {'message': 'File not found', 'code': 'NOT_FOUND'}}
    """
    error_dict: dict[str, Any] = {"message": message}

    if details is not None:
        error_dict["details"] = details

    if field is not None:
        error_dict["field"] = field

    if code is not None:
        error_dict["code"] = code

    return {"error": error_dict}


def raise_error(
    message: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    details: list[str] | None = None,
    field: str | None = None,
    code: str | None = None
) -> NoReturn:
    """
    Raise an HTTPException with standardized error format.

    Raises:
        HTTPException: With standardized error response format
    """
    raise HTTPException(
        status_code=status_code,
        detail=error_response(message, details, field, code)
    )


def not_found_error(resource: str, resource_id: str | None = None) -> NoReturn:
    """Raise a not found error."""
    message = f"{resource} not found"
    if resource_id:
        message = f"{resource} '{resource_id}' not found"

    raise_error(
        message=message,
        status_code=status.HTTP_404_NOT_FOUND,
        code="NOT_FOUND"
    )


def server_error(message: str = "Internal server error", code: str = "SERVER_ERROR") -> NoReturn:
    """Raise a server error."""
    raise_error(
        message=message,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code=code
    )


def storage_error(exc: FileStorageError) -> NoReturn:
    """
    Translate a storage exception into an HTTP error.

    Validation failures keep their reason; server-side I/O failures are
    reported generically since their details are only for the logs.
    """
    if isinstance(exc, StorageWriteError):
        server_error("File upload failed", code=exc.code)
    if isinstance(exc, StorageDeleteError):
        server_error("File deletion failed", code=exc.code)
    if isinstance(exc, PathSecurityError):
        raise_error(
            message="File path is not allowed",
            status_code=status.HTTP_403_FORBIDDEN,
            code=exc.code
        )
    if isinstance(exc, FileTooLargeError):
        status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    elif isinstance(exc, UnsupportedTypeError):
        status_code = status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    raise_error(
        message="File validation failed",
        status_code=status_code,
        details=[exc.reason],
        code=exc.code
    )
