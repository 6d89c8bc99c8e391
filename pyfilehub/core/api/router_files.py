"""
File API router.

Provides endpoints for uploading, listing, downloading and deleting
stored files, plus category statistics and storage information.

Endpoints are plain ``def`` functions so FastAPI runs them in its
threadpool; the storage engine is safe to call concurrently.
"""

from __future__ import annotations

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    Query,
    UploadFile,
)
from fastapi.responses import StreamingResponse
from typing import BinaryIO, Iterator, Optional
from urllib.parse import quote

from pyfilehub.logging.setup import get_logger
from pyfilehub.core.api.dependencies import get_file_manager
from pyfilehub.core.api.errors import (
    not_found_error,
    raise_error,
    storage_error,
)
from pyfilehub.core.storage.file import (
    FileManager,
    FileStorageError,
    UploadItem,
)
from pyfilehub.models import (
    BatchUploadResponseModel,
    CategoryListResponseModel,
    CategoryStatsResponseModel,
    DeleteResponseModel,
    FileListResponseModel,
    FileRecordModel,
    StorageInfoResponseModel,
    UploadResponseModel,
)

logger = get_logger(__name__)

DOWNLOAD_CHUNK_SIZE = 64 * 1024

router = APIRouter(
    prefix="/api/v1",
    tags=["files"]
)


def _read_upload(file: UploadFile) -> bytes:
    """Read the whole body of an uploaded file."""
    try:
        return file.file.read()
    except OSError as e:
        logger.error(f"Failed to read uploaded file {file.filename!r}: {e}")
        raise_error(
            message="Failed to read file",
            details=[str(e)],
            code="FILE_READ_ERROR"
        )


def _read_batch_item(file: UploadFile) -> UploadItem:
    """Read one file of a batch; a read failure marks only that item as failed."""
    try:
        data = file.file.read()
    except OSError as e:
        logger.error(f"Failed to read uploaded file {file.filename!r}: {e}")
        return UploadItem(
            filename=file.filename,
            data=b"",
            content_type=file.content_type,
            read_error="Failed to read file")
    return UploadItem(
        filename=file.filename, data=data, content_type=file.content_type)


def _iter_file(handle: BinaryIO) -> Iterator[bytes]:
    with handle:
        yield from iter(lambda: handle.read(DOWNLOAD_CHUNK_SIZE), b"")


def content_disposition(filename: str) -> str:
    """
    Build an attachment Content-Disposition header for a display filename.

    Non-ASCII names get an RFC 5987 ``filename*`` parameter alongside an
    ASCII-only fallback.
    """
    fallback = filename.encode("ascii", "ignore").decode("ascii")
    fallback = fallback.replace('"', "").replace("\\", "") or "download"
    return (f'attachment; filename="{fallback}"; '
            f"filename*=UTF-8''{quote(filename, safe='')}")


@router.post("/files/upload", response_model=UploadResponseModel)
def upload_file(
    file: UploadFile = File(...),
    category: Optional[str] = Form(None),
    upload_user: Optional[str] = Form(None),
    file_manager: FileManager = Depends(get_file_manager),
):
    """
    Upload a single file.

    Args:
        file: Uploaded file (multipart/form-data)
        category: Optional category override; unknown values are ignored
        upload_user: Optional uploader identity

    Raises:
        HTTPException:
            - 400: Invalid filename or empty file
            - 413: File too large
            - 415: Unsupported file type
            - 500: Storage failure
    """
    logger.info(
        f"File upload request: filename={file.filename!r}, "
        f"category={category}, user={upload_user}")

    data = _read_upload(file)
    try:
        record = file_manager.upload_file(
            data,
            file.filename,
            content_type=file.content_type,
            category=category,
            upload_user=upload_user,
            declared_size=file.size,
        )
    except FileStorageError as e:
        storage_error(e)

    return {
        "file": record.to_dict(),
        "message": "File uploaded successfully"
    }


@router.post("/files/upload/batch", response_model=BatchUploadResponseModel)
def upload_files(
    files: Optional[list[UploadFile]] = File(None),
    category: Optional[str] = Form(None),
    upload_user: Optional[str] = Form(None),
    file_manager: FileManager = Depends(get_file_manager),
):
    """
    Upload several files at once.

    Each file is validated and stored independently; failures are
    reported per file in ``failed_files``.
    """
    files = files or []
    logger.info(f"Batch upload request: {len(files)} files, user={upload_user}")

    items = [_read_batch_item(f) for f in files]
    try:
        result = file_manager.upload_batch(
            items, category=category, upload_user=upload_user)
    except FileStorageError as e:
        storage_error(e)

    return result.to_dict()


@router.get("/files", response_model=FileListResponseModel)
def list_files(
    category: Optional[str] = None,
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None, ge=1),
    file_manager: FileManager = Depends(get_file_manager),
):
    """
    List stored files, most recent first.

    Args:
        category: Optional category filter (e.g. DOCUMENT, image)
        page: Zero-based page number
        size: Page size, capped by the configured maximum
    """
    result = file_manager.list_files(category, page=page, size=size)
    response = result.to_dict()
    response["category"] = category
    return response


@router.get("/files/{stored_name}/info", response_model=FileRecordModel)
def get_file_info(
    stored_name: str,
    file_manager: FileManager = Depends(get_file_manager),
):
    record = file_manager.get_file(stored_name)
    if record is None:
        not_found_error("File", stored_name)
    return record.to_dict()


@router.get("/files/download/{stored_name}")
def download_file(
    stored_name: str,
    file_manager: FileManager = Depends(get_file_manager),
):
    """
    Download a stored file under its original name.

    Security headers:
    - Content-Disposition: attachment (force download, prevent inline display)
    - X-Content-Type-Options: nosniff (prevent MIME sniffing)
    - Content-Security-Policy: sandbox (restrict execution)
    - X-Frame-Options: DENY (prevent framing)
    """
    opened = file_manager.open_download(stored_name)
    if opened is None:
        not_found_error("File", stored_name)
    handle, record, media_type = opened

    logger.info(
        f"File download: stored_name={stored_name}, "
        f"original_name={record.original_name!r}")

    headers = {
        "Content-Disposition": content_disposition(record.original_name),
        "X-Content-Type-Options": "nosniff",
        "Content-Security-Policy": "sandbox",
        "X-Frame-Options": "DENY",
    }
    return StreamingResponse(
        _iter_file(handle),
        media_type=media_type,
        headers=headers,
    )


@router.delete("/files/{stored_name}", response_model=DeleteResponseModel)
def delete_file(
    stored_name: str,
    file_manager: FileManager = Depends(get_file_manager),
):
    """
    Delete a stored file.

    Raises:
        HTTPException:
            - 403: Name resolves outside the storage root
            - 404: File not found
            - 500: File could not be removed
    """
    logger.info(f"File deletion request: stored_name={stored_name}")
    try:
        deleted = file_manager.delete_file(stored_name)
    except FileStorageError as e:
        storage_error(e)

    if not deleted:
        not_found_error("File", stored_name)
    return {
        "stored_name": stored_name,
        "message": "File deleted successfully"
    }


@router.get("/categories/stats", response_model=CategoryStatsResponseModel)
def get_category_stats(file_manager: FileManager = Depends(get_file_manager)):
    stats = file_manager.category_statistics()
    return {"data": {category.value: count for category, count in stats.items()}}


@router.get("/categories", response_model=CategoryListResponseModel)
def get_categories(file_manager: FileManager = Depends(get_file_manager)):
    """All categories with display metadata and current file counts."""
    return {"categories": file_manager.category_summary()}


@router.get("/storage/info", response_model=StorageInfoResponseModel)
def get_storage_info(file_manager: FileManager = Depends(get_file_manager)):
    return file_manager.storage_info()
