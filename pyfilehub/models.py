from pydantic import BaseModel
from typing import Optional, Any


# File Models
class FileRecordModel(BaseModel):
    stored_name: str
    original_name: str
    size_bytes: int
    content_type: str
    category: str
    extension: str
    upload_time: str
    upload_user: str
    file_path: str
    download_url: Optional[str] = None


class UploadResponseModel(BaseModel):
    file: FileRecordModel
    message: str


class FailedUploadModel(BaseModel):
    filename: Optional[str] = None
    reason: str
    code: Optional[str] = None


class BatchUploadResponseModel(BaseModel):
    success_files: list[FileRecordModel]
    failed_files: list[FailedUploadModel]
    total_count: int
    success_count: int
    failed_count: int


# Listing Models
class PaginationModel(BaseModel):
    page: int
    size: int
    offset: int
    total: int
    total_pages: int


class FileListResponseModel(BaseModel):
    files: list[FileRecordModel]
    pagination: PaginationModel
    category: Optional[str] = None


class DeleteResponseModel(BaseModel):
    stored_name: str
    message: str


# Category Models
class CategoryStatsResponseModel(BaseModel):
    data: dict[str, int]


class CategoryInfoModel(BaseModel):
    category: str
    name: str
    display_name: str
    color: str
    extensions: list[str]
    count: int


class CategoryListResponseModel(BaseModel):
    categories: list[CategoryInfoModel]


# Storage Models
class StorageInfoResponseModel(BaseModel):
    storage_path: str
    total_size: int
    total_size_formatted: str
    total_files: int
    free_space: int
    used_space: int
    total_space: int
    max_file_size: int
    max_file_size_formatted: str
    cache_size: int


class HealthResponseModel(BaseModel):
    status: str
    timestamp: str
    service: str
    max_file_size: int
    max_file_size_formatted: str
    details: Optional[dict[str, Any]] = None
