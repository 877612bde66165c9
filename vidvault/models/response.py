from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class DownloadResponse(BaseModel):
    """Result of a completed download"""
    file_name: str
    size_bytes: int
    download_url: str


class StoredFileResponse(BaseModel):
    """Single entry of the file listing"""
    file_name: str
    size_bytes: int
    created_at: datetime
    download_url: str


class DeleteResponse(BaseModel):
    deleted: bool
    file_name: str


class CleanupResponse(BaseModel):
    removed: int
    max_age_hours: float


class HealthResponse(BaseModel):
    status: str
    ytdlp_available: bool
    ytdlp_version: Optional[str] = None
    redis: str
