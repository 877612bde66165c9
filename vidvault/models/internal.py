from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class VideoReference(BaseModel):
    """URL paired with the platform it was detected as"""
    url: str
    platform: str


class FormatDescriptor(BaseModel):
    """One selectable quality/extension combination"""
    quality_label: str
    extension: str
    resolution: Optional[str] = None
    estimated_size_bytes: Optional[int] = None
    extractor_format_id: Optional[str] = None

    @property
    def key(self) -> tuple:
        return (self.quality_label, self.extension)


class MediaMetadata(BaseModel):
    """Normalized metadata for a media URL"""
    title: str = "Unknown Title"
    duration_seconds: int = 0
    thumbnail_url: str = ""
    author: str = "Unknown Author"
    platform: str
    video_id: str = ""
    formats: List[FormatDescriptor] = Field(default_factory=list)


class DownloadIntent(BaseModel):
    """Internal download intent (separated from HTTP concerns)"""
    url: str
    quality_label: str = "best"
    extension: str = "mp4"


class StoredFile(BaseModel):
    """A file in the store; metadata is read from the filesystem"""
    file_name: str
    size_bytes: int
    created_at: datetime
