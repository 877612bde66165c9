from pydantic import BaseModel, Field
from vidvault.models.internal import DownloadIntent


class InfoRequest(BaseModel):
    # Syntax is checked by PlatformDetector so malformed URLs map to InvalidURL
    url: str = Field(..., min_length=1, max_length=2048, description="Media URL")


class VideoRequest(InfoRequest):
    quality: str = Field("best", max_length=64, description="Quality label from the format catalog")
    extension: str = Field("mp4", max_length=16, description="Container extension (mp4, webm)")

    def to_intent(self) -> DownloadIntent:
        """Convert to download intent"""
        return DownloadIntent(
            url=self.url.strip(),
            quality_label=self.quality.strip() or "best",
            extension=self.extension.strip().lower() or "mp4",
        )
