from .internal import DownloadIntent, FormatDescriptor, MediaMetadata, StoredFile, VideoReference
from .request import InfoRequest, VideoRequest
from .response import DownloadResponse, StoredFileResponse

__all__ = [
    "DownloadIntent",
    "DownloadResponse",
    "FormatDescriptor",
    "InfoRequest",
    "MediaMetadata",
    "StoredFile",
    "StoredFileResponse",
    "VideoReference",
    "VideoRequest",
]
