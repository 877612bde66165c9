from .errors import (
    DownloadFailure,
    ExtractionFailure,
    ExtractorError,
    FileNotFound,
    InvalidURL,
    PathTraversalAttempt,
    ServerBusy,
    ToolUnavailable,
    UnsupportedPlatform,
    VidVaultError,
)

__all__ = [
    "DownloadFailure",
    "ExtractionFailure",
    "ExtractorError",
    "FileNotFound",
    "InvalidURL",
    "PathTraversalAttempt",
    "ServerBusy",
    "ToolUnavailable",
    "UnsupportedPlatform",
    "VidVaultError",
]
