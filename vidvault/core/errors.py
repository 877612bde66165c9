from typing import Any


class VidVaultError(Exception):
    """
    Base error for the download pipeline.
    Carries an error code, HTTP status and i18n message key so the
    API layer can render it without inspecting the cause.
    """
    code = "internal_error"
    status_code = 500
    message_key = "error.internal"

    def __init__(self, reason: str = "", **params: Any):
        super().__init__(reason or self.code)
        self.reason = reason
        self.params = params


class InvalidURL(VidVaultError):
    code = "invalid_url"
    status_code = 400
    message_key = "error.invalid_url"


class UnsupportedPlatform(VidVaultError):
    code = "unsupported_platform"
    status_code = 422
    message_key = "error.unsupported_platform"


class ExtractorError(VidVaultError):
    """Failure reported by the external extractor; timeouts render as 504."""
    status_code = 502

    def __init__(self, reason: str = "", timed_out: bool = False, **params: Any):
        super().__init__(reason, **params)
        self.timed_out = timed_out
        if timed_out:
            self.status_code = 504
            self.message_key = "error.timeout"


class ExtractionFailure(ExtractorError):
    code = "extraction_failed"
    message_key = "error.extraction_failed"


class DownloadFailure(ExtractorError):
    code = "download_failed"
    message_key = "error.download_failed"


class FileNotFound(VidVaultError):
    code = "file_not_found"
    status_code = 404
    message_key = "error.file_not_found"


class PathTraversalAttempt(FileNotFound):
    """Rendered exactly like FileNotFound so callers learn nothing about the tree."""


class ToolUnavailable(VidVaultError):
    code = "tool_unavailable"
    status_code = 503
    message_key = "error.tool_unavailable"


class ServerBusy(VidVaultError):
    code = "server_busy"
    status_code = 503
    message_key = "error.server_busy"
