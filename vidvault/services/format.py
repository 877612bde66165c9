import re
from typing import Any, Dict, Iterable, List, Optional

from vidvault.models.internal import FormatDescriptor

ALLOWED_EXTENSIONS = ("mp4", "webm")
DEFAULT_EXTENSION = "mp4"
BEST_LABEL = "best"
DEFAULT_SELECTOR = "bestvideo+bestaudio/best"
# Audio codec container that merges into each video container without re-encoding
AUDIO_FOR_CONTAINER = {"mp4": "m4a", "webm": "webm"}

# Offered when the extractor reports nothing usable
FALLBACK_FORMATS = (
    (BEST_LABEL, DEFAULT_EXTENSION),
    ("720p", DEFAULT_EXTENSION),
    ("480p", DEFAULT_EXTENSION),
)

_HEIGHT_TOKEN = re.compile(r"(?<!\d)(\d{3,4})(?!\d)")


class FormatDecision:
    """Make format decisions"""

    @staticmethod
    def parse_height(quality_label: str) -> Optional[int]:
        match = _HEIGHT_TOKEN.search(quality_label or "")
        if not match:
            return None
        height = int(match.group(1))
        return height if height >= 100 else None

    @staticmethod
    def decide(
        quality_label: str,
        default_selector: str = DEFAULT_SELECTOR,
        extension: Optional[str] = None,
    ) -> str:
        """
        Map a quality label to a yt-dlp selector.
        Unrecognized labels fall back to the default selector instead of failing.
        With an extension, streams that merge cleanly into that container are
        tried first, then anything that matches the quality.
        """
        label = (quality_label or "").strip()
        height = None if label.lower() == BEST_LABEL else FormatDecision.parse_height(label)

        if height:
            selector = (
                f"bestvideo[height<={height}]+bestaudio/"
                f"best[height<={height}]/best"
            )
        else:
            selector = default_selector

        if extension is None:
            return selector

        ext = FormatDecision.normalize_extension(extension)
        cap = f"[height<={height}]" if height else ""
        audio = AUDIO_FOR_CONTAINER[ext]
        return (
            f"bestvideo{cap}[ext={ext}]+bestaudio[ext={audio}]/"
            f"best{cap}[ext={ext}]/{selector}"
        )

    @staticmethod
    def normalize_extension(extension: str) -> str:
        ext = (extension or "").strip().lstrip(".").lower()
        return ext if ext in ALLOWED_EXTENSIONS else DEFAULT_EXTENSION

    @staticmethod
    def describe(fmt: Dict[str, Any]) -> Optional[FormatDescriptor]:
        """Turn one raw extractor format into a descriptor, or None if it is not offered."""
        ext = fmt.get("ext")
        if ext not in ALLOWED_EXTENSIONS:
            return None
        # Audio-only streams cannot satisfy a video download
        if fmt.get("vcodec") == "none":
            return None

        height = fmt.get("height")
        width = fmt.get("width")
        quality = fmt.get("format_note") or (f"{height}p" if height else None) or ext

        if height and width:
            resolution = f"{width}x{height}"
        else:
            resolution = fmt.get("resolution")

        size = fmt.get("filesize") or fmt.get("filesize_approx")

        return FormatDescriptor(
            quality_label=str(quality),
            extension=ext,
            resolution=resolution,
            estimated_size_bytes=int(size) if size else None,
            extractor_format_id=fmt.get("format_id"),
        )

    @staticmethod
    def build_catalog(raw_formats: Iterable[Any]) -> List[FormatDescriptor]:
        """Dedupe by (quality_label, extension) keeping the first; never empty."""
        catalog: Dict[tuple, FormatDescriptor] = {}
        for fmt in raw_formats or ():
            if not isinstance(fmt, dict):
                continue
            descriptor = FormatDecision.describe(fmt)
            if descriptor is not None and descriptor.key not in catalog:
                catalog[descriptor.key] = descriptor

        if not catalog:
            return [
                FormatDescriptor(quality_label=label, extension=ext)
                for label, ext in FALLBACK_FORMATS
            ]
        return list(catalog.values())
