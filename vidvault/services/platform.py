from typing import Optional, Tuple
from urllib.parse import urlparse

from vidvault.core.errors import InvalidURL, UnsupportedPlatform
from vidvault.models.internal import VideoReference

# Ordered; first match wins
PLATFORMS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("youtube", ("youtube.com", "youtu.be", "youtube-nocookie.com")),
    ("instagram", ("instagram.com",)),
    ("tiktok", ("tiktok.com",)),
    ("facebook", ("facebook.com", "fb.watch")),
    ("twitter", ("twitter.com", "x.com")),
    ("vimeo", ("vimeo.com",)),
)


class PlatformDetector:
    """
    Classify a URL by host name.
    Pure string parsing: never touches the network.
    """

    def __init__(self, platforms: Tuple[Tuple[str, Tuple[str, ...]], ...] = PLATFORMS):
        self.platforms = platforms

    @staticmethod
    def _hostname(url: str) -> str:
        if not isinstance(url, str) or not url.strip():
            raise InvalidURL("empty url")
        try:
            parsed = urlparse(url.strip())
            hostname = parsed.hostname
            parsed.port  # raises ValueError on a malformed port
        except ValueError:
            raise InvalidURL("unparsable url")

        if parsed.scheme not in ("http", "https") or not hostname:
            raise InvalidURL("url must be absolute http(s) with a host")
        return hostname.rstrip(".").lower()

    def match(self, url: str) -> Optional[str]:
        """Return the platform tag or None; raises InvalidURL on malformed input."""
        hostname = self._hostname(url)
        for tag, domains in self.platforms:
            for domain in domains:
                if hostname == domain or hostname.endswith("." + domain):
                    return tag
        return None

    def detect(self, url: str) -> str:
        platform = self.match(url)
        if platform is None:
            raise UnsupportedPlatform("no platform matches host", host=self._hostname(url))
        return platform

    def reference(self, url: str) -> VideoReference:
        return VideoReference(url=url.strip(), platform=self.detect(url))


detector = PlatformDetector()
