import asyncio
import copy
import functools
import os
from typing import Any, Dict, List, Optional

import pytest

from vidvault.api import deps
from vidvault.infra.concurrency import ConcurrencyLimiter
from vidvault.main import app
from vidvault.services.storage import FileStore

SAMPLE_INFO: Dict[str, Any] = {
    "id": "7301234567890",
    "title": "Dancing cat",
    "duration": 14.6,
    "thumbnail": "https://p16.example.com/thumb.jpg",
    "uploader": "catlover",
    "formats": [
        {"format_id": "h264_540p", "ext": "mp4", "format_note": "540p", "height": 1024, "width": 576, "filesize": 2048000, "vcodec": "h264"},
        {"format_id": "h264_540p_dup", "ext": "mp4", "format_note": "540p", "height": 1024, "width": 576, "vcodec": "h264"},
        {"format_id": "bytevc1_720p", "ext": "mp4", "format_note": "720p", "height": 1280, "width": 720, "filesize_approx": 3100000, "vcodec": "h265"},
        {"format_id": "audio", "ext": "m4a", "format_note": "audio only", "vcodec": "none"},
        {"format_id": "webm_audio", "ext": "webm", "format_note": "medium", "vcodec": "none", "acodec": "opus"},
        {"format_id": "sb0", "ext": "mhtml", "format_note": "storyboard"},
    ],
}


class FakeExtractor:
    """In-memory MediaExtractor: records calls, writes payload bytes on download"""

    def __init__(
        self,
        info: Optional[Dict[str, Any]] = None,
        payload: bytes = b"\x00\x00\x00\x18ftypmp42" + b"x" * 4096,
        fail_download: Optional[Exception] = None,
        delay: float = 0.0,
        installed: bool = True,
    ):
        self.info = info if info is not None else SAMPLE_INFO
        self.payload = payload
        self.fail_download = fail_download
        self.delay = delay
        self.installed = installed
        self.metadata_calls: List[str] = []
        self.media_calls: List[Dict[str, str]] = []
        self.running = 0
        self.peak = 0

    async def fetch_metadata(self, url: str) -> Dict[str, Any]:
        self.metadata_calls.append(url)
        if isinstance(self.info, Exception):
            raise self.info
        return dict(self.info)

    async def fetch_media(self, url: str, selector: str, destination: str) -> None:
        self.media_calls.append({"url": url, "selector": selector, "destination": destination})
        self.running += 1
        self.peak = max(self.peak, self.running)
        try:
            # Partial output first, like a real extractor mid-download
            with open(destination, "wb") as f:
                f.write(self.payload[: len(self.payload) // 2])
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail_download is not None:
                raise self.fail_download
            with open(destination, "wb") as f:
                f.write(self.payload)
        finally:
            self.running -= 1

    async def version(self) -> Optional[str]:
        return "2026.09.01" if self.installed else None


def _age_file(path: str, hours: float) -> None:
    st = os.stat(path)
    shifted = st.st_mtime - hours * 3600
    os.utime(path, (shifted, shifted))


def _put(store: FileStore, ext: str = "mp4", data: bytes = b"data") -> str:
    name = store.reserve_name(ext)
    with open(store.staging_path(name), "wb") as f:
        f.write(data)
    store.commit(name)
    return name


@pytest.fixture
def sample_info():
    return copy.deepcopy(SAMPLE_INFO)


@pytest.fixture
def make_extractor():
    """Factory for FakeExtractor instances with per-test options"""
    return FakeExtractor


@pytest.fixture
def age_file():
    """Backdate a file's timestamps by the given number of hours"""
    return _age_file


@pytest.fixture
def storage_root(tmp_path):
    return str(tmp_path / "downloads")


@pytest.fixture
def store(storage_root):
    return FileStore(storage_root)


@pytest.fixture
def put(store):
    """Register a file in the store the way a download does"""
    return functools.partial(_put, store)


@pytest.fixture
def fake_extractor():
    return FakeExtractor()


@pytest.fixture
def limiter():
    return ConcurrencyLimiter("test", max_concurrent=2, queue_timeout=5)


@pytest.fixture
def client_app(store, fake_extractor):
    """The FastAPI app wired to an isolated store and the fake extractor"""
    app.dependency_overrides[deps.get_file_store] = lambda: store
    app.dependency_overrides[deps.get_extractor] = lambda: fake_extractor
    app.dependency_overrides[deps.get_download_limiter] = lambda: ConcurrencyLimiter("downloads", 2, 5)
    app.dependency_overrides[deps.get_info_limiter] = lambda: ConcurrencyLimiter("metadata", 4, 5)
    yield app
    app.dependency_overrides.clear()
