import os

import aiofiles
import pytest
from httpx import ASGITransport, AsyncClient

from vidvault.api import deps, files
from vidvault.core.errors import DownloadFailure, ExtractionFailure

TIKTOK_URL = "https://www.tiktok.com/@cat/video/7301234567890"


def client_for(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_health_check(client_app):
    """Test public health endpoint"""
    async with client_for(client_app) as ac:
        response = await ac.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["ytdlp_available"] is True
    assert body["ytdlp_version"] == "2026.09.01"
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_health_degraded_without_tool(client_app, fake_extractor):
    fake_extractor.installed = False
    async with client_for(client_app) as ac:
        response = await ac.get("/health")
    assert response.status_code == 503
    assert response.json()["ytdlp_available"] is False
    assert response.json()["status"] == "degraded"


@pytest.mark.asyncio
async def test_health_full_reports_store(client_app):
    async with client_for(client_app) as ac:
        response = await ac.get("/health/full")
    body = response.json()
    assert response.status_code == 200
    assert body["stored_files"] == 0
    assert body["active_downloads"] == 0


@pytest.mark.asyncio
async def test_end_to_end_download_lifecycle(client_app):
    async with client_for(client_app) as ac:
        info = await ac.post("/info", json={"url": TIKTOK_URL})
        assert info.status_code == 200
        metadata = info.json()
        assert metadata["platform"] == "tiktok"
        assert len(metadata["formats"]) >= 1

        first = metadata["formats"][0]
        download = await ac.post(
            "/download",
            json={"url": TIKTOK_URL, "quality": first["quality_label"], "extension": first["extension"]},
        )
        assert download.status_code == 200
        result = download.json()
        assert result["download_url"] == f"/files/{result['file_name']}"

        retrieved = await ac.get(result["download_url"])
        assert retrieved.status_code == 200
        assert len(retrieved.content) == result["size_bytes"]
        assert "attachment" in retrieved.headers["content-disposition"]

        listing = await ac.get("/files")
        assert [f["file_name"] for f in listing.json()] == [result["file_name"]]

        deleted = await ac.delete(f"/files/{result['file_name']}")
        assert deleted.status_code == 200
        assert deleted.json()["deleted"] is True

        missing = await ac.get(f"/files/{result['file_name']}")
        assert missing.status_code == 404
        assert missing.json()["error"] == "file_not_found"

        again = await ac.delete(f"/files/{result['file_name']}")
        assert again.status_code == 404


@pytest.mark.asyncio
async def test_info_rejects_bad_urls_before_extraction(client_app, fake_extractor):
    async with client_for(client_app) as ac:
        invalid = await ac.post("/info", json={"url": "definitely not a url"})
        unsupported = await ac.post("/info", json={"url": "https://example.com/video"})

    assert invalid.status_code == 400
    assert invalid.json()["error"] == "invalid_url"
    assert unsupported.status_code == 422
    assert unsupported.json()["error"] == "unsupported_platform"
    assert fake_extractor.metadata_calls == []


@pytest.mark.asyncio
async def test_extraction_failure_is_normalized(client_app, fake_extractor):
    fake_extractor.info = ExtractionFailure("ERROR: /srv/secret/cookies.txt unreadable")
    async with client_for(client_app) as ac:
        response = await ac.post("/info", json={"url": TIKTOK_URL})

    assert response.status_code == 502
    assert response.json()["error"] == "extraction_failed"
    assert "/srv/secret" not in response.text


@pytest.mark.asyncio
async def test_error_messages_are_localized(client_app):
    async with client_for(client_app) as ac:
        response = await ac.post(
            "/info",
            json={"url": "https://example.com/video"},
            headers={"Accept-Language": "ja-JP,ja;q=0.9"},
        )
    assert response.json()["detail"] == "このプラットフォームには対応していません"


@pytest.mark.asyncio
async def test_failed_download_leaves_store_empty(client_app, fake_extractor, store):
    fake_extractor.fail_download = DownloadFailure("yt-dlp exited with 1")
    async with client_for(client_app) as ac:
        response = await ac.post("/download", json={"url": TIKTOK_URL, "quality": "720p", "extension": "mp4"})
        listing = await ac.get("/files")

    assert response.status_code == 502
    assert response.json()["error"] == "download_failed"
    assert listing.json() == []


@pytest.mark.asyncio
async def test_download_defaults(client_app, fake_extractor):
    async with client_for(client_app) as ac:
        response = await ac.post("/download", json={"url": "https://youtu.be/abc"})

    assert response.status_code == 200
    assert response.json()["file_name"].endswith(".mp4")
    selector = fake_extractor.media_calls[0]["selector"]
    assert selector.startswith("bestvideo[ext=mp4]+bestaudio[ext=m4a]/")
    assert selector.endswith("/bestvideo+bestaudio/best")


@pytest.mark.asyncio
async def test_unknown_file_names_are_not_found(client_app):
    async with client_for(client_app) as ac:
        missing = await ac.get("/files/video_000000000000.mp4")
        dotted = await ac.get("/files/..video")
    assert missing.status_code == 404
    assert dotted.status_code == 404
    assert missing.json() == dotted.json()


@pytest.mark.asyncio
async def test_file_swept_before_open_is_not_found(client_app, store, put, monkeypatch):
    name = put(data=b"z" * 64)
    real_open = aiofiles.open

    def open_after_sweep(path, *args, **kwargs):
        os.remove(path)
        return real_open(path, *args, **kwargs)

    monkeypatch.setattr(files.aiofiles, "open", open_after_sweep)
    async with client_for(client_app) as ac:
        response = await ac.get(f"/files/{name}")

    assert response.status_code == 404
    assert response.json()["error"] == "file_not_found"


@pytest.mark.asyncio
async def test_file_deleted_mid_request_streams_in_full(client_app, store, put, monkeypatch):
    name = put(data=b"z" * 64)
    real_open = aiofiles.open

    async def open_then_delete(path, *args, **kwargs):
        handle = await real_open(path, *args, **kwargs)
        os.remove(path)
        return handle

    monkeypatch.setattr(files.aiofiles, "open", open_then_delete)
    async with client_for(client_app) as ac:
        response = await ac.get(f"/files/{name}")

    assert response.status_code == 200
    assert response.headers["content-length"] == "64"
    assert response.content == b"z" * 64
    assert store.list() == []


@pytest.mark.asyncio
async def test_admin_cleanup(client_app, store, age_file):
    async with client_for(client_app) as ac:
        download = await ac.post("/download", json={"url": TIKTOK_URL})
        file_name = download.json()["file_name"]
        age_file(store.resolve(file_name), 30)

        response = await ac.post("/admin/cleanup")
        listing = await ac.get("/files")

    assert response.status_code == 200
    assert response.json()["removed"] == 1
    assert listing.json() == []


@pytest.mark.asyncio
async def test_admin_config(client_app):
    async with client_for(client_app) as ac:
        response = await ac.get("/admin/config")
    assert response.status_code == 200
    assert response.json()["storage"]["max_age_hours"] == 24


def test_dependency_overrides_are_isolated(client_app, store):
    assert client_app.dependency_overrides[deps.get_file_store]() is store
