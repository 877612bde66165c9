import logging
import os
import uuid
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vidvault.api import admin, download, files, health, info
from vidvault.api.deps import get_extractor, get_file_store, get_janitor
from vidvault.config.settings import config, CONFIG_PATH
from vidvault.core.errors import VidVaultError
from vidvault.core.logging import log_error, log_warning, setup_logging
from vidvault.core.state import state
from vidvault.i18n import i18n
from vidvault.infra.redis import init_redis, close_redis
from vidvault.services.janitor import Janitor
from vidvault.utils.locale import get_locale

setup_logging(config.logging)

app = FastAPI(
    title=config.api.title,
    description=config.api.description,
    version=config.api.version,
    docs_url="/docs" if config.api.debug else None,
    redoc_url=None
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(health.router, tags=["Health"])
app.include_router(info.router, tags=["Info"])
app.include_router(download.router, tags=["Download"])
app.include_router(files.router, tags=["Files"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])

janitor: Optional[Janitor] = None


@app.middleware("http")
async def assign_request_id(request: Request, call_next):
    request.state.request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


@app.exception_handler(VidVaultError)
async def vidvault_error_handler(request: Request, exc: VidVaultError):
    """Render pipeline errors with a localized, normalized message"""
    locale = get_locale(request.headers.get("accept-language"))
    log = log_error if exc.status_code >= 500 else log_warning
    log(request, f"{exc.code}: {exc.reason or exc.code}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.code,
            "detail": i18n.get(exc.message_key, locale=locale, **exc.params),
        },
    )


@app.on_event("startup")
async def startup_event():
    global janitor

    # Ensure config directory exists and file is created if missing
    config_dir = os.path.dirname(CONFIG_PATH)
    if config_dir and not os.path.exists(config_dir):
        os.makedirs(config_dir, exist_ok=True)
    if not os.path.exists(CONFIG_PATH):
        config.save_to_file(CONFIG_PATH)

    await init_redis(config.redis)

    version = await get_extractor().version()
    state.ytdlp_available = version is not None
    state.ytdlp_version = version or "unavailable"
    if not state.ytdlp_available:
        logging.getLogger("vidvault").warning("yt-dlp not found; downloads will fail")

    if config.storage.cleanup_enabled:
        janitor = get_janitor(get_file_store())
        janitor.start()


@app.on_event("shutdown")
async def shutdown_event():
    global janitor
    if janitor is not None:
        await janitor.stop()
        janitor = None
    await close_redis()


def run() -> None:
    uvicorn.run(app, host=config.api.host, port=config.api.port, log_level=config.logging.level.lower())
