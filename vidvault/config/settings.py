import json
import logging
import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class StorageConfig(BaseModel):
    root: str = Field(default="downloads", description="Directory holding downloaded files")
    max_age_hours: float = Field(default=24, gt=0, description="Files older than this are swept")
    cleanup_enabled: bool = Field(default=True, description="Run the periodic janitor")
    cleanup_interval_minutes: float = Field(default=60, gt=0, description="Janitor interval in minutes")


class DownloadConfig(BaseModel):
    max_concurrent: int = Field(default=3, ge=1, le=100, description="Max concurrent downloads")
    max_concurrent_info: int = Field(default=10, ge=1, le=100, description="Max concurrent metadata lookups")
    queue_timeout_seconds: float = Field(default=30, ge=0, description="Max wait for a free slot; 0 refuses at once when all slots are busy")
    timeout_seconds: int = Field(default=3600, ge=1, description="Download timeout in seconds")
    info_timeout_seconds: int = Field(default=30, ge=1, description="Metadata timeout in seconds")


class YtDlpConfig(BaseModel):
    binary: str = Field(default="yt-dlp", description="yt-dlp executable")
    socket_timeout: int = Field(default=10, ge=1, description="Socket timeout for yt-dlp")
    retries: int = Field(default=3, ge=0, description="Number of retries for failed downloads")
    default_format: str = Field(default="bestvideo+bestaudio/best", description="Default format selector")
    enable_live_streams: bool = Field(default=False, description="Allow live stream downloads")
    js_runtime: Optional[str] = Field(default=None, description="JS runtime path (e.g., deno:/usr/local/bin/deno)")


class RedisConfig(BaseModel):
    enabled: bool = Field(default=False, description="Use Redis for the metadata cache")
    url: str = Field(default="redis://redis:6379", description="Redis connection URL")
    socket_timeout: int = Field(default=5, description="Redis socket timeout in seconds")
    info_cache_ttl: int = Field(default=300, ge=0, description="Metadata cache TTL in seconds")


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="%(message)s", description="Log format")
    enable_rich: bool = Field(default=True, description="Enable rich console logging")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class I18nConfig(BaseModel):
    default_locale: str = Field(default="en", description="Default locale")
    supported_locales: list = Field(default=["en", "ja"], description="Supported locales")


class ApiConfig(BaseModel):
    title: str = Field(default="vidvault", description="API title")
    description: str = Field(default="Media metadata and download service", description="API description")
    version: str = Field(default="1.0.0", description="API version")
    cors_origins: list = Field(default=["*"], description="CORS allowed origins")
    debug: bool = Field(default=False, description="Enable debug mode")
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, description="Bind port")


class Config(BaseModel):
    """Main configuration model"""
    storage: StorageConfig = Field(default_factory=StorageConfig)
    download: DownloadConfig = Field(default_factory=DownloadConfig)
    ytdlp: YtDlpConfig = Field(default_factory=YtDlpConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    i18n: I18nConfig = Field(default_factory=I18nConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    @classmethod
    def load_from_file(cls, config_path: str = "config.json") -> "Config":
        """Load configuration from JSON file"""
        if os.path.exists(config_path):
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    config_data = json.load(f)
                logger.info(f"Configuration loaded from {config_path}")
                return cls(**config_data)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load config from {config_path}: {str(e)}")
                logger.info("Using default configuration")
        else:
            logger.warning(f"Config file {config_path} not found, using defaults")

        return cls()

    @classmethod
    def load_from_env(cls) -> "Config":
        """Load configuration from environment variables (fallback)"""
        config_data: Dict[str, Any] = {}

        storage = {}
        if os.getenv("STORAGE_DIR"):
            storage["root"] = os.getenv("STORAGE_DIR")
        if os.getenv("FILE_MAX_AGE_HOURS"):
            storage["max_age_hours"] = float(os.getenv("FILE_MAX_AGE_HOURS"))
        if os.getenv("CLEANUP_INTERVAL_MINUTES"):
            storage["cleanup_interval_minutes"] = float(os.getenv("CLEANUP_INTERVAL_MINUTES"))
        if os.getenv("CLEANUP_ENABLED"):
            storage["cleanup_enabled"] = os.getenv("CLEANUP_ENABLED").lower() == "true"
        if storage:
            config_data["storage"] = storage

        download = {}
        if os.getenv("MAX_CONCURRENT_DOWNLOADS"):
            download["max_concurrent"] = int(os.getenv("MAX_CONCURRENT_DOWNLOADS"))
        if os.getenv("DOWNLOAD_TIMEOUT"):
            download["timeout_seconds"] = int(os.getenv("DOWNLOAD_TIMEOUT"))
        if download:
            config_data["download"] = download

        ytdlp = {}
        if os.getenv("YT_DLP_BINARY"):
            ytdlp["binary"] = os.getenv("YT_DLP_BINARY")
        if os.getenv("YT_DLP_JS_RUNTIME"):
            ytdlp["js_runtime"] = os.getenv("YT_DLP_JS_RUNTIME")
        if ytdlp:
            config_data["ytdlp"] = ytdlp

        if os.getenv("REDIS_URL"):
            config_data["redis"] = {"enabled": True, "url": os.getenv("REDIS_URL")}

        if os.getenv("LOG_LEVEL"):
            config_data["logging"] = {"level": os.getenv("LOG_LEVEL")}

        if os.getenv("DEFAULT_LOCALE"):
            config_data["i18n"] = {"default_locale": os.getenv("DEFAULT_LOCALE")}

        return cls(**config_data) if config_data else cls()

    def save_to_file(self, config_path: str = "config.json"):
        """Save configuration to JSON file"""
        try:
            with open(config_path, "w", encoding="utf-8") as f:
                json.dump(self.model_dump(exclude_none=True), f, indent=2, ensure_ascii=False)
            logger.info(f"Configuration saved to {config_path}")
        except OSError as e:
            logger.error(f"Failed to save config to {config_path}: {str(e)}")


CONFIG_PATH = os.getenv("CONFIG_PATH", "config.json")


def load_config() -> Config:
    """Load configuration with priority: config.json > env vars > defaults"""
    if os.path.exists(CONFIG_PATH):
        return Config.load_from_file(CONFIG_PATH)
    logger.info(f"Config file not found at {CONFIG_PATH}, checking environment variables")
    return Config.load_from_env()


# Global config instance
config = load_config()
