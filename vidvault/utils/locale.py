from typing import Optional
from urllib.parse import urlparse
from vidvault.config.settings import config


def get_locale(accept_language: Optional[str] = None) -> str:
    """Pick the first supported language from an Accept-Language header"""
    for item in (accept_language or "").split(","):
        tag = item.split(";")[0].strip()
        primary = tag.split("-")[0].lower()
        if primary in config.i18n.supported_locales:
            return primary
    return config.i18n.default_locale


def safe_url_for_log(url: str) -> str:
    """URL without credentials or query string, for log lines"""
    try:
        parsed = urlparse(url)
        host = parsed.hostname or ""
        if parsed.port:
            host = f"{host}:{parsed.port}"
    except ValueError:
        return "invalid_url"

    base_url = f"{parsed.scheme}://{host}{parsed.path}"
    if parsed.query and config.logging.level == "DEBUG":
        return f"{base_url}?..."
    return base_url
