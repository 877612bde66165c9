import json
import logging
import os
from typing import Any, Dict, List, Optional
from vidvault.config.settings import config

logger = logging.getLogger(__name__)

LOCALES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "locales")


class I18n:
    """Message catalog keyed by dotted paths (e.g. "error.server_busy")"""

    def __init__(self, default_locale: str = "en", locales_dir: str = LOCALES_DIR):
        self.default_locale = default_locale
        self.locales: Dict[str, Dict[str, Any]] = {}
        self.load_locales(locales_dir)

    def load_locales(self, locales_dir: str) -> None:
        if not os.path.isdir(locales_dir):
            logger.warning(f"Locales directory not found at {locales_dir}")
            return

        for filename in sorted(os.listdir(locales_dir)):
            code, ext = os.path.splitext(filename)
            if ext != ".json":
                continue
            try:
                with open(os.path.join(locales_dir, filename), "r", encoding="utf-8") as f:
                    self.locales[code] = json.load(f)
            except (OSError, ValueError) as e:
                logger.error(f"Error loading locale {code}: {e}")

    def _chain(self, locale: Optional[str]) -> List[str]:
        chain = []
        for code in (locale, self.default_locale, "en"):
            if code and code in self.locales and code not in chain:
                chain.append(code)
        return chain

    def _lookup(self, catalog: Dict[str, Any], key: str) -> Optional[str]:
        value: Any = catalog
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return None
            value = value[part]
        return value if isinstance(value, str) else None

    def get(self, key: str, locale: Optional[str] = None, **kwargs) -> str:
        """Translated message; falls back to the default locale, then to the key itself"""
        for code in self._chain(locale):
            message = self._lookup(self.locales[code], key)
            if message is None:
                continue
            try:
                return message.format(**kwargs)
            except (KeyError, IndexError):
                return message
        return key


i18n = I18n(default_locale=config.i18n.default_locale)
