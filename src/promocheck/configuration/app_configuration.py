from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from promocheck.configuration.review_settings import ReviewSettings
from promocheck.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml``, exposes
    dictionary-like access helpers, and wraps the ``review`` block in
    :class:`ReviewSettings`. Uses fcntl file locks so an operator editing
    the file does not hand us a half-written document.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = yaml.safe_load(f)
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping, ignoring it.", self.config_path)
            return {}
        return data

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        review = self.review
        logger.debug(
            "[APP CONFIGURATION] Loaded review settings: channel=%s guild=%s check_count=%d",
            review.target_channel_id,
            review.target_guild_id,
            review.check_count,
        )
        if review.experimental_features:
            logger.info("[APP CONFIGURATION] Experimental features are enabled.")
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping (do not mutate)."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def review(self) -> ReviewSettings:
        """Return the review settings wrapped in a ReviewSettings helper."""
        settings = self._data.get("review", {})
        if not isinstance(settings, dict):
            settings = {}
        return ReviewSettings(settings)


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
