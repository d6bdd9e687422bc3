"""
Configuration - defaults, settings file and environment overrides.

Values are resolved in this order (later wins):
1. Dataclass defaults
2. ~/.config/geode-installer/settings.json
3. Environment variables (a local .env file is loaded first)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger("geode_installer.config")


__all__ = ["Config", "config", "default_config_dir"]


def default_config_dir() -> Path | None:
    """Return the XDG config directory for the installer, or None without a home directory."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "geode-installer"

    try:
        home = Path.home()
    except RuntimeError:
        return None
    return home / ".config" / "geode-installer"


@dataclass
class Config:
    """
    Central configuration handling for the installer.
    Holds the target app id, remote endpoints, Steam path override and
    download/patching behaviour.
    """

    CONFIG_DIR: Path | None = None
    SETTINGS_FILE: Path | None = None

    # Geometry Dash
    APP_ID: str = "322170"

    # Remote endpoints
    GEODE_API_URL: str = "https://api.geode-sdk.org/v1/loader/versions/latest"
    GEODE_DOWNLOAD_BASE_URL: str = "https://github.com/geode-sdk/geode/releases/download"

    UI_LANGUAGE: str = "en"

    # Checked before the conventional Steam locations
    STEAM_PATH: Path | None = None

    # Connect and per-read timeout in seconds
    HTTP_TIMEOUT: float = 30.0
    DOWNLOAD_CHUNK_SIZE: int = 8192

    BACKUP_REGISTRY: bool = True
    MAX_BACKUPS: int = 5

    def __post_init__(self):
        """Resolve paths and load settings after instantiation."""
        if self.CONFIG_DIR is None:
            self.CONFIG_DIR = default_config_dir()
        if self.SETTINGS_FILE is None and self.CONFIG_DIR is not None:
            self.SETTINGS_FILE = self.CONFIG_DIR / "settings.json"

        self._load_settings()
        self._load_environment()

    def _load_settings(self) -> None:
        """Load settings from JSON file."""
        # Local import to avoid circular dependency
        from geode_installer.utils.i18n import t

        if self.SETTINGS_FILE is None or not self.SETTINGS_FILE.exists():
            return

        try:
            with open(self.SETTINGS_FILE, "r", encoding="utf-8") as f:
                data = json.load(f)

            if not isinstance(data, dict):
                raise ValueError("settings root must be an object")

            self.UI_LANGUAGE = data.get("ui_language", self.UI_LANGUAGE)
            self.GEODE_API_URL = data.get("geode_api_url", self.GEODE_API_URL)
            self.GEODE_DOWNLOAD_BASE_URL = data.get("geode_download_base_url", self.GEODE_DOWNLOAD_BASE_URL)
            self.HTTP_TIMEOUT = float(data.get("http_timeout", self.HTTP_TIMEOUT))
            self.DOWNLOAD_CHUNK_SIZE = int(data.get("download_chunk_size", self.DOWNLOAD_CHUNK_SIZE))
            self.BACKUP_REGISTRY = bool(data.get("backup_registry", self.BACKUP_REGISTRY))
            self.MAX_BACKUPS = int(data.get("max_backups", self.MAX_BACKUPS))

            steam_path = data.get("steam_path")
            if steam_path:
                self.STEAM_PATH = Path(steam_path).expanduser()

        except (OSError, ValueError, TypeError) as e:
            logger.error(t("logs.config.load_error", path=self.SETTINGS_FILE, error=e))

    def _load_environment(self) -> None:
        """Apply GEODE_* environment variables (and a local .env file)."""
        load_dotenv()

        steam_path = os.getenv("GEODE_STEAM_PATH")
        if steam_path:
            self.STEAM_PATH = Path(steam_path).expanduser()

        self.GEODE_API_URL = os.getenv("GEODE_API_URL", self.GEODE_API_URL)
        self.GEODE_DOWNLOAD_BASE_URL = os.getenv("GEODE_DOWNLOAD_BASE_URL", self.GEODE_DOWNLOAD_BASE_URL)
        self.UI_LANGUAGE = os.getenv("GEODE_UI_LANGUAGE", self.UI_LANGUAGE)


# Global instance
config = Config()
