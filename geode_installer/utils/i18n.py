"""
Message catalogs for console output, errors and log lines.

``resources/i18n/*.json`` holds the log messages, which are not translated.
Each ``resources/i18n/<locale>/`` directory holds the user-facing messages
for that locale. English is always loaded underneath the selected locale, so
a key missing from a translation still resolves.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from geode_installer.utils.paths import get_resources_dir

__all__ = ["DEFAULT_LOCALE", "I18n", "available_locales", "init_i18n", "t"]

logger = logging.getLogger("geode_installer.i18n")

DEFAULT_LOCALE = "en"


def _catalog_root() -> Path:
    return get_resources_dir() / "i18n"


def available_locales() -> list[str]:
    """Returns the locale codes that ship a catalog directory, sorted."""
    return sorted(entry.name for entry in _catalog_root().iterdir() if entry.is_dir())


def _merge(base: dict[str, Any], update: dict[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in update.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_catalog(directory: Path) -> dict[str, Any]:
    """Merges every ``*.json`` file directly inside ``directory``, in name order."""
    catalog: dict[str, Any] = {}
    for file_path in sorted(directory.glob("*.json")):
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Cannot load message catalog %s: %s", file_path, e)
            continue
        if isinstance(data, dict):
            catalog = _merge(catalog, data)
    return catalog


class I18n:
    """Messages for one locale, looked up by dotted key."""

    def __init__(self, locale: str = DEFAULT_LOCALE) -> None:
        root = _catalog_root()
        self.locale = locale

        messages = _merge(_load_catalog(root), _load_catalog(root / DEFAULT_LOCALE))
        if locale != DEFAULT_LOCALE:
            if (root / locale).is_dir():
                messages = _merge(messages, _load_catalog(root / locale))
            else:
                logger.warning("No messages for locale %r, using %r", locale, DEFAULT_LOCALE)
        self.messages = messages

    def t(self, key: str, **kwargs: Any) -> str:
        """
        Looks up ``key`` (e.g. ``"cli.menu.title"``) and formats it with ``kwargs``.

        Returns ``[key]`` when the key is missing or names a group rather than
        a message. A template whose placeholders do not match ``kwargs`` is
        returned unformatted.
        """
        value: Any = self.messages
        for part in key.split("."):
            value = value.get(part) if isinstance(value, dict) else None

        if not isinstance(value, str):
            return f"[{key}]"
        if not kwargs:
            return value
        try:
            return value.format(**kwargs)
        except (ValueError, KeyError, IndexError):
            return value


_i18n_instance: I18n | None = None


def init_i18n(locale: str = DEFAULT_LOCALE) -> I18n:
    """Selects the locale used by :func:`t` and returns its catalog."""
    global _i18n_instance
    _i18n_instance = I18n(locale)
    return _i18n_instance


def t(key: str, **kwargs: Any) -> str:
    """Looks up a message in the current locale, loading English on first use."""
    if _i18n_instance is None:
        init_i18n()
    return _i18n_instance.t(key, **kwargs)
