"""Geode mod loader installer for Geometry Dash on Linux (Steam/Proton and Wine)."""

from __future__ import annotations

from geode_installer.version import __app_name__, __version__

__all__ = ["__app_name__", "__version__"]
