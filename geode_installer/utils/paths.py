"""Location of the packaged resources (message catalogs)."""

from __future__ import annotations

from pathlib import Path

__all__ = ["get_resources_dir"]

# geode_installer/utils/paths.py -> geode_installer/resources
_RESOURCES_DIR = Path(__file__).resolve().parent.parent / "resources"


def get_resources_dir() -> Path:
    """
    Returns the ``resources`` directory shipped inside the package.

    Raises:
        FileNotFoundError: The package was installed without its data files.
    """
    if not _RESOURCES_DIR.is_dir():
        raise FileNotFoundError(f"Resources directory missing: {_RESOURCES_DIR}")
    return _RESOURCES_DIR
