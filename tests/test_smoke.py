"""Smoke tests – verify all modules are importable and free of syntax errors.

This is an infrastructure test (not a unit test), so it lives in the tests
root rather than under ``tests/unit/``.
"""

from __future__ import annotations

import importlib
import sys

import pytest

# ---------------------------------------------------------------------------
# Module lists
# ---------------------------------------------------------------------------

CORE_MODULES: list[str] = [
    "geode_installer.core.backup_manager",
    "geode_installer.core.errors",
    "geode_installer.core.logging",
    "geode_installer.core.steam_game_finder",
    "geode_installer.core.vdf_parser",
]

SERVICE_MODULES: list[str] = [
    "geode_installer.services.archive_installer",
    "geode_installer.services.geode_installer_service",
    "geode_installer.services.prefix_patcher",
]

UTILS_MODULES: list[str] = [
    "geode_installer.utils.i18n",
    "geode_installer.utils.paths",
]

INTEGRATION_MODULES: list[str] = [
    "geode_installer.integrations.geode_api",
]

TOP_LEVEL_MODULES: list[str] = [
    "geode_installer.config",
    "geode_installer.main",
    "geode_installer.version",
]


# ---------------------------------------------------------------------------
# Parametrized import tests
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("module_path", CORE_MODULES)
def test_import_core_modules(module_path: str) -> None:
    """Core module must be importable without errors."""
    importlib.import_module(module_path)


@pytest.mark.parametrize("module_path", SERVICE_MODULES)
def test_import_service_modules(module_path: str) -> None:
    """Service module must be importable without errors."""
    importlib.import_module(module_path)


@pytest.mark.parametrize("module_path", UTILS_MODULES)
def test_import_utils_modules(module_path: str) -> None:
    """Utils module must be importable without errors."""
    importlib.import_module(module_path)


@pytest.mark.parametrize("module_path", INTEGRATION_MODULES)
def test_import_integration_modules(module_path: str) -> None:
    """Integration module must be importable without errors."""
    importlib.import_module(module_path)


@pytest.mark.parametrize("module_path", TOP_LEVEL_MODULES)
def test_import_top_level_modules(module_path: str) -> None:
    """Top-level module must be importable without errors."""
    importlib.import_module(module_path)


# ---------------------------------------------------------------------------
# Circular import check
# ---------------------------------------------------------------------------


def test_no_circular_imports() -> None:
    """All modules can be imported in a fresh subprocess without cycles.

    Uses subprocess isolation to avoid corrupting module references for
    other tests in the same session.
    """
    import subprocess

    all_modules = CORE_MODULES + SERVICE_MODULES + UTILS_MODULES + INTEGRATION_MODULES + TOP_LEVEL_MODULES
    import_lines = "; ".join(f"import {m}" for m in all_modules)
    result = subprocess.run(
        [sys.executable, "-c", import_lines],
        capture_output=True,
        text=True,
        timeout=30,
    )
    assert result.returncode == 0, f"Circular import detected:\nstderr: {result.stderr}"


# ---------------------------------------------------------------------------
# i18n smoke tests
# ---------------------------------------------------------------------------


def test_i18n_loads() -> None:
    """The t() function returns a real translation for a known key."""
    from geode_installer.utils.i18n import init_i18n, t

    init_i18n("en")
    result = t("cli.success")
    assert isinstance(result, str)
    assert result != ""
    assert result != "[cli.success]"


def test_i18n_fallback() -> None:
    """Unknown keys return the bracket-wrapped key as fallback."""
    from geode_installer.utils.i18n import init_i18n, t

    init_i18n("en")
    result = t("this.key.does.not.exist")
    assert result == "[this.key.does.not.exist]"
