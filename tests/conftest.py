# tests/conftest.py
from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Callable, Iterable
from unittest.mock import MagicMock

import pytest
import vdf

from geode_installer.config import config
from geode_installer.utils.i18n import init_i18n

GD_APP_ID = "322170"


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Reset the global config so tests never see the developer's Steam or settings."""
    monkeypatch.setattr(config, "STEAM_PATH", None)
    monkeypatch.setattr(config, "APP_ID", GD_APP_ID)
    monkeypatch.setattr(config, "GEODE_API_URL", "https://api.geode-sdk.org/v1/loader/versions/latest")
    monkeypatch.setattr(config, "GEODE_DOWNLOAD_BASE_URL", "https://github.com/geode-sdk/geode/releases/download")
    monkeypatch.setattr(config, "HTTP_TIMEOUT", 30.0)
    monkeypatch.setattr(config, "DOWNLOAD_CHUNK_SIZE", 8192)
    monkeypatch.setattr(config, "BACKUP_REGISTRY", True)
    monkeypatch.setattr(config, "MAX_BACKUPS", 5)
    monkeypatch.setattr(config, "UI_LANGUAGE", "en")
    yield config


@pytest.fixture(autouse=True)
def english_messages():
    """Every test starts with the English catalog."""
    init_i18n("en")


@pytest.fixture
def steam_root(tmp_path) -> Path:
    """An empty Steam installation with its primary library."""
    root = tmp_path / "Steam"
    (root / "steamapps").mkdir(parents=True)
    return root


def write_library_folders(steam_root: Path, library_roots: Iterable[Path], location: str = "steamapps") -> Path:
    """Write a libraryfolders.vdf listing ``library_roots`` in the format Steam uses."""
    folders = {}
    for index, library_root in enumerate(library_roots):
        folders[str(index)] = {
            "path": str(library_root),
            "label": "",
            "contentid": str(1000 + index),
            "totalsize": "0",
            "apps": {"228980": "123456"},
        }

    target = steam_root / location / "libraryfolders.vdf"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(vdf.dumps({"libraryfolders": folders}, pretty=True), encoding="utf-8")
    return target


def write_manifest(library: Path, app_id: str, installdir: str, create_install_dir: bool = True) -> Path:
    """Write appmanifest_<app_id>.acf into a ``steamapps`` directory."""
    manifest = library / f"appmanifest_{app_id}.acf"
    library.mkdir(parents=True, exist_ok=True)
    manifest.write_text(
        vdf.dumps(
            {
                "AppState": {
                    "appid": app_id,
                    "Universe": "1",
                    "name": "Geometry Dash",
                    "StateFlags": "4",
                    "installdir": installdir,
                    "UserConfig": {"language": "english"},
                }
            },
            pretty=True,
        ),
        encoding="utf-8",
    )
    if create_install_dir:
        (library / "common" / installdir).mkdir(parents=True, exist_ok=True)
    return manifest


def make_prefix(library: Path, app_id: str, user_reg: str | None = "WINE REGISTRY Version 2\n") -> Path:
    """Create compatdata/<app_id>/pfx (with a user.reg unless ``user_reg`` is None)."""
    prefix = library / "compatdata" / app_id / "pfx"
    prefix.mkdir(parents=True, exist_ok=True)
    if user_reg is not None:
        (prefix / "user.reg").write_text(user_reg, encoding="utf-8")
    return prefix


def build_zip(entries: list[tuple[str, bytes, int | None]]) -> bytes:
    """Build a zip archive in memory.

    Each entry is (name, data, unix_mode). A mode of None stores no permission bits.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data, mode in entries:
            info = zipfile.ZipInfo(name)
            if mode is not None:
                info.create_system = 3
                info.external_attr = mode << 16
            zf.writestr(info, data)
    return buffer.getvalue()


def mock_response(
    status_code: int = 200,
    chunks: Iterable[bytes] | Callable[..., Iterable[bytes]] = (),
    content_length: int | None = None,
    json_data=None,
) -> MagicMock:
    """A requests.Response stand-in usable as a context manager."""
    response = MagicMock()
    response.status_code = status_code
    response.headers = {} if content_length is None else {"content-length": str(content_length)}
    if callable(chunks):
        response.iter_content.side_effect = chunks
    else:
        response.iter_content.return_value = list(chunks)
    if json_data is not None:
        response.json.return_value = json_data
    response.__enter__.return_value = response
    return response


@pytest.fixture
def user_reg_content() -> str:
    """A trimmed but realistic user.reg with a DllOverrides section in the middle."""
    return (
        "WINE REGISTRY Version 2\n"
        ";; All keys relative to \\\\User\\\\S-1-5-21-0-0-0-1000\n"
        "\n"
        "#arch=win64\n"
        "\n"
        "[Software\\\\Wine\\\\DllOverrides] 1700000000\n"
        "#time=1da1a2b3c4d5e6f\n"
        '"d3dcompiler_47"="native"\n'
        "\n"
        "[Software\\\\Wine\\\\Fonts] 1700000000\n"
        "#time=1da1a2b3c4d5e6f\n"
        '"Codepages"="1252,437"\n'
    )


# Helper factories exposed as fixtures so test modules need no conftest imports


@pytest.fixture
def library_folders_writer():
    return write_library_folders


@pytest.fixture
def manifest_writer():
    return write_manifest


@pytest.fixture
def prefix_maker():
    return make_prefix


@pytest.fixture
def zip_builder():
    return build_zip


@pytest.fixture
def response_factory():
    return mock_response
