# geode_installer/core/steam_game_finder.py

"""
Locates Steam, its library folders, installed games and their Proton prefixes.

Every lookup in this module answers "not found" with ``None``. Whether a
missing game or prefix is an error is decided by the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from geode_installer.core.vdf_parser import parse_file
from geode_installer.utils.i18n import t

logger = logging.getLogger("geode_installer.finder")

__all__ = [
    "GameInfo",
    "InstallationPaths",
    "SteamGameFinder",
    "discover_library_folders",
    "find_steam_root",
    "steam_root_candidates",
]

STEAMAPPS_DIR = "steamapps"
LIBRARY_FOLDERS_FILE = "libraryfolders.vdf"
LIBRARY_PATH_SUFFIX = ".path"
INSTALLDIR_KEY = "AppState.installdir"
COMMON_DIR = "common"
COMPATDATA_DIR = "compatdata"
PREFIX_DIR = "pfx"


@dataclass(frozen=True)
class GameInfo:
    """Where a Steam game lives on disk.

    Attributes:
        app_id: Steam application id.
        game_path: The game's install directory (``<library>/common/<installdir>``).
        proton_prefix: ``<library>/compatdata/<app_id>/pfx``, or None for games
            that never ran through Proton.
        library_path: The ``steamapps`` directory that owns the installation.
    """

    app_id: str
    game_path: Path
    proton_prefix: Path | None
    library_path: Path


@dataclass(frozen=True)
class InstallationPaths:
    """Install directory and Proton prefix of a game that has both."""

    game_path: Path
    proton_prefix: Path


def steam_root_candidates(home: Path | None = None) -> list[Path]:
    """
    Lists the conventional Steam root directories in order of precedence.

    A configured ``STEAM_PATH`` comes first, followed by the native, legacy and
    Flatpak locations below the home directory and the system-wide path.

    Args:
        home (Path | None): Home directory to use. Defaults to the current user's.

    Returns:
        list[Path]: Candidate directories, not yet checked for existence.
    """
    from geode_installer.config import config

    candidates: list[Path] = []
    if config.STEAM_PATH:
        candidates.append(Path(config.STEAM_PATH))

    if home is None:
        try:
            home = Path.home()
        except RuntimeError:
            logger.debug(t("logs.finder.no_home"))

    if home is not None:
        candidates.extend(
            [
                home / ".steam" / "steam",
                home / ".steam" / "root",
                home / ".local" / "share" / "Steam",
                home / ".var" / "app" / "com.valvesoftware.Steam",
                home / ".var" / "app" / "com.valvesoftware.Steam" / "data" / "Steam",
            ]
        )

    candidates.append(Path("/usr/share/steam"))
    return candidates


def find_steam_root(candidates: list[Path] | None = None) -> Path | None:
    """
    Returns the first candidate that exists and contains a ``steamapps`` directory.

    Args:
        candidates (list[Path] | None): Directories to check. Defaults to
            :func:`steam_root_candidates`.

    Returns:
        Path | None: The Steam root, or None if no candidate qualifies.
    """
    if candidates is None:
        candidates = steam_root_candidates()

    for candidate in candidates:
        if candidate.exists() and (candidate / STEAMAPPS_DIR).exists():
            logger.debug(t("logs.finder.root_found", path=candidate))
            return candidate

    logger.debug(t("logs.finder.root_not_found", count=len(candidates)))
    return None


def discover_library_folders(steam_root: Path) -> list[Path]:
    """
    Finds all ``steamapps`` directories of a Steam installation.

    The root's own ``steamapps`` is always first. Additional libraries come
    from every ``*.path`` entry of libraryfolders.vdf, in file order, and are
    kept only if their ``steamapps`` directory exists.

    Args:
        steam_root (Path): The Steam root directory.

    Returns:
        list[Path]: Library ``steamapps`` directories without duplicates.
    """
    folders = [steam_root / STEAMAPPS_DIR]

    possible_vdfs = [
        steam_root / STEAMAPPS_DIR / LIBRARY_FOLDERS_FILE,
        steam_root / "config" / LIBRARY_FOLDERS_FILE,
    ]
    libraryfolders_vdf = next((p for p in possible_vdfs if p.exists()), None)

    if libraryfolders_vdf is None:
        logger.debug(t("logs.finder.no_library_file"))
    else:
        for value in parse_file(libraryfolders_vdf).values_with_suffix(LIBRARY_PATH_SUFFIX):
            library = Path(value) / STEAMAPPS_DIR
            if library.exists():
                folders.append(library)
            else:
                logger.debug(t("logs.finder.library_missing", path=library))

    return _deduplicate(folders)


def _is_plain_name(name: str) -> bool:
    """True for a single relative path component other than "." and ".."."""
    path = PurePosixPath(name)
    return not path.is_absolute() and len(path.parts) == 1 and path.parts[0] not in (".", "..")


def _deduplicate(paths: list[Path]) -> list[Path]:
    """Drops later duplicates, comparing resolved path strings."""
    seen: set[str] = set()
    unique: list[Path] = []
    for path in paths:
        key = str(path.resolve())
        if key not in seen:
            seen.add(key)
            unique.append(path)
    return unique


class SteamGameFinder:
    """
    Looks up installed Steam games and their Proton prefixes.

    The Steam root and the library folders are discovered once, when the
    finder is created.
    """

    def __init__(self, steam_root: Path | None = None):
        """
        Initializes the SteamGameFinder.

        Args:
            steam_root (Path | None): Steam root to use. If None, the
                conventional locations are searched.
        """
        self._steam_root = steam_root if steam_root is not None else find_steam_root()
        self._library_folders = discover_library_folders(self._steam_root) if self._steam_root else []

        if self._steam_root:
            logger.info(t("logs.finder.libraries", count=len(self._library_folders)))

    @property
    def steam_root(self) -> Path | None:
        """The Steam root directory, or None if Steam was not found."""
        return self._steam_root

    @property
    def library_folders(self) -> list[Path]:
        """Library ``steamapps`` directories, primary library first."""
        return list(self._library_folders)

    def get_game_info(self, app_id: str) -> GameInfo | None:
        """
        Collects install directory, owning library and Proton prefix of a game.

        Args:
            app_id (str): Steam application id.

        Returns:
            GameInfo | None: The game's paths, or None if it is not installed.
        """
        found = self.find_game(app_id)
        if found is None:
            return None

        game_path, library_path = found
        return GameInfo(
            app_id=app_id,
            game_path=game_path,
            proton_prefix=self.find_compat_prefix(app_id, library_path),
            library_path=library_path,
        )

    def find_game(self, app_id: str) -> tuple[Path, Path] | None:
        """
        Finds the install directory of a game.

        Libraries are scanned in discovery order; the first one with a
        manifest whose install directory exists wins.

        Args:
            app_id (str): Steam application id.

        Returns:
            tuple[Path, Path] | None: (install directory, owning library), or None.
        """
        for library_path in self._library_folders:
            game_path = self._check_library_for_game(library_path, app_id)
            if game_path is not None:
                logger.debug(t("logs.finder.game_found", app_id=app_id, path=game_path))
                return game_path, library_path

        logger.debug(t("logs.finder.game_not_found", app_id=app_id))
        return None

    def find_compat_prefix(self, app_id: str, preferred_library: Path | None = None) -> Path | None:
        """
        Finds the Proton prefix (``compatdata/<app_id>/pfx``) of a game.

        Args:
            app_id (str): Steam application id.
            preferred_library (Path | None): Library checked first, normally
                the one the game is installed in.

        Returns:
            Path | None: The prefix directory, or None if no library has one.
        """
        if preferred_library is not None:
            prefix = self._check_compatdata(preferred_library, app_id)
            if prefix is not None:
                return prefix

        for library_path in self._library_folders:
            prefix = self._check_compatdata(library_path, app_id)
            if prefix is not None:
                return prefix

        return None

    @staticmethod
    def _check_library_for_game(library_path: Path, app_id: str) -> Path | None:
        manifest = library_path / f"appmanifest_{app_id}.acf"
        if not manifest.exists():
            return None

        install_dir = parse_file(manifest).get(INSTALLDIR_KEY)
        if not install_dir:
            logger.debug(t("logs.finder.no_installdir", path=manifest))
            return None

        if not _is_plain_name(install_dir):
            logger.warning(t("logs.finder.unsafe_installdir", path=manifest, name=install_dir))
            return None

        game_path = library_path / COMMON_DIR / install_dir
        return game_path if game_path.exists() else None

    @staticmethod
    def _check_compatdata(library_path: Path, app_id: str) -> Path | None:
        prefix = library_path / COMPATDATA_DIR / app_id / PREFIX_DIR
        return prefix if prefix.exists() else None
