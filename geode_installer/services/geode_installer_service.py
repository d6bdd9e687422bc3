# geode_installer/services/geode_installer_service.py

"""
Installs Geode into a Geometry Dash installation.

Two entry points:

* :meth:`GeodeInstallerService.install_to_steam` finds the game and its
  Proton prefix through Steam's own metadata.
* :meth:`GeodeInstallerService.install_to_wine` takes both directories from
  the caller (plain Wine, Lutris, Bottles...).

Both end in the same two steps: extract the latest Geode release into the
game directory, then add the xinput1_4 override to the prefix.
"""

from __future__ import annotations

import logging
from pathlib import Path

from geode_installer.core.errors import (
    GameNotFoundError,
    InvalidPathError,
    PrefixNotFoundError,
    SteamNotFoundError,
)
from geode_installer.core.steam_game_finder import InstallationPaths, SteamGameFinder
from geode_installer.integrations.geode_api import GeodeApiClient
from geode_installer.services.archive_installer import ArchiveInstaller, ProgressCallback
from geode_installer.services.prefix_patcher import PrefixPatcher
from geode_installer.utils.i18n import t

logger = logging.getLogger("geode_installer.service")

__all__ = ["GeodeInstallerService"]


class GeodeInstallerService:
    """Coordinates lookup, download, extraction and registry patching."""

    def __init__(
        self,
        finder: SteamGameFinder | None = None,
        api_client: GeodeApiClient | None = None,
        archive_installer: ArchiveInstaller | None = None,
        patcher: PrefixPatcher | None = None,
        app_id: str | None = None,
    ) -> None:
        """Initializes the service.

        Args:
            finder: Steam lookup. Created on first Steam install if None, so
                the Wine path never looks at Steam directories.
            api_client: Geode API client.
            archive_installer: Download and extraction handler.
            patcher: user.reg patcher.
            app_id: Steam app id of the game. Defaults to the configured APP_ID.
        """
        from geode_installer.config import config

        self._finder = finder
        self.api_client = api_client or GeodeApiClient()
        self.archive_installer = archive_installer or ArchiveInstaller()
        self.patcher = patcher or PrefixPatcher()
        self.app_id = app_id or config.APP_ID

    @property
    def finder(self) -> SteamGameFinder:
        """The Steam finder, created on first access."""
        if self._finder is None:
            self._finder = SteamGameFinder()
        return self._finder

    def install_to_steam(self, progress_callback: ProgressCallback | None = None) -> InstallationPaths:
        """Installs Geode into the Steam copy of Geometry Dash.

        Args:
            progress_callback: Download progress receiver.

        Returns:
            The game directory and Proton prefix that were used.

        Raises:
            LookupFailure: Steam, the game or its prefix was not found.
            InstallerError: Download, extraction or patching failed.
        """
        paths = self.locate_geometry_dash()
        self.install_to_wine(paths.proton_prefix, paths.game_path, progress_callback)
        return paths

    def install_to_wine(
        self,
        prefix: Path,
        game_dir: Path,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Installs Geode into ``game_dir`` and patches the registry of ``prefix``.

        Args:
            prefix: Wine prefix holding user.reg.
            game_dir: Geometry Dash installation directory.
            progress_callback: Download progress receiver.

        Raises:
            InvalidPathError: One of the directories does not exist.
            InstallerError: Download, extraction or patching failed.
        """
        prefix = Path(prefix).expanduser()
        game_dir = Path(game_dir).expanduser()
        self.validate_paths(prefix, game_dir)

        logger.info(t("logs.service.installing", path=game_dir))
        url = self.api_client.get_download_url()
        self.archive_installer.download_and_extract(url, game_dir, progress_callback)

        logger.info(t("logs.service.patching", path=prefix))
        self.patcher.ensure_override(prefix)

        logger.info(t("logs.service.completed"))

    def locate_geometry_dash(self) -> InstallationPaths:
        """Finds the game directory and Proton prefix through Steam.

        Raises:
            SteamNotFoundError: No Steam installation.
            GameNotFoundError: The game is in no library.
            PrefixNotFoundError: The game has no Proton prefix yet.
        """
        finder = self.finder
        if finder.steam_root is None:
            raise SteamNotFoundError(t("errors.steam_not_found"))
        logger.info(t("logs.service.steam_root", path=finder.steam_root))

        info = finder.get_game_info(self.app_id)
        if info is None:
            raise GameNotFoundError(t("errors.game_not_found", app_id=self.app_id))
        logger.info(t("logs.service.game_found", path=info.game_path))

        if info.proton_prefix is None:
            raise PrefixNotFoundError(t("errors.prefix_not_found", app_id=self.app_id))
        logger.info(t("logs.service.prefix_found", path=info.proton_prefix))

        return InstallationPaths(game_path=info.game_path, proton_prefix=info.proton_prefix)

    @staticmethod
    def validate_paths(prefix: Path, game_dir: Path) -> None:
        """Checks that both directories exist.

        Raises:
            InvalidPathError: A directory is missing.
        """
        if not prefix.is_dir():
            raise InvalidPathError(t("errors.prefix_missing", path=prefix))
        if not game_dir.is_dir():
            raise InvalidPathError(t("errors.game_dir_missing", path=game_dir))
