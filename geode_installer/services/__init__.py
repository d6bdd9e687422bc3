from __future__ import annotations

from geode_installer.services.archive_installer import ArchiveInstaller
from geode_installer.services.geode_installer_service import GeodeInstallerService
from geode_installer.services.prefix_patcher import PrefixPatcher

__all__: list[str] = [
    "ArchiveInstaller",
    "GeodeInstallerService",
    "PrefixPatcher",
]
