# geode_installer/core/backup_manager.py

"""
Manages file backups with automatic rotation.

Used to keep a copy of a prefix's user.reg before it is rewritten. Backups are
timestamped copies next to the original (or in a custom directory); the
oldest ones are deleted once more than ``MAX_BACKUPS`` exist.
"""
from __future__ import annotations

import logging
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Optional

from geode_installer.utils.i18n import t

logger = logging.getLogger("geode_installer.backup_manager")

__all__ = ["BackupManager"]


class BackupManager:
    """
    Manages creation and rotation of file backups.
    """

    def __init__(self, backup_dir: Optional[Path] = None, max_backups: Optional[int] = None):
        """
        Initializes the BackupManager.

        Args:
            backup_dir (Optional[Path]): Custom directory for storing backups.
                                         If None, backups are created in the same
                                         directory as the original file.
            max_backups (Optional[int]): How many backups to keep per file.
                                         Defaults to the configured MAX_BACKUPS.
        """
        self.backup_dir = backup_dir
        self.max_backups = max_backups

    def create_backup(self, file_path: Path) -> Optional[Path]:
        """
        Creates a timestamped backup of a file.

        The backup is saved as ``<stem>_<unix-time><suffix>`` (e.g. user_1760000000.reg).
        Old backups are rotated afterwards.

        Args:
            file_path (Path): Path to the file to back up.

        Returns:
            Optional[Path]: Path to the created backup file, or None if the operation failed
                           (e.g., source file doesn't exist).
        """
        if not file_path.exists():
            return None

        timestamp = str(int(datetime.now().timestamp()))
        backup_name = f"{file_path.stem}_{timestamp}{file_path.suffix}"

        target_dir = self.backup_dir if self.backup_dir else file_path.parent
        backup_path = target_dir / backup_name

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(file_path, backup_path)
            logger.info(t("logs.backup.created", name=backup_name))
        except OSError as backup_error:
            logger.error(t("logs.backup.failed", error=str(backup_error)))
            return None

        self._rotate_backups(file_path)
        return backup_path

    def list_backups(self, file_path: Path) -> list[Path]:
        """
        Lists existing backups of a file, newest first.

        Args:
            file_path (Path): The original file path.

        Returns:
            list[Path]: Backup files sorted by modification time, newest first.
        """
        target_dir = self.backup_dir if self.backup_dir else file_path.parent
        if not target_dir.is_dir():
            return []

        backups = [
            p
            for p in target_dir.glob(f"{file_path.stem}_*{file_path.suffix}")
            if p.is_file() and p.stem[len(file_path.stem) + 1 :].isdigit()
        ]
        return sorted(backups, key=os.path.getmtime, reverse=True)

    def _rotate_backups(self, file_path: Path) -> None:
        """
        Removes old backups exceeding the MAX_BACKUPS limit.

        Args:
            file_path (Path): The original file path (used to match backup files).
        """
        from geode_installer.config import config

        limit = self.max_backups if self.max_backups is not None else config.MAX_BACKUPS
        backups = self.list_backups(file_path)

        for old in backups[limit:]:
            try:
                old.unlink()
                logger.info(t("logs.backup.rotated", name=old.name))
            except OSError as delete_error:
                logger.error(t("logs.backup.delete_error", name=old.name, error=str(delete_error)))
