"""Tests for BackupManager."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

from geode_installer.core.backup_manager import BackupManager


def _make_backup(directory: Path, stamp: int, mtime: int) -> Path:
    path = directory / f"user_{stamp}.reg"
    path.write_text(f"backup {stamp}", encoding="utf-8")
    os.utime(path, (mtime, mtime))
    return path


class TestCreateBackup:
    """Tests for create_backup."""

    def test_copies_file_next_to_original(self, tmp_path: Path) -> None:
        source = tmp_path / "user.reg"
        source.write_text("WINE REGISTRY Version 2\n", encoding="utf-8")

        backup = BackupManager().create_backup(source)

        assert backup is not None
        assert backup.parent == tmp_path
        assert backup.name.startswith("user_")
        assert backup.suffix == ".reg"
        assert backup.read_text(encoding="utf-8") == "WINE REGISTRY Version 2\n"

    def test_custom_backup_directory_is_created(self, tmp_path: Path) -> None:
        source = tmp_path / "user.reg"
        source.write_text("data", encoding="utf-8")
        backup_dir = tmp_path / "backups" / "registry"

        backup = BackupManager(backup_dir=backup_dir).create_backup(source)

        assert backup is not None
        assert backup.parent == backup_dir

    def test_missing_source_returns_none(self, tmp_path: Path) -> None:
        assert BackupManager().create_backup(tmp_path / "user.reg") is None

    def test_copy_failure_returns_none(self, tmp_path: Path) -> None:
        source = tmp_path / "user.reg"
        source.write_text("data", encoding="utf-8")

        with patch("geode_installer.core.backup_manager.shutil.copy2", side_effect=OSError("disk full")):
            assert BackupManager().create_backup(source) is None


class TestRotation:
    """Tests for list_backups and rotation."""

    def test_list_backups_newest_first(self, tmp_path: Path) -> None:
        old = _make_backup(tmp_path, 1000, 1000)
        new = _make_backup(tmp_path, 3000, 3000)
        middle = _make_backup(tmp_path, 2000, 2000)

        assert BackupManager().list_backups(tmp_path / "user.reg") == [new, middle, old]

    def test_unrelated_files_are_ignored(self, tmp_path: Path) -> None:
        _make_backup(tmp_path, 1000, 1000)
        (tmp_path / "user_manual.reg").write_text("keep", encoding="utf-8")
        (tmp_path / "system_1000.reg").write_text("keep", encoding="utf-8")

        assert len(BackupManager().list_backups(tmp_path / "user.reg")) == 1

    def test_missing_backup_dir(self, tmp_path: Path) -> None:
        manager = BackupManager(backup_dir=tmp_path / "nope")
        assert manager.list_backups(tmp_path / "user.reg") == []

    def test_oldest_backups_are_removed(self, tmp_path: Path) -> None:
        source = tmp_path / "user.reg"
        source.write_text("current", encoding="utf-8")
        for stamp in range(1, 5):
            _make_backup(tmp_path, stamp, stamp * 100)

        BackupManager(max_backups=3).create_backup(source)

        remaining = BackupManager().list_backups(source)
        assert len(remaining) == 3
        assert not (tmp_path / "user_1.reg").exists()
        assert not (tmp_path / "user_2.reg").exists()
        assert (tmp_path / "user_4.reg").exists()
        assert source.exists()

    def test_limit_defaults_to_config(self, tmp_path: Path, isolated_config) -> None:
        isolated_config.MAX_BACKUPS = 1
        source = tmp_path / "user.reg"
        source.write_text("current", encoding="utf-8")
        _make_backup(tmp_path, 1, 100)

        backup = BackupManager().create_backup(source)

        assert BackupManager().list_backups(source) == [backup]
