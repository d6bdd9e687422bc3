# geode_installer/services/prefix_patcher.py

"""
Adds the ``xinput1_4`` DLL override to a Wine prefix's user.reg.

Geode is loaded through a proxy ``xinput1_4.dll`` in the game directory, and
Wine only picks that up over its builtin copy if the override says
``native,builtin``. The edit is textual and leaves every other line of the
registry file untouched.
"""

from __future__ import annotations

import logging
import os
import tempfile
import time
from pathlib import Path

from geode_installer.core.backup_manager import BackupManager
from geode_installer.core.errors import FilesystemError, RegistryFileNotFoundError
from geode_installer.utils.i18n import t

logger = logging.getLogger("geode_installer.prefix_patcher")

__all__ = [
    "DLL_OVERRIDES_SECTION",
    "OVERRIDE_ENTRY",
    "OVERRIDE_MARKER",
    "PrefixPatcher",
    "REGISTRY_FILE",
    "ensure_dll_override",
]

REGISTRY_FILE = "user.reg"
DLL_OVERRIDES_SECTION = r"[Software\\Wine\\DllOverrides]"
OVERRIDE_MARKER = '"xinput1_4"='
OVERRIDE_ENTRY = '"xinput1_4"="native,builtin"'

# Seconds between 1601-01-01 (FILETIME epoch) and 1970-01-01
_FILETIME_EPOCH_OFFSET = 11644473600


def ensure_dll_override(content: str, now: float | None = None) -> str:
    """
    Returns ``content`` with the xinput1_4 override present.

    Already configured content (any ``"xinput1_4"=`` line, whatever its value)
    is returned unchanged. Without a DllOverrides section a new one is
    appended; otherwise the entry goes at the end of the existing section.
    New lines use the file's own line terminator (CRLF if it has any).

    Args:
        content (str): The registry file text.
        now (float | None): Unix time for the new section's timestamps.

    Returns:
        str: The patched text.
    """
    if OVERRIDE_MARKER in content:
        return content

    eol = "\r\n" if "\r\n" in content else "\n"

    section_pos = content.find(DLL_OVERRIDES_SECTION)
    if section_pos == -1:
        return content + _new_section(time.time() if now is None else now, eol)

    search_start = section_pos + len(DLL_OVERRIDES_SECTION)
    next_section = content.find("\n[", search_start)
    entry = OVERRIDE_ENTRY + eol

    if next_section == -1:
        if not content.endswith("\n"):
            entry = eol + entry
        return content + entry

    # Keep the blank separator line (if any) between the entry and the next header
    header_start = next_section + 1
    if content[:header_start].endswith(eol + eol):
        insert_pos = header_start - len(eol)
    else:
        insert_pos = header_start

    return content[:insert_pos] + entry + content[insert_pos:]


def _new_section(now: float, eol: str = "\n") -> str:
    seconds = int(now)
    filetime = (seconds + _FILETIME_EPOCH_OFFSET) * 10_000_000
    return f"{eol}{eol}{DLL_OVERRIDES_SECTION} {seconds}{eol}#time={filetime:x}{eol}{OVERRIDE_ENTRY}{eol}"


class PrefixPatcher:
    """
    Applies :func:`ensure_dll_override` to the user.reg of a Wine prefix.
    """

    def __init__(self, backup_manager: BackupManager | None = None, create_backup: bool | None = None):
        """
        Initializes the PrefixPatcher.

        Args:
            backup_manager (BackupManager | None): Backup handler for the original file.
            create_backup (bool | None): Whether to back up user.reg before writing.
                Defaults to the configured BACKUP_REGISTRY.
        """
        from geode_installer.config import config

        self.backup_manager = backup_manager or BackupManager()
        self.create_backup = config.BACKUP_REGISTRY if create_backup is None else create_backup

    def ensure_override(self, prefix_dir: Path) -> bool:
        """
        Makes sure the prefix's user.reg contains the xinput1_4 override.

        Args:
            prefix_dir (Path): The Wine prefix (the directory holding user.reg).

        Returns:
            bool: True if the file was changed, False if it was already configured.

        Raises:
            RegistryFileNotFoundError: The prefix has no user.reg.
            FilesystemError: Reading or writing user.reg failed.
        """
        user_reg = prefix_dir / REGISTRY_FILE
        if not user_reg.is_file():
            raise RegistryFileNotFoundError(t("errors.registry_missing", path=user_reg))

        try:
            # newline="" keeps CRLF files byte-identical outside the insertion
            with open(user_reg, "r", encoding="utf-8", errors="surrogateescape", newline="") as f:
                content = f.read()
        except OSError as e:
            raise FilesystemError(t("errors.read_file", path=user_reg, error=e)) from e

        patched = ensure_dll_override(content)
        if patched == content:
            logger.info(t("logs.prefix.already_configured", path=user_reg))
            return False

        if self.create_backup:
            self.backup_manager.create_backup(user_reg)

        self._write_atomic(user_reg, patched)
        logger.info(t("logs.prefix.patched", path=user_reg))
        return True

    @staticmethod
    def _write_atomic(path: Path, content: str) -> None:
        """Writes via a temp file in the same directory and renames it over ``path``."""
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape", newline="") as f:
                f.write(content)
            try:
                os.chmod(tmp_path, path.stat().st_mode & 0o7777)
            except OSError as e:
                logger.debug(t("logs.prefix.chmod_failed", path=path, error=e))
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise FilesystemError(t("errors.write_file", path=path, error=e)) from e
