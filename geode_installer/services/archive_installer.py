# geode_installer/services/archive_installer.py

"""
Downloads a zip archive and extracts it into a directory.

The download is streamed to a temporary file next to the destination with
progress reporting after every chunk. Extraction refuses to write outside the
destination: entries with absolute paths or ``..`` segments that climb above
the root are skipped.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import zipfile
from pathlib import Path, PurePosixPath
from typing import Callable, Optional

import requests

from geode_installer.core.errors import (
    ArchiveError,
    CleanupError,
    EntryExtractionError,
    FilesystemError,
    HttpStatusError,
    NetworkError,
)
from geode_installer.utils.i18n import t
from geode_installer.version import __version__

logger = logging.getLogger("geode_installer.archive")

__all__ = ["ArchiveInstaller", "ProgressCallback", "TEMP_ARCHIVE_NAME", "enclosed_name"]

TEMP_ARCHIVE_NAME = "geode_temp.zip"

# (bytes downloaded so far, total bytes or None if unknown)
ProgressCallback = Callable[[int, Optional[int]], None]

# Zip "version made by" host system for Unix; only those entries carry mode bits
_ZIP_SYSTEM_UNIX = 3


def enclosed_name(name: str) -> PurePosixPath | None:
    """
    Turns an archive entry name into a path that stays inside the extraction root.

    Backslashes are treated as separators. ``.`` segments are dropped and
    ``..`` segments are resolved; an entry that would climb above the root,
    is absolute, names a drive or contains a NUL byte is rejected.

    Args:
        name (str): The entry name as stored in the archive.

    Returns:
        PurePosixPath | None: The normalized relative path, or None if the
        entry must not be extracted.
    """
    if "\0" in name:
        return None

    normalized = name.replace("\\", "/")
    if normalized.startswith("/"):
        return None

    parts: list[str] = []
    for part in normalized.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if not parts:
                return None
            parts.pop()
            continue
        if ":" in part and not parts:
            # C:, D:foo ...
            return None
        parts.append(part)

    return PurePosixPath(*parts)


class ArchiveInstaller:
    """
    Installs the contents of a remote zip archive into a directory.
    """

    def __init__(self, session: requests.Session | None = None):
        """
        Initializes the ArchiveInstaller.

        Args:
            session (requests.Session | None): HTTP session. A new one is created if None.
        """
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": f"GeodeInstaller/{__version__}"})

    def download_and_extract(
        self,
        url: str,
        destination: Path,
        progress_callback: ProgressCallback | None = None,
    ) -> int:
        """
        Downloads the archive at ``url`` and extracts it into ``destination``.

        Args:
            url (str): Archive URL.
            destination (Path): Target directory, created if missing.
            progress_callback (ProgressCallback | None): Download progress receiver.

        Returns:
            int: Number of extracted entries.

        Raises:
            InstallerError: Any download, filesystem or archive failure.
        """
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(t("errors.create_dir", path=destination, error=e)) from e

        zip_path = destination / TEMP_ARCHIVE_NAME

        self.download_file(url, zip_path, progress_callback)

        try:
            extracted = self.extract_zip(zip_path, destination)
        except Exception:
            self._discard(zip_path)
            raise

        try:
            zip_path.unlink()
        except OSError as e:
            raise CleanupError(t("errors.remove_temp", path=zip_path, error=e)) from e

        return extracted

    def download_file(
        self,
        url: str,
        output: Path,
        progress_callback: ProgressCallback | None = None,
    ) -> int:
        """
        Streams ``url`` into ``output``.

        The response status is checked before ``output`` is created, and a
        partially written file is removed if the transfer fails, so a failed
        download never leaves a truncated archive behind.

        Args:
            url (str): URL to download.
            output (Path): File to write.
            progress_callback (ProgressCallback | None): Called after every chunk
                with (downloaded, total); total is None if the size is unknown.

        Returns:
            int: Number of bytes written.
        """
        from geode_installer.config import config

        logger.info(t("logs.archive.downloading", url=url))

        try:
            response = self._session.get(url, stream=True, timeout=config.HTTP_TIMEOUT)
        except requests.RequestException as e:
            raise NetworkError(t("errors.network", url=url, error=e)) from e

        with response:
            if not 200 <= response.status_code < 300:
                raise HttpStatusError(t("errors.http_status", url=url, status=response.status_code), response.status_code)

            total = self._content_length(response)
            downloaded = 0

            try:
                with open(output, "wb") as f:
                    for chunk in response.iter_content(chunk_size=config.DOWNLOAD_CHUNK_SIZE):
                        if not chunk:
                            continue
                        f.write(chunk)
                        downloaded += len(chunk)
                        if progress_callback:
                            progress_callback(downloaded, total)
            except requests.RequestException as e:
                self._discard(output)
                raise NetworkError(t("errors.download_interrupted", url=url, error=e)) from e
            except OSError as e:
                self._discard(output)
                raise FilesystemError(t("errors.write_file", path=output, error=e)) from e

        logger.info(t("logs.archive.downloaded", size=downloaded))
        return downloaded

    def extract_zip(self, zip_path: Path, destination: Path) -> int:
        """
        Extracts every entry of ``zip_path`` into ``destination``.

        Args:
            zip_path (Path): The archive.
            destination (Path): Extraction root.

        Returns:
            int: Number of entries written (skipped entries are not counted).

        Raises:
            ArchiveError: The archive cannot be opened or read.
            EntryExtractionError: An entry could not be written.
        """
        try:
            archive = zipfile.ZipFile(zip_path)
        except (OSError, zipfile.BadZipFile) as e:
            raise ArchiveError(t("errors.open_archive", path=zip_path, error=e)) from e

        extracted = 0
        root = destination.resolve()

        with archive:
            for info in archive.infolist():
                if self._extract_entry(archive, info, root):
                    extracted += 1

        logger.info(t("logs.archive.extracted", count=extracted, path=destination))
        return extracted

    def _extract_entry(self, archive: zipfile.ZipFile, info: zipfile.ZipInfo, root: Path) -> bool:
        """Writes a single entry. Returns False if the entry was skipped."""
        relative = enclosed_name(info.filename)
        out_path = root.joinpath(relative) if relative is not None else None

        # Also catches symlinked directories inside the root pointing elsewhere
        if out_path is None or not out_path.resolve().is_relative_to(root):
            logger.warning(t("logs.archive.unsafe_entry", name=info.filename))
            return False

        try:
            if info.filename.endswith(("/", "\\")):
                out_path.mkdir(parents=True, exist_ok=True)
            elif out_path == root:
                logger.warning(t("logs.archive.unsafe_entry", name=info.filename))
                return False
            else:
                out_path.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as src, open(out_path, "wb") as dst:
                    shutil.copyfileobj(src, dst)
        except (OSError, zipfile.BadZipFile, RuntimeError) as e:
            # RuntimeError: encrypted entry; BadZipFile: CRC mismatch
            raise EntryExtractionError(t("errors.extract_entry", name=info.filename, error=e), info.filename) from e

        self._restore_permissions(info, out_path)
        return True

    @staticmethod
    def _restore_permissions(info: zipfile.ZipInfo, out_path: Path) -> None:
        """Applies the entry's Unix mode bits, if it has any. Failures are ignored."""
        if os.name != "posix" or info.create_system != _ZIP_SYSTEM_UNIX:
            return

        mode = stat.S_IMODE(info.external_attr >> 16)
        if not mode:
            return

        try:
            os.chmod(out_path, mode)
        except OSError as e:
            logger.debug(t("logs.archive.chmod_failed", path=out_path, error=e))

    @staticmethod
    def _content_length(response: requests.Response) -> int | None:
        try:
            total = int(response.headers.get("content-length", ""))
        except (TypeError, ValueError):
            return None
        return total if total > 0 else None

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(t("logs.archive.discard_failed", path=path, error=e))
