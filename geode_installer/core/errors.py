# geode_installer/core/errors.py

"""
Failure types raised by the installer.

Every failure of an installation attempt derives from :class:`InstallerError`
and carries a human-readable message, so the CLI can catch the base class,
print the message and let the user retry. "Not found" results of the Steam
lookups are *not* errors; they are returned as ``None`` and only the
orchestration layer turns them into :class:`LookupFailure` subclasses.
"""

from __future__ import annotations

__all__ = [
    "ArchiveError",
    "CleanupError",
    "EntryExtractionError",
    "FilesystemError",
    "GameNotFoundError",
    "GeodeApiError",
    "HttpStatusError",
    "InstallerError",
    "InvalidPathError",
    "LookupFailure",
    "NetworkError",
    "PrefixNotFoundError",
    "RegistryFileNotFoundError",
    "ResponseFormatError",
    "SteamNotFoundError",
]


class InstallerError(Exception):
    """Base class for all installation failures."""


# --- network / remote service ---


class NetworkError(InstallerError):
    """The HTTP request could not be completed (DNS, TLS, connection reset...)."""


class HttpStatusError(InstallerError):
    """The server answered with a non-success status code."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ResponseFormatError(InstallerError):
    """The response body was not in the expected shape."""


class GeodeApiError(InstallerError):
    """The Geode API reported an error in its response body."""


# --- filesystem / archive ---


class FilesystemError(InstallerError):
    """Creating, writing or deleting a file or directory failed."""


class CleanupError(FilesystemError):
    """The temporary archive could not be removed after a successful extraction."""


class RegistryFileNotFoundError(FilesystemError):
    """The prefix has no user.reg, so it is not a usable Wine prefix."""


class ArchiveError(InstallerError):
    """The downloaded file could not be read as a zip archive."""


class EntryExtractionError(ArchiveError):
    """A single archive entry could not be written to disk."""

    def __init__(self, message: str, entry_name: str) -> None:
        super().__init__(message)
        self.entry_name = entry_name


# --- orchestration ---


class InvalidPathError(InstallerError):
    """A user supplied directory does not exist."""


class LookupFailure(InstallerError):
    """A required Steam lookup found nothing."""


class SteamNotFoundError(LookupFailure):
    """No Steam installation was found."""


class GameNotFoundError(LookupFailure):
    """The game is not installed in any Steam library."""


class PrefixNotFoundError(LookupFailure):
    """The game has no Proton prefix (never launched through Proton)."""
