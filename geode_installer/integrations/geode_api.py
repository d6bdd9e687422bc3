"""Geode API client for the latest loader release.

Queries the Geode index API for the newest loader version tag and builds the
GitHub release download URL for the Windows build, which is what runs inside
Wine/Proton.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from geode_installer.core.errors import GeodeApiError, HttpStatusError, NetworkError, ResponseFormatError
from geode_installer.utils.i18n import t
from geode_installer.version import __version__

logger = logging.getLogger("geode_installer.geode_api")

__all__ = ["GeodeApiClient", "PLATFORM_SUFFIX", "build_download_url"]

PLATFORM_SUFFIX = "win"


def build_download_url(tag: str, base_url: str | None = None) -> str:
    """Builds the release archive URL for a loader version.

    Args:
        tag: Version tag as reported by the API (e.g. ``v4.2.0``).
        base_url: Release download base. Defaults to the configured one.

    Returns:
        ``<base>/<tag>/geode-<tag>-win.zip``
    """
    if base_url is None:
        from geode_installer.config import config

        base_url = config.GEODE_DOWNLOAD_BASE_URL

    return f"{base_url.rstrip('/')}/{tag}/geode-{tag}-{PLATFORM_SUFFIX}.zip"


class GeodeApiClient:
    """Client for the Geode loader versions endpoint.

    Unlike the lookups in the Steam finder, every failure here is raised:
    the installation cannot continue without a version tag.
    """

    def __init__(self, session: requests.Session | None = None) -> None:
        """Initializes the client with a configured session.

        Args:
            session: Session to use. A new one is created if None.
        """
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": f"GeodeInstaller/{__version__}"})

    def fetch_latest_tag(self) -> str:
        """Fetches the tag of the latest loader release.

        Returns:
            The version tag.

        Raises:
            NetworkError: The request failed.
            HttpStatusError: The API answered with a non-2xx status.
            ResponseFormatError: The body is not JSON or has no tag.
            GeodeApiError: The API reported an error.
        """
        from geode_installer.config import config

        url = config.GEODE_API_URL
        logger.debug(t("logs.geode_api.requesting", url=url))

        try:
            response = self._session.get(url, timeout=config.HTTP_TIMEOUT)
        except requests.RequestException as exc:
            raise NetworkError(t("errors.network", url=url, error=exc)) from exc

        with response:
            if not 200 <= response.status_code < 300:
                raise HttpStatusError(
                    t("errors.http_status", url=url, status=response.status_code),
                    response.status_code,
                )

            try:
                data = response.json()
            except ValueError as exc:
                raise ResponseFormatError(t("errors.api_parse", error=exc)) from exc

        tag = self._extract_tag(data)
        logger.info(t("logs.geode_api.latest_tag", tag=tag))
        return tag

    def get_download_url(self) -> str:
        """Resolves the download URL of the latest loader release."""
        return build_download_url(self.fetch_latest_tag())

    @staticmethod
    def _extract_tag(data: Any) -> str:
        """Pulls ``payload.tag`` out of the API response, surfacing API errors."""
        if not isinstance(data, dict):
            raise ResponseFormatError(t("errors.api_no_tag"))

        error = data.get("error")
        if isinstance(error, str) and error:
            raise GeodeApiError(t("errors.api_error", error=error))

        payload = data.get("payload")
        tag = payload.get("tag") if isinstance(payload, dict) else None
        if not isinstance(tag, str) or not tag:
            raise ResponseFormatError(t("errors.api_no_tag"))

        return tag
