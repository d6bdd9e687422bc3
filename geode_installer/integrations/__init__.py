from __future__ import annotations

__all__: list[str] = ["GeodeApiClient", "build_download_url"]

from geode_installer.integrations.geode_api import GeodeApiClient, build_download_url
