#!/usr/bin/env python3
"""Geode Installer - command line entry point."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable

from tqdm import tqdm

from geode_installer.config import config
from geode_installer.core.errors import InstallerError
from geode_installer.core.logging import logger, setup_logging
from geode_installer.services.geode_installer_service import GeodeInstallerService
from geode_installer.utils.i18n import available_locales, init_i18n, t
from geode_installer.version import __app_name__, __version__

__all__ = ["DownloadProgress", "build_parser", "main", "run_interactive"]

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


class DownloadProgress:
    """tqdm progress bar fed by the installer's (downloaded, total) callback.

    The bar is created on the first chunk, when the total is known; an
    unknown total gives an open-ended byte counter.
    """

    def __init__(self, description: str) -> None:
        self._description = description
        self._bar: tqdm | None = None
        self._position = 0

    def __call__(self, downloaded: int, total: int | None) -> None:
        if self._bar is None:
            self._bar = tqdm(
                total=total,
                desc=self._description,
                unit="B",
                unit_scale=True,
                unit_divisor=1024,
                leave=True,
            )
        self._bar.update(downloaded - self._position)
        self._position = downloaded

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None

    def __enter__(self) -> DownloadProgress:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def build_parser() -> argparse.ArgumentParser:
    """Creates the argument parser."""
    parser = argparse.ArgumentParser(
        prog="geode-installer",
        description=t("cli.description"),
    )
    parser.add_argument("--version", action="version", version=f"{__app_name__} {__version__}")
    parser.add_argument("--debug", action="store_true", help=t("cli.help.debug"))
    parser.add_argument("--log-file", type=Path, help=t("cli.help.log_file"))
    parser.add_argument("--lang", choices=available_locales(), help=t("cli.help.lang"))

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("steam", help=t("cli.help.steam"))

    wine = subparsers.add_parser("wine", help=t("cli.help.wine"))
    wine.add_argument("--game-dir", type=Path, required=True, help=t("cli.help.game_dir"))
    wine.add_argument("--prefix", type=Path, required=True, help=t("cli.help.prefix"))

    return parser


def _install_to_steam(service: GeodeInstallerService) -> None:
    print(t("cli.steam.start"))
    with DownloadProgress(t("cli.downloading")) as progress:
        paths = service.install_to_steam(progress)
    print(t("cli.steam.paths", game=paths.game_path, prefix=paths.proton_prefix))


def _install_to_wine(service: GeodeInstallerService, game_dir: Path, prefix: Path) -> None:
    print(t("cli.wine.start"))
    with DownloadProgress(t("cli.downloading")) as progress:
        service.install_to_wine(prefix, game_dir, progress)


def _run_once(action: Callable[[], None]) -> int:
    """Runs a single installation and maps the outcome to an exit code."""
    try:
        action()
    except InstallerError as e:
        logger.debug("Installation failed", exc_info=True)
        print(t("cli.error", error=e), file=sys.stderr)
        return EXIT_FAILURE
    print(t("cli.success"))
    return EXIT_OK


def run_interactive(service: GeodeInstallerService, read_input: Callable[[str], str] = input) -> int:
    """Shows the menu until an installation succeeds or the user quits.

    Args:
        service: The installer service.
        read_input: Prompt function, replaceable for tests.

    Returns:
        Process exit code.
    """
    while True:
        print()
        print(t("cli.menu.title"))
        print(t("cli.menu.steam"))
        print(t("cli.menu.wine"))
        print(t("cli.menu.quit"))
        print()

        try:
            choice = read_input(t("cli.menu.prompt")).strip()

            if choice == "0":
                print(t("cli.menu.bye"))
                return EXIT_OK

            if choice == "1":
                action = lambda: _install_to_steam(service)
            elif choice == "2":
                game_dir = Path(read_input(t("cli.wine.ask_game_dir")).strip())
                prefix = Path(read_input(t("cli.wine.ask_prefix")).strip())
                action = lambda: _install_to_wine(service, game_dir, prefix)
            else:
                print(t("cli.menu.invalid"))
                continue

            if _run_once(action) == EXIT_OK:
                return EXIT_OK

            read_input(t("cli.menu.continue"))
        except EOFError:
            print()
            return EXIT_FAILURE


def main(argv: list[str] | None = None) -> int:
    """Main application execution flow."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # 1. Initialize language (BEFORE any output)
    init_i18n(args.lang or config.UI_LANGUAGE)

    # 2. Setup logging
    setup_logging(logging.DEBUG if args.debug else logging.INFO, args.log_file)
    logger.debug(t("logs.main.starting", version=__version__))

    service = GeodeInstallerService()

    try:
        if args.command == "steam":
            return _run_once(lambda: _install_to_steam(service))
        if args.command == "wine":
            return _run_once(lambda: _install_to_wine(service, args.game_dir, args.prefix))
        return run_interactive(service)
    except KeyboardInterrupt:
        print()
        print(t("cli.interrupted"), file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
