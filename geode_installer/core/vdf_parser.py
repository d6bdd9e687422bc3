# geode_installer/core/vdf_parser.py

"""
Parser for Steam's text KeyValues format (libraryfolders.vdf, appmanifest_*.acf).

The parser is a small recursive descent over the raw text. Nested blocks are
flattened into dotted key paths, so::

    "AppState"
    {
        "installdir"    "Geometry Dash"
    }

becomes ``{"AppState.installdir": "Geometry Dash"}``.

Steam rewrites these files while it runs, so partially written or otherwise
malformed input is expected. The parser never raises on bad input: it stops
at the point the text stops making sense and returns what it has collected.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from pathlib import Path

from geode_installer.utils.i18n import t

logger = logging.getLogger("geode_installer.vdf")

__all__ = ["KeyValueDocument", "MAX_DEPTH", "parse_file", "parse_text"]

QUOTE = '"'
SECTION_START = "{"
SECTION_END = "}"
COMMENT = "//"

# Deeper nesting stops the parse instead of exhausting the interpreter stack
MAX_DEPTH = 256


class KeyValueDocument(Mapping):
    """Read-only mapping of dotted key paths to leaf string values."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(data) if data else {}

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"KeyValueDocument({self._data!r})"

    def values_with_suffix(self, suffix: str) -> list[str]:
        """Return the values of all keys ending with ``suffix``, in source order.

        Args:
            suffix: Key suffix to match, e.g. ``".path"``.

        Returns:
            Matching leaf values.
        """
        return [value for key, value in self._data.items() if key.endswith(suffix)]


def parse_text(text: str) -> KeyValueDocument:
    """
    Parses KeyValues text into a flattened document.

    Args:
        text (str): The raw file content.

    Returns:
        KeyValueDocument: Dotted key paths mapped to their values. Empty for
        empty or unparseable input.
    """
    result: dict[str, str] = {}
    pos = 0
    # A stray closing brace ends _parse_block early; keep going at top level.
    while pos < len(text):
        pos = _parse_block(text, pos, "", result, 0)
    return KeyValueDocument(result)


def parse_file(path: Path) -> KeyValueDocument:
    """
    Parses a KeyValues file.

    A missing or unreadable file is not an error for callers that only scan
    Steam's directories, so it yields an empty document.

    Invalid UTF-8 is decoded with ``surrogateescape``: library paths are raw
    bytes on Linux and must map back to the same directory name.

    Args:
        path (Path): The file to read.

    Returns:
        KeyValueDocument: The parsed document, possibly empty.
    """
    try:
        text = Path(path).read_text(encoding="utf-8", errors="surrogateescape")
    except OSError as e:
        logger.debug(t("logs.vdf.read_failed", path=path, error=e))
        return KeyValueDocument()
    return parse_text(text)


def _parse_block(text: str, pos: int, prefix: str, result: dict[str, str], depth: int) -> int:
    """Parses entries until the block's closing brace and returns the new cursor."""
    length = len(text)

    while pos < length:
        pos = _skip_trivia(text, pos)
        if pos >= length:
            break

        char = text[pos]
        if char == SECTION_END:
            return pos + 1
        if char == QUOTE:
            pos = _parse_key_value(text, pos, prefix, result, depth)
        else:
            # Stray "{" or garbage: skip it and stay at this level
            pos += 1

    return pos


def _parse_key_value(text: str, pos: int, prefix: str, result: dict[str, str], depth: int) -> int:
    """Parses one ``"key" "value"`` or ``"key" { ... }`` entry starting at a quote."""
    key, pos = _read_quoted(text, pos + 1)
    if key is None:
        return len(text)

    pos = _skip_trivia(text, pos)
    if pos >= len(text):
        return pos

    full_key = f"{prefix}.{key}" if prefix else key
    char = text[pos]

    if char == QUOTE:
        value, pos = _read_quoted(text, pos + 1)
        if value is None:
            return len(text)
        result[full_key] = value
        return pos

    if char == SECTION_START:
        if depth >= MAX_DEPTH:
            logger.warning(t("logs.vdf.too_deep", key=full_key, depth=MAX_DEPTH))
            return len(text)
        return _parse_block(text, pos + 1, full_key, result, depth + 1)

    # A key with neither value nor block: leave the character for the caller
    return pos


def _read_quoted(text: str, pos: int) -> tuple[str | None, int]:
    """Reads up to the closing quote. Returns (None, len(text)) if it never comes."""
    end = text.find(QUOTE, pos)
    if end == -1:
        return None, len(text)
    return text[pos:end], end + 1


def _skip_trivia(text: str, pos: int) -> int:
    """Skips whitespace and ``//`` line comments."""
    length = len(text)
    while pos < length:
        if text[pos].isspace():
            pos += 1
        elif text.startswith(COMMENT, pos):
            newline = text.find("\n", pos)
            pos = length if newline == -1 else newline + 1
        else:
            break
    return pos
