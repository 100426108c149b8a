"""Utility helpers for the ranking service."""

from __future__ import annotations


MARKUP_REPLACEMENTS: tuple[tuple[str, str], ...] = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
)


def escape_markup(value: object) -> str:
    """Escape text for embedding in SVG attributes and text nodes.

    ``&`` is replaced first so the entities produced by the later
    substitutions are not escaped twice. Already escaped input is escaped
    again.
    """

    if value is None:
        return ""
    text = str(value)
    for needle, replacement in MARKUP_REPLACEMENTS:
        text = text.replace(needle, replacement)
    return text


def normalize_title(value: str) -> str:
    """Return the grouping key for a title: case-folded and trimmed."""

    return value.strip().casefold()
