"""Terminal text utilities: width measurement, column slicing, word splitting.

Provides functions for measuring the terminal width of text at grapheme
cluster granularity, cutting text at column boundaries, and splitting text
into words on the whitespace characters HTML treats as inter-word space.
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

# CSI sequences and OSC 8 hyperlinks, as emitted by bbml.ansi
_STRIP_RE = re.compile(
    r"\x1b\[[0-9;]*[mGKHJ]"         # CSI
    r"|\x1b\]8;[^\x07\x1b]*(?:\x07|\x1b\\)"  # OSC 8
)

# ASCII whitespace only; U+00A0 (&nbsp;) must not become a break opportunity
_WHITESPACE_SPLIT_RE = re.compile(r"([ \t\n\r\f\v]+)")

# C0/C1 controls except tab, newline, carriage return and form feed
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0e-\x1f\x7f-\x9f]")

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Grapheme width
# ---------------------------------------------------------------------------

def grapheme_width(g: str) -> int:
    """Return the terminal display width of a single grapheme cluster.

    Rules:
    1. Zero-width characters (control, combining marks, etc.) -> 0
    2. Emoji (multi-codepoint, contains VS16 U+FE0F, ZWJ sequences, etc.) -> 2
    3. Otherwise delegate to wcwidth for the first meaningful codepoint.
    """
    if not g:
        return 0

    # Single codepoint fast path
    if len(g) == 1:
        cp = ord(g)
        # Control characters
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        w = _wcwidth.wcwidth(g)
        return max(w, 0)

    codepoints = list(g)

    for ch in codepoints:
        cp = ord(ch)
        if cp == 0xFE0F:  # VS16
            return 2
        if cp == 0x200D:  # ZWJ
            return 2
        if 0x1F3FB <= cp <= 0x1F3FF:  # Skin tone modifiers
            return 2
        if 0x1F1E6 <= cp <= 0x1F1FF:  # Regional indicators
            return 2

    first_cp = ord(codepoints[0])

    if first_cp >= 0x1F000:
        return 2

    cat = unicodedata.category(codepoints[0])
    if cat.startswith("M"):  # Mark
        return 0
    if cat == "Cf":  # Format
        return 0

    # Fall back to wcwidth on the first codepoint
    w = _wcwidth.wcwidth(codepoints[0])
    return max(w, 0)


# ---------------------------------------------------------------------------
# text_width / visible_width
# ---------------------------------------------------------------------------

def text_width(text: str) -> int:
    """Calculate the terminal width of plain *text* (no escape sequences).

    * Uses a fast ASCII path when possible.
    * Caches results for non-ASCII strings.
    """
    if not text:
        return 0

    if text.isascii() and text.isprintable():
        return len(text)

    cached = _width_cache.get(text)
    if cached is not None:
        return cached

    total = 0
    for g in grapheme.graphemes(text):
        total += grapheme_width(g)

    return _cache_width(text, total)


def visible_width(text: str) -> int:
    """Calculate the visible width of *text* after stripping ANSI sequences."""
    if not text:
        return 0
    return text_width(_STRIP_RE.sub("", text))


def strip_ansi(text: str) -> str:
    """Remove SGR and OSC 8 sequences from *text*."""
    return _STRIP_RE.sub("", text)


# ---------------------------------------------------------------------------
# Column slicing
# ---------------------------------------------------------------------------

def take_columns(text: str, max_cols: int) -> tuple[str, str]:
    """Split *text* into a prefix fitting *max_cols* columns and the rest.

    The cut happens at a grapheme boundary.  A grapheme wider than the
    remaining columns is left for the rest, so the prefix may be narrower than
    *max_cols* (or empty).
    """
    if max_cols <= 0:
        return ("", text)

    cols = 0
    consumed = 0
    for g in grapheme.graphemes(text):
        w = grapheme_width(g)
        if cols + w > max_cols:
            break
        cols += w
        consumed += len(g)

    return (text[:consumed], text[consumed:])


def max_grapheme_width(text: str) -> int:
    """Return the width of the widest grapheme in *text* (0 for empty text)."""
    widest = 0
    for g in grapheme.graphemes(text):
        w = grapheme_width(g)
        if w > widest:
            widest = w
    return widest


# ---------------------------------------------------------------------------
# Words and whitespace
# ---------------------------------------------------------------------------

def split_words(text: str) -> list[str]:
    """Split *text* into alternating word and whitespace parts.

    Whitespace parts are kept so callers can tell where break opportunities
    are; empty parts are dropped.
    """
    return [part for part in _WHITESPACE_SPLIT_RE.split(text) if part]


def is_whitespace_char(char: str) -> bool:
    """Return ``True`` if *char* is an inter-word whitespace character."""
    return char in (" ", "\t", "\n", "\r", "\f", "\v")


def is_blank(text: str) -> bool:
    """Return ``True`` if *text* has no visible (non-whitespace) content."""
    return all(is_whitespace_char(ch) for ch in text)


def strip_control_chars(text: str) -> str:
    """Remove control characters that would act on the terminal."""
    return _CONTROL_RE.sub("", text)
