"""Tokenizer -- scans raw markup into tag, text and entity tokens.

The scanner never fails: anything it cannot make sense of is emitted as
literal text, because course content is authored by third parties and must
stay displayable.  Scanning is lazy; iterating a :class:`Tokenizer` again
restarts from the beginning of the input.
"""

from __future__ import annotations

import html
import re
from collections.abc import Iterator
from dataclasses import dataclass

from bbml.utils import strip_control_chars

# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TagOpen:
    name: str
    attrs: tuple[tuple[str, str], ...] = ()
    self_closing: bool = False

    def get(self, attr: str, default: str | None = None) -> str | None:
        """Return the first value of *attr*, like a browser does for duplicates."""
        for name, value in self.attrs:
            if name == attr:
                return value
        return default


@dataclass(frozen=True)
class TagClose:
    name: str


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class EntityRef:
    """A character reference; *name* is the raw reference, *text* its value."""

    name: str
    text: str


Token = TagOpen | TagClose | Text | EntityRef

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

_TAG_NAME_RE = re.compile(r"[A-Za-z][A-Za-z0-9:_-]*")
_ENTITY_RE = re.compile(r"&(#[0-9]{1,8}|#[xX][0-9a-fA-F]{1,8}|[A-Za-z][A-Za-z0-9]{0,31});?")
_ATTR_NAME_RE = re.compile(r"[^\s\"'<>/=]+")
_UNQUOTED_VALUE_RE = re.compile(r"[^\s>]*")
_TEXT_RE = re.compile(r"[^<&]+")

# Elements whose content is raw text up to their close tag
RAW_TEXT_TAGS = frozenset({"script", "style"})


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


class Tokenizer:
    """Lazy, restartable token stream over *markup*."""

    def __init__(self, markup: str) -> None:
        self._markup = markup

    def __iter__(self) -> Iterator[Token]:
        return _scan(self._markup)

    def __repr__(self) -> str:
        return f"Tokenizer({self._markup[:40]!r})"


def tokenize(markup: str) -> Tokenizer:
    """Return a restartable token stream for *markup*."""
    return Tokenizer(markup)


def _scan(src: str) -> Iterator[Token]:
    n = len(src)
    pos = 0

    while pos < n:
        ch = src[pos]

        if ch == "&":
            token, pos = _scan_entity(src, pos)
            yield token
            continue

        if ch != "<":
            m = _TEXT_RE.match(src, pos)
            assert m is not None
            pos = m.end()
            text = strip_control_chars(m.group())
            if text:
                yield Text(text)
            continue

        # ch == "<"
        nxt = src[pos + 1] if pos + 1 < n else ""

        if src.startswith("<!--", pos):
            end = src.find("-->", pos + 4)
            pos = n if end < 0 else end + 3
            continue

        if nxt in ("!", "?"):
            end = src.find(">", pos + 2)
            pos = n if end < 0 else end + 1
            continue

        if nxt == "/":
            m = _TAG_NAME_RE.match(src, pos + 2)
            if m is None:
                yield Text("<")
                pos += 1
                continue
            end = src.find(">", m.end())
            pos = n if end < 0 else end + 1
            yield TagClose(m.group().lower())
            continue

        m = _TAG_NAME_RE.match(src, pos + 1)
        if m is None:
            yield Text("<")
            pos += 1
            continue

        tag, pos = _scan_tag(src, m.group().lower(), m.end())
        yield tag

        if tag.name in RAW_TEXT_TAGS and not tag.self_closing:
            raw, pos = _scan_raw_text(src, tag.name, pos)
            raw = strip_control_chars(raw)
            if raw:
                yield Text(raw)


def _scan_entity(src: str, pos: int) -> tuple[Token, int]:
    """Decode a character reference at *pos*; fall back to a literal ``&``."""
    m = _ENTITY_RE.match(src, pos)
    if m is None:
        return (Text("&"), pos + 1)

    raw = m.group()
    decoded = html.unescape(raw)
    if decoded == raw:
        # Unknown named reference
        return (Text(raw), m.end())

    # html.unescape may consume only a legacy prefix ("&ampx" -> "&x")
    return (EntityRef(m.group(1), strip_control_chars(decoded)), m.end())


def _scan_tag(src: str, name: str, pos: int) -> tuple[TagOpen, int]:
    """Parse attributes after ``<name`` up to ``>`` (or end of input)."""
    n = len(src)
    attrs: list[tuple[str, str]] = []
    self_closing = False

    while pos < n:
        ch = src[pos]

        if ch.isspace():
            pos += 1
            continue

        if ch == ">":
            return (TagOpen(name, tuple(attrs), self_closing), pos + 1)

        if ch == "/":
            self_closing = pos + 1 < n and src[pos + 1] == ">"
            pos += 1
            continue

        self_closing = False
        m = _ATTR_NAME_RE.match(src, pos)
        if m is None:
            # Stray quote or "=" -- skip it
            pos += 1
            continue

        attr_name = m.group().lower()
        pos = m.end()

        # Optional "= value"
        look = pos
        while look < n and src[look].isspace():
            look += 1
        if look < n and src[look] == "=":
            look += 1
            while look < n and src[look].isspace():
                look += 1
            value, pos = _scan_attr_value(src, look)
        else:
            value = ""

        attrs.append((attr_name, html.unescape(value)))

    # Unterminated tag: closed at end of input
    return (TagOpen(name, tuple(attrs), self_closing), n)


def _scan_attr_value(src: str, pos: int) -> tuple[str, int]:
    n = len(src)
    if pos < n and src[pos] in ("'", '"'):
        quote = src[pos]
        end = src.find(quote, pos + 1)
        if end < 0:
            return (src[pos + 1 :], n)
        return (src[pos + 1 : end], end + 1)

    m = _UNQUOTED_VALUE_RE.match(src, pos)
    assert m is not None
    return (m.group(), m.end())


def _scan_raw_text(src: str, name: str, pos: int) -> tuple[str, int]:
    """Return the content of a raw-text element and where its close tag starts."""
    close = re.compile(rf"</{name}(?=[\s/>]|$)", re.IGNORECASE)
    m = close.search(src, pos)
    if m is None:
        return (src[pos:], len(src))
    return (src[pos : m.start()], m.start())
