"""ANSI rendering of laid-out documents.

Maps each span's resolved style to SGR escape sequences.  Link spans are
additionally wrapped in OSC 8 hyperlinks so terminals that support them make
the text clickable.
"""

from __future__ import annotations

from dataclasses import dataclass

from bbml.document import Document, Line, Span
from bbml.resolver import ResolvedStyle

# ---------------------------------------------------------------------------
# ANSI helpers
# ---------------------------------------------------------------------------

_RESET = "\x1b[0m"
_BOLD = "\x1b[1m"
_ITALIC = "\x1b[3m"
_UNDERLINE = "\x1b[4m"

_OSC8_OPEN = "\x1b]8;;{uri}\x07"
_OSC8_CLOSE = "\x1b]8;;\x07"


@dataclass
class Theme:
    """Colour theme for the ANSI renderer."""

    heading_color: str | None = None  # e.g. "\x1b[38;2;R;G;Bm"
    link_color: str | None = None


DEFAULT_THEME = Theme()


def style_prefix(style: ResolvedStyle, theme: Theme = DEFAULT_THEME) -> str:
    """Return the SGR sequence that switches on *style* (empty for plain)."""
    parts: list[str] = []
    if style.heading_level and theme.heading_color:
        parts.append(theme.heading_color)
    elif style.link_target and theme.link_color:
        parts.append(theme.link_color)
    if style.bold or style.heading_level:
        parts.append(_BOLD)
    if style.italic:
        parts.append(_ITALIC)
    # Top-level headings and links are underlined as well
    if style.underline or style.link_target or 1 <= style.heading_level <= 2:
        parts.append(_UNDERLINE)
    return "".join(parts)


def render_span(span: Span, theme: Theme = DEFAULT_THEME, hyperlinks: bool = True) -> str:
    prefix = style_prefix(span.style, theme)
    text = f"{prefix}{span.text}{_RESET}" if prefix else span.text
    target = span.style.link_target
    if hyperlinks and target:
        # Control characters in the target would end the escape early
        uri = "".join(ch for ch in target if ch.isprintable())
        text = f"{_OSC8_OPEN.format(uri=uri)}{text}{_OSC8_CLOSE}"
    return text


def render_line(line: Line, theme: Theme = DEFAULT_THEME, hyperlinks: bool = True) -> str:
    return "".join(render_span(span, theme, hyperlinks) for span in line.spans)


def render_document(
    document: Document,
    theme: Theme | None = None,
    hyperlinks: bool = True,
) -> list[str]:
    """Render every line of *document* to a terminal string."""
    theme = theme or DEFAULT_THEME
    return [render_line(line, theme, hyperlinks) for line in document]
