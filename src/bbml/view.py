"""MarkupView component - displays BbML markup wrapped to the viewport."""

from __future__ import annotations

import logging

from bbml.ansi import Theme, render_document
from bbml.document import Document
from bbml.layout import layout
from bbml.options import DEFAULT_OPTIONS, RenderOptions
from bbml.resolver import ResolvedDocument, resolve
from bbml.tree import parse
from bbml.utils import visible_width

logger = logging.getLogger(__name__)


class MarkupView:
    """Renders a markup string to a list of terminal lines.

    The markup is parsed and resolved once per text; only layout runs again
    when the width changes.
    """

    def __init__(
        self,
        text: str = "",
        *,
        options: RenderOptions | None = None,
        theme: Theme | None = None,
        hyperlinks: bool = True,
    ) -> None:
        self._text = text
        self._options = options or DEFAULT_OPTIONS
        self._theme = theme or Theme()
        self._hyperlinks = hyperlinks

        # Resolved document cache (per text)
        self._resolved: ResolvedDocument | None = None

        # Layout cache (per width)
        self._cached_width: int | None = None
        self._cached_document: Document | None = None
        self._cached_lines: list[str] | None = None

    # -- public API ---------------------------------------------------------

    @property
    def text(self) -> str:
        return self._text

    @property
    def links(self) -> tuple[str, ...]:
        """Link targets in document order."""
        return self._resolve().links

    def set_text(self, text: str) -> None:
        if text != self._text:
            self._text = text
            self._resolved = None
            self._invalidate_layout()

    def set_options(self, options: RenderOptions) -> None:
        options.validate()
        self._options = options
        self._resolved = None
        self._invalidate_layout()

    def set_theme(self, theme: Theme) -> None:
        self._theme = theme
        self._cached_lines = None

    def invalidate(self) -> None:
        self._invalidate_layout()

    def layout(self, width: int) -> Document:
        if self._cached_document is not None and self._cached_width == width:
            return self._cached_document

        logger.debug("Laying out markup view at width %d", width)
        document = layout(self._resolve(), width, self._options)

        self._cached_width = width
        self._cached_document = document
        self._cached_lines = None
        return document

    def render(self, width: int) -> list[str]:
        document = self.layout(width)
        if self._cached_lines is not None:
            return self._cached_lines

        lines = render_document(document, self._theme, self._hyperlinks)
        # Pad every line to the full width, as other components do
        result = [rendered + " " * max(0, width - visible_width(rendered)) for rendered in lines]
        self._cached_lines = result
        return result

    # -- cache --------------------------------------------------------------

    def _resolve(self) -> ResolvedDocument:
        if self._resolved is None:
            logger.debug("Parsing markup (%d chars)", len(self._text))
            self._resolved = resolve(parse(self._text), self._options)
        return self._resolved

    def _invalidate_layout(self) -> None:
        self._cached_width = None
        self._cached_document = None
        self._cached_lines = None
