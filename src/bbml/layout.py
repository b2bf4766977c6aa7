"""Layout engine -- wraps resolved runs into lines of styled spans.

``layout`` is the reflow entry point: the host calls it with the cached
:class:`~bbml.resolver.ResolvedDocument` on first render and again on every
terminal resize.  It keeps no state between calls, so the same input and
width always give the same document.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from bbml.document import BLANK_LINE, Document, Line, Span
from bbml.errors import InternalInvariantError, LayoutConfigError
from bbml.options import DEFAULT_OPTIONS, RenderOptions
from bbml.resolver import (
    PLAIN,
    BlockBoundary,
    BlockKind,
    HorizontalRule,
    LineBreak,
    ResolvedDocument,
    ResolvedStyle,
    RunItem,
    StyledRun,
    TableBlock,
)
from bbml.tables import layout_table
from bbml.utils import is_whitespace_char, split_words, text_width

logger = logging.getLogger(__name__)

# One unbreakable word; pieces differ in style when runs touch without space
Word = list[tuple[str, ResolvedStyle]]


class _Engine:
    """Places words line by line for one layout call."""

    def __init__(
        self,
        width: int,
        options: RenderOptions,
        fill_rules: bool = True,
        cell_cache: dict[tuple[int, int, bool], list[Line]] | None = None,
    ) -> None:
        self.width = width
        self.options = options
        self.fill_rules = fill_rules
        self.lines: list[Line] = []

        # Cell layouts shared by every engine of one layout() call, keyed by
        # (id of the cell items, width, fill_rules); the items outlive the call
        self._cell_cache: dict[tuple[int, int, bool], list[Line]] = (
            {} if cell_cache is None else cell_cache
        )

        # Current line
        self._spans: list[Span] = []
        self._fixed = 0  # leading indent/marker spans, never merged into
        self._pen = 0

        # Pending word
        self._word: Word = []
        self._space_before = False

        self._pending_blank = False
        self._pending_item: BlockBoundary | None = None

    def run(self, items: Iterable[RunItem]) -> list[Line]:
        for item in items:
            self._feed(item)
        self._flush_word()
        self._finish_line()
        while self.lines and self.lines[-1].is_blank:
            self.lines.pop()
        return self.lines

    # -- item dispatch ------------------------------------------------------

    def _feed(self, item: RunItem) -> None:
        if isinstance(item, StyledRun):
            self._feed_text(item.text, item.style)
            return

        self._flush_word()
        self._space_before = False

        if isinstance(item, LineBreak):
            self._line_break()
        elif isinstance(item, BlockBoundary):
            self._boundary(item)
        elif isinstance(item, HorizontalRule):
            self._rule(item)
        elif isinstance(item, TableBlock):
            self._table(item)
        else:
            raise InternalInvariantError(f"cannot lay out item {item!r}")

    def _feed_text(self, text: str, style: ResolvedStyle) -> None:
        for part in split_words(text):
            if is_whitespace_char(part[0]):
                self._flush_word()
                self._space_before = True
            else:
                self._word.append((part, style))

    def _line_break(self) -> None:
        if self._spans:
            self._finish_line()
        elif self._pending_item is not None:
            self._marker_line()
        else:
            self._blank_line()

    def _boundary(self, boundary: BlockBoundary) -> None:
        self._finish_line()
        if boundary.blank:
            self._pending_blank = True

        if boundary.kind is not BlockKind.LIST_ITEM:
            return
        if boundary.opening:
            if self._pending_item is not None:
                # Previous item started straight into a nested list
                self._marker_line()
            self._pending_item = boundary
        elif self._pending_item is not None:
            # Item closed before any of its text was placed
            self._marker_line()

    def _rule(self, rule: HorizontalRule) -> None:
        self._finish_line()
        if self._pending_item is not None:
            self._marker_line()
        self._pending_blank = True
        self._start_block_content()

        indent = self._block_indent(rule.depth)
        length = max(1, self.width - indent) if self.fill_rules else 1
        spans = [Span(self.options.rule_char * length)]
        if indent:
            spans.insert(0, Span(" " * indent))
        self.lines.append(Line(tuple(spans)))
        self._pending_blank = True

    def _table(self, table: TableBlock) -> None:
        self._finish_line()
        if self._pending_item is not None:
            self._marker_line()
        self._pending_blank = True
        self._start_block_content()

        indent = self._block_indent(table.depth)
        table_lines = layout_table(table, self.width - indent, self._lay_out_cell)
        for line in table_lines:
            # Overflow lines from a stacked table stay unindented, like body text
            if indent and not line.is_blank and indent + line.width <= self.width:
                line = Line((Span(" " * indent), *line.spans))
            self.lines.append(line)
        self._pending_blank = True

    def _lay_out_cell(self, items: Sequence[RunItem], width: int, fill_rules: bool) -> list[Line]:
        key = (id(items), width, fill_rules)
        lines = self._cell_cache.get(key)
        if lines is None:
            lines = _Engine(width, self.options, fill_rules, self._cell_cache).run(items)
            self._cell_cache[key] = lines
        return lines

    # -- words --------------------------------------------------------------

    def _flush_word(self) -> None:
        word = self._word
        if not word:
            return
        self._word = []

        if not "".join(text for text, _ in word).strip():
            # Only non-breaking spaces: behaves like inter-word space
            self._space_before = True
            return

        self._place_word(word, self._space_before)
        self._space_before = False

    def _place_word(self, word: Word, space_before: bool) -> None:
        word_width = sum(text_width(text) for text, _ in word)

        if self._spans:
            needed = word_width + (1 if space_before else 0)
            if self._pen + needed <= self.width:
                if space_before:
                    self._append(" ", word[0][1])
                for text, style in word:
                    self._append(text, style)
                return
            self._finish_line()

        self._start_block_content()
        had_marker = self._pending_item is not None
        prefix = self._line_prefix(word[0][1])
        prefix_width = sum(span.width for span in prefix)

        if prefix_width + word_width <= self.width:
            self._spans = prefix
            self._fixed = len(prefix)
            self._pen = prefix_width
            for text, style in word:
                self._append(text, style)
            return

        # Overflow: the word goes alone on its own line, never truncated
        logger.debug("Word of width %d overflows layout width %d", word_width, self.width)
        if had_marker:
            self._push_prefix_line(prefix)
        self.lines.append(Line(tuple(_merge(word))))

    def _append(self, text: str, style: ResolvedStyle) -> None:
        if len(self._spans) > self._fixed and self._spans[-1].style == style:
            last = self._spans[-1]
            self._spans[-1] = Span(last.text + text, style)
        else:
            self._spans.append(Span(text, style))
        self._pen += text_width(text)

    # -- lines --------------------------------------------------------------

    def _finish_line(self) -> None:
        if self._spans:
            self.lines.append(Line(tuple(self._spans)))
        self._spans = []
        self._fixed = 0
        self._pen = 0

    def _blank_line(self) -> None:
        # Never a leading blank line, never two in a row
        if self.lines and not self.lines[-1].is_blank:
            self.lines.append(BLANK_LINE)
        self._pending_blank = False

    def _start_block_content(self) -> None:
        if self._pending_blank:
            self._blank_line()

    def _marker_line(self) -> None:
        """Emit a pending list marker on a line of its own."""
        self._start_block_content()
        self._push_prefix_line(self._line_prefix(PLAIN))

    def _push_prefix_line(self, prefix: list[Span]) -> None:
        markers = [Span(span.text.rstrip(), span.style) for span in prefix if span.text.strip()]
        if not markers:
            return
        if sum(span.width for span in prefix) <= self.width:
            # Keep the marker's trailing space so it lines up with item text
            self.lines.append(Line(tuple(prefix)))
        else:
            # Too narrow for the indent: the bare marker, overflowing if it must
            self.lines.append(Line(tuple(markers)))

    def _line_prefix(self, style: ResolvedStyle) -> list[Span]:
        """Indentation (and marker, for an item's first line) for a new line."""
        indent_width = self.options.indent_width

        item = self._pending_item
        if item is not None:
            self._pending_item = None
            spans: list[Span] = []
            base = max(item.depth - 1, 0) * indent_width
            if base:
                spans.append(Span(" " * base))
            if item.marker:
                marker_style = ResolvedStyle(list_depth=item.depth, list_marker=item.marker)
                spans.append(Span(item.marker + " ", marker_style))
            return spans

        depth = style.list_depth
        if depth == 0:
            return []
        indent = (depth - 1) * indent_width
        if style.list_marker:
            # Align continuation lines under the item text
            indent += text_width(style.list_marker) + 1
        else:
            indent += indent_width
        return [Span(" " * indent)]

    def _block_indent(self, depth: int) -> int:
        indent = depth * self.options.indent_width
        return indent if indent < self.width else 0


def _merge(word: Word) -> list[Span]:
    spans: list[Span] = []
    for text, style in word:
        if spans and spans[-1].style == style:
            spans[-1] = Span(spans[-1].text + text, style)
        else:
            spans.append(Span(text, style))
    return spans


def _check_width(width: object) -> int:
    if isinstance(width, bool) or not isinstance(width, int):
        raise LayoutConfigError(f"layout width must be an integer, got {width!r}")
    if width < 1:
        raise LayoutConfigError(f"layout width must be at least 1, got {width}")
    return width


def layout(
    runs: ResolvedDocument | Sequence[RunItem],
    width: int,
    options: RenderOptions | None = None,
) -> Document:
    """Lay out resolved *runs* into lines at most *width* columns wide.

    The only exception to the width limit is a single word wider than the
    line, which is placed alone on its own line rather than truncated.
    Raises :class:`~bbml.errors.LayoutConfigError` for a width below 1.
    """
    width = _check_width(width)
    options = options or DEFAULT_OPTIONS
    options.validate()

    items = runs.items if isinstance(runs, ResolvedDocument) else tuple(runs)
    lines = _Engine(width, options).run(items)
    return Document(tuple(lines), width)
