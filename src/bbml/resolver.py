"""Style resolver -- flattens the document tree into styled runs.

A single depth-first walk carries an immutable style context down the tree.
Every text leaf becomes a :class:`StyledRun` holding a snapshot of that
context; structure the layout engine needs (line breaks, block boundaries,
rules, tables) is emitted as marker items between the runs.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace

from bbml.errors import InternalInvariantError
from bbml.options import DEFAULT_OPTIONS, RenderOptions
from bbml.tree import Node, NodeKind
from bbml.utils import is_blank

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Resolved items
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResolvedStyle:
    """Flattened presentation attributes of one run of text."""

    bold: bool = False
    italic: bool = False
    underline: bool = False
    heading_level: int = 0
    list_depth: int = 0
    list_marker: str | None = None
    link_target: str | None = None


PLAIN = ResolvedStyle()


@dataclass(frozen=True)
class StyledRun:
    text: str
    style: ResolvedStyle = PLAIN


@dataclass(frozen=True)
class LineBreak:
    """An explicit ``<br>``."""


class BlockKind(enum.Enum):
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    LIST = "list"
    LIST_ITEM = "list_item"


@dataclass(frozen=True)
class BlockBoundary:
    """Start or end of a block element.

    *blank* asks the layout engine for a blank line between this block and
    its neighbours.  For list items, *marker* and *depth* describe the
    marker to put on the item's first line.
    """

    kind: BlockKind
    opening: bool
    blank: bool
    marker: str | None = None
    depth: int = 0


@dataclass(frozen=True)
class HorizontalRule:
    depth: int = 0


@dataclass(frozen=True)
class TableCell:
    items: tuple[RunItem, ...] = ()
    header: bool = False


@dataclass(frozen=True)
class TableBlock:
    rows: tuple[tuple[TableCell, ...], ...]
    depth: int = 0

    @property
    def column_count(self) -> int:
        return max((len(row) for row in self.rows), default=0)


RunItem = StyledRun | LineBreak | BlockBoundary | HorizontalRule | TableBlock

LINE_BREAK = LineBreak()


@dataclass(frozen=True)
class ResolvedDocument:
    """Output of the resolver: the cached input of every layout call."""

    items: tuple[RunItem, ...] = ()
    links: tuple[str, ...] = ()

    def __iter__(self):
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def runs(self) -> list[StyledRun]:
        """All styled runs in document order, table cells excluded."""
        return [item for item in self.items if isinstance(item, StyledRun)]


# ---------------------------------------------------------------------------
# Traversal context
# ---------------------------------------------------------------------------


@dataclass
class _ListCounter:
    """Numbering state of one list; shared by its items."""

    ordered: bool
    depth: int
    next_number: int = 1


@dataclass(frozen=True)
class _Context:
    style: ResolvedStyle = PLAIN
    counter: _ListCounter | None = field(default=None, compare=False)


def _has_content(node: Node) -> bool:
    if not is_blank(node.text_content()):
        return True
    return any(n.kind in (NodeKind.IMAGE, NodeKind.RULE) for n in node.depth_first())


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class _Resolver:
    def __init__(self, options: RenderOptions) -> None:
        self.options = options
        self.links: list[str] = []

    def walk_children(self, node: Node, ctx: _Context, out: list[RunItem]) -> None:
        for child in node.children:
            self.walk(child, ctx, out)

    def walk(self, node: Node, ctx: _Context, out: list[RunItem]) -> None:
        kind = node.kind
        style = ctx.style

        if kind is NodeKind.TEXT:
            if node.children:
                raise InternalInvariantError("text leaf has children")
            if node.text:
                out.append(StyledRun(node.text, style))

        elif kind is NodeKind.ROOT:
            self.walk_children(node, ctx, out)

        elif kind is NodeKind.LINE_BREAK:
            out.append(LINE_BREAK)

        elif kind is NodeKind.BOLD:
            self.walk_children(node, replace(ctx, style=replace(style, bold=True)), out)

        elif kind is NodeKind.ITALIC:
            self.walk_children(node, replace(ctx, style=replace(style, italic=True)), out)

        elif kind is NodeKind.UNDERLINE:
            self.walk_children(node, replace(ctx, style=replace(style, underline=True)), out)

        elif kind is NodeKind.HEADING:
            out.append(BlockBoundary(BlockKind.HEADING, opening=True, blank=True))
            self.walk_children(node, replace(ctx, style=replace(style, heading_level=node.level)), out)
            out.append(BlockBoundary(BlockKind.HEADING, opening=False, blank=True))

        elif kind is NodeKind.PARAGRAPH:
            out.append(BlockBoundary(BlockKind.PARAGRAPH, opening=True, blank=True))
            self.walk_children(node, ctx, out)
            out.append(BlockBoundary(BlockKind.PARAGRAPH, opening=False, blank=True))

        elif kind in (NodeKind.UNORDERED_LIST, NodeKind.ORDERED_LIST):
            self._list(node, ctx, out)

        elif kind is NodeKind.LIST_ITEM:
            self._list_item(node, ctx, out)

        elif kind is NodeKind.LINK:
            self._link(node, ctx, out)

        elif kind is NodeKind.IMAGE:
            out.append(StyledRun(self.options.image_text(node.text), style))

        elif kind is NodeKind.RULE:
            out.append(HorizontalRule(depth=style.list_depth))

        elif kind is NodeKind.TABLE:
            self._table(node, ctx, out)

        elif kind in (NodeKind.TABLE_ROW, NodeKind.TABLE_CELL):
            # Outside a table these are plain containers
            self.walk_children(node, ctx, out)

        else:
            raise InternalInvariantError(f"no resolution rule for node kind {kind!r}")

    # -- lists --------------------------------------------------------------

    def _list(self, node: Node, ctx: _Context, out: list[RunItem]) -> None:
        depth = ctx.style.list_depth + 1
        counter = _ListCounter(
            ordered=node.kind is NodeKind.ORDERED_LIST,
            depth=depth,
            next_number=node.start,
        )
        # Only top-level lists are set off by blank lines
        blank = ctx.style.list_depth == 0
        inner = _Context(style=replace(ctx.style, list_depth=depth), counter=counter)

        out.append(BlockBoundary(BlockKind.LIST, opening=True, blank=blank, depth=depth))
        self.walk_children(node, inner, out)
        out.append(BlockBoundary(BlockKind.LIST, opening=False, blank=blank, depth=depth))

    def _list_item(self, node: Node, ctx: _Context, out: list[RunItem]) -> None:
        if not _has_content(node):
            logger.debug("Skipping empty list item")
            return

        counter = ctx.counter
        marker: str | None = None
        if counter is not None:
            if counter.ordered:
                marker = self.options.ordered_for_number(counter.next_number)
                counter.next_number += 1
            else:
                marker = self.options.bullet_for_depth(counter.depth)

        depth = ctx.style.list_depth
        inner = replace(ctx, style=replace(ctx.style, list_marker=marker))

        out.append(BlockBoundary(BlockKind.LIST_ITEM, opening=True, blank=False, marker=marker, depth=depth))
        self.walk_children(node, inner, out)
        out.append(BlockBoundary(BlockKind.LIST_ITEM, opening=False, blank=False, marker=marker, depth=depth))

    # -- links --------------------------------------------------------------

    def _link(self, node: Node, ctx: _Context, out: list[RunItem]) -> None:
        href = node.href
        if href is None:
            self.walk_children(node, ctx, out)
            return

        index = len(self.links)
        self.links.append(href)
        style = replace(ctx.style, link_target=href)
        self.walk_children(node, replace(ctx, style=style), out)
        if self.options.link_references:
            out.append(StyledRun(f"[{index}]", style))

    # -- tables -------------------------------------------------------------

    def _table(self, node: Node, ctx: _Context, out: list[RunItem]) -> None:
        rows: list[tuple[TableCell, ...]] = []
        stray: list[RunItem] = []
        # Cells lay out in their own box, outside any list
        cell_style = replace(ctx.style, list_depth=0, list_marker=None)

        pending: list[TableCell] = []
        for child in node.children:
            if child.kind is NodeKind.TABLE_CELL:
                # Cells without a <tr> form an implicit row
                pending.append(self._cell(child, cell_style))
                continue
            if pending:
                rows.append(tuple(pending))
                pending = []
            if child.kind is NodeKind.TABLE_ROW:
                cells = self._row(child, ctx, cell_style, stray)
                if cells:
                    rows.append(cells)
            elif child.is_leaf and is_blank(child.text):
                continue
            else:
                self.walk(child, ctx, stray)
        if pending:
            rows.append(tuple(pending))

        # Content that is not inside a cell is shown before the table
        out.extend(stray)
        if rows:
            out.append(TableBlock(tuple(rows), depth=ctx.style.list_depth))
        else:
            logger.debug("Dropping table without cells")

    def _row(
        self,
        row: Node,
        ctx: _Context,
        cell_style: ResolvedStyle,
        stray: list[RunItem],
    ) -> tuple[TableCell, ...]:
        cell_nodes = [child for child in row.children if child.kind is NodeKind.TABLE_CELL]
        if not any(_has_content(cell) for cell in cell_nodes):
            cell_nodes = []

        cells: list[TableCell] = []
        for child in row.children:
            if child.kind is NodeKind.TABLE_CELL:
                if cell_nodes:
                    cells.append(self._cell(child, cell_style))
            elif child.is_leaf and is_blank(child.text):
                continue
            else:
                self.walk(child, ctx, stray)
        return tuple(cells)

    def _cell(self, cell: Node, style: ResolvedStyle) -> TableCell:
        if cell.header:
            style = replace(style, bold=True)
        items: list[RunItem] = []
        self.walk_children(cell, _Context(style=style), items)
        return TableCell(tuple(items), header=cell.header)


def resolve(root: Node, options: RenderOptions | None = None) -> ResolvedDocument:
    """Resolve *root* into a flat sequence of styled runs and layout markers."""
    options = options or DEFAULT_OPTIONS
    resolver = _Resolver(options)
    items: list[RunItem] = []
    resolver.walk(root, _Context(), items)
    return ResolvedDocument(tuple(items), tuple(resolver.links))
