"""Table layout -- draws a resolved table with box-drawing borders.

Cells are laid out by the caller-supplied ``lay_out`` function (the regular
layout engine), so everything a cell may contain wraps the same way as body
text.  Column widths start at each column's natural width and the widest
column is shrunk until the table fits.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from bbml.document import BLANK_LINE, Line, Span
from bbml.resolver import RunItem, TableBlock, TableCell
from bbml.utils import max_grapheme_width, take_columns

logger = logging.getLogger(__name__)

# (items, width, fill_rules) -> lines
LayOut = Callable[[Sequence[RunItem], int, bool], list[Line]]

TABLE_HORIZ_BORDER = "─"
TABLE_VERT_BORDER = "│"
TABLE_TOP_LEFT = "┌"
TABLE_TOP_INTERSECT = "┬"
TABLE_TOP_RIGHT = "┐"
TABLE_MID_LEFT = "├"
TABLE_MID_INTERSECT = "┼"
TABLE_MID_RIGHT = "┤"
TABLE_BOT_LEFT = "└"
TABLE_BOT_INTERSECT = "┴"
TABLE_BOT_RIGHT = "┘"

_EMPTY_CELL = TableCell()


def layout_table(table: TableBlock, width: int, lay_out: LayOut) -> list[Line]:
    """Lay out *table* into lines no wider than *width*."""
    n_cols = table.column_count
    if n_cols == 0:
        return []

    rows = [row + (_EMPTY_CELL,) * (n_cols - len(row)) for row in table.rows]

    natural, minimum = _measure_columns(rows, n_cols, width, lay_out)
    col_widths = _fit_columns(natural, minimum, width)
    if col_widths is None:
        logger.debug("Table with %d columns does not fit width %d; stacking cells", n_cols, width)
        return _stacked(rows, width, lay_out)

    lines: list[Line] = [_border(col_widths, TABLE_TOP_LEFT, TABLE_TOP_INTERSECT, TABLE_TOP_RIGHT)]
    for row_idx, row in enumerate(rows):
        lines.extend(_render_row(row, col_widths, lay_out))
        if row_idx < len(rows) - 1:
            lines.append(_border(col_widths, TABLE_MID_LEFT, TABLE_MID_INTERSECT, TABLE_MID_RIGHT))
    lines.append(_border(col_widths, TABLE_BOT_LEFT, TABLE_BOT_INTERSECT, TABLE_BOT_RIGHT))
    return lines


# ---------------------------------------------------------------------------
# Column widths
# ---------------------------------------------------------------------------


def _measure_columns(
    rows: list[tuple[TableCell, ...]],
    n_cols: int,
    width: int,
    lay_out: LayOut,
) -> tuple[list[int], list[int]]:
    """Return each column's natural width and the narrowest width it allows.

    A column can never be narrower than its widest grapheme, otherwise a
    double-width character could not be placed at all.
    """
    natural = [1] * n_cols
    minimum = [1] * n_cols
    for row in rows:
        for col, cell in enumerate(row):
            for line in lay_out(cell.items, width, False):
                natural[col] = max(natural[col], line.width)
                for span in line.spans:
                    minimum[col] = max(minimum[col], max_grapheme_width(span.text))
    return [max(n, m) for n, m in zip(natural, minimum)], minimum


def _fit_columns(natural: list[int], minimum: list[int], width: int) -> list[int] | None:
    """Shrink the widest column until the bordered table fits *width*.

    Returns ``None`` when even the narrowest allowed columns do not fit.
    """
    col_widths = list(natural)
    n_cols = len(col_widths)
    borders = n_cols + 1

    if sum(minimum) + borders > width:
        return None

    excess = sum(col_widths) + borders - width
    while excess > 0:
        shrinkable = [c for c in range(n_cols) if col_widths[c] > minimum[c]]
        widest = max(shrinkable, key=lambda c: col_widths[c])
        col_widths[widest] -= 1
        excess -= 1
    return col_widths


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


def _render_row(row: tuple[TableCell, ...], col_widths: list[int], lay_out: LayOut) -> list[Line]:
    cells: list[list[Line]] = []
    for cell, col_width in zip(row, col_widths):
        cell_lines: list[Line] = []
        for line in lay_out(cell.items, col_width, True):
            cell_lines.extend(chop_line(line, col_width))
        cells.append(cell_lines)

    height = max((len(c) for c in cells), default=0) or 1
    border = Span(TABLE_VERT_BORDER)

    lines: list[Line] = []
    for i in range(height):
        spans: list[Span] = [border]
        for cell_lines, col_width in zip(cells, col_widths):
            line = cell_lines[i] if i < len(cell_lines) else BLANK_LINE
            spans.extend(line.spans)
            padding = col_width - line.width
            if padding > 0:
                spans.append(Span(" " * padding))
            spans.append(border)
        lines.append(Line(tuple(spans)))
    return lines


def chop_line(line: Line, width: int) -> list[Line]:
    """Split *line* into pieces of at most *width* columns.

    Cuts fall on grapheme boundaries; styles are kept on both sides of a cut.
    """
    if line.width <= width:
        return [line]

    result: list[Line] = []
    current: list[Span] = []
    used = 0
    queue = list(line.spans)

    while queue:
        span = queue.pop(0)
        span_width = span.width
        if used + span_width <= width:
            current.append(span)
            used += span_width
            continue

        head, tail = take_columns(span.text, width - used)
        if not head and not current:
            # A grapheme wider than the whole column: place it anyway
            head, tail = take_columns(span.text, max_grapheme_width(span.text))
        if head:
            current.append(Span(head, span.style))
        result.append(Line(tuple(current)))
        current = []
        used = 0
        if tail:
            queue.insert(0, Span(tail, span.style))

    if current:
        result.append(Line(tuple(current)))
    return result


def _border(col_widths: list[int], left: str, intersect: str, right: str) -> Line:
    parts = [TABLE_HORIZ_BORDER * w for w in col_widths]
    return Line((Span(left + intersect.join(parts) + right),))


def _stacked(rows: list[tuple[TableCell, ...]], width: int, lay_out: LayOut) -> list[Line]:
    """Fallback for tables too wide to draw: cells one after another."""
    lines: list[Line] = []
    for row in rows:
        row_lines: list[Line] = []
        for cell in row:
            row_lines.extend(lay_out(cell.items, width, True))
        if row_lines:
            if lines:
                lines.append(BLANK_LINE)
            lines.extend(row_lines)
    return lines
