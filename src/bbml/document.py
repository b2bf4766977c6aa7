"""Layout output: spans, lines and the laid-out document."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from bbml.resolver import PLAIN, ResolvedStyle
from bbml.utils import text_width


@dataclass(frozen=True)
class Span:
    """A fragment of text with one style; never crosses a line."""

    text: str
    style: ResolvedStyle = PLAIN

    @property
    def width(self) -> int:
        return text_width(self.text)


@dataclass(frozen=True)
class Line:
    spans: tuple[Span, ...] = ()

    @property
    def width(self) -> int:
        return sum(span.width for span in self.spans)

    @property
    def text(self) -> str:
        return "".join(span.text for span in self.spans)

    @property
    def is_blank(self) -> bool:
        return not self.spans


BLANK_LINE = Line()


@dataclass(frozen=True)
class Document:
    """The laid-out document, indexed by line for scrolling."""

    lines: tuple[Line, ...] = ()
    width: int = 0

    def __len__(self) -> int:
        return len(self.lines)

    def __getitem__(self, index: int) -> Line:
        return self.lines[index]

    def __iter__(self) -> Iterator[Line]:
        return iter(self.lines)

    def text_lines(self) -> list[str]:
        """Plain text of every line, handy for dumps and tests."""
        return [line.text for line in self.lines]
