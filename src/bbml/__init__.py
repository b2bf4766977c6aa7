"""bbml: render a small HTML subset as wrapped, styled terminal text."""

# Rendering
from bbml.ansi import Theme, render_document, render_line

# Layout output
from bbml.document import BLANK_LINE, Document, Line, Span

# Errors
from bbml.errors import BbmlError, InternalInvariantError, LayoutConfigError

# Layout
from bbml.layout import layout

# Configuration
from bbml.options import DEFAULT_OPTIONS, RenderOptions

# Style resolution
from bbml.resolver import (
    BlockBoundary,
    BlockKind,
    HorizontalRule,
    LineBreak,
    ResolvedDocument,
    ResolvedStyle,
    StyledRun,
    TableBlock,
    TableCell,
    resolve,
)

# Tree building
from bbml.tree import Node, NodeKind, TreeBuilder, build_tree, parse

# Tokenizing
from bbml.tokenizer import EntityRef, TagClose, TagOpen, Text, Tokenizer, tokenize

# Viewer component
from bbml.view import MarkupView


def render(markup: str, width: int, options: RenderOptions | None = None) -> Document:
    """Run the whole pipeline on *markup* and lay it out at *width*."""
    return layout(resolve(parse(markup), options), width, options)


__all__ = [
    # Pipeline
    "render",
    "tokenize",
    "build_tree",
    "parse",
    "resolve",
    "layout",
    # Tokens
    "EntityRef",
    "TagClose",
    "TagOpen",
    "Text",
    "Tokenizer",
    # Tree
    "Node",
    "NodeKind",
    "TreeBuilder",
    # Resolved items
    "BlockBoundary",
    "BlockKind",
    "HorizontalRule",
    "LineBreak",
    "ResolvedDocument",
    "ResolvedStyle",
    "StyledRun",
    "TableBlock",
    "TableCell",
    # Layout output
    "BLANK_LINE",
    "Document",
    "Line",
    "Span",
    # Configuration
    "DEFAULT_OPTIONS",
    "RenderOptions",
    # Errors
    "BbmlError",
    "InternalInvariantError",
    "LayoutConfigError",
    # Rendering
    "MarkupView",
    "Theme",
    "render_document",
    "render_line",
]
