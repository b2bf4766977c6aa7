"""Tree builder -- turns a token stream into a document tree.

Recovery follows browsers rather than XML: close tags implicitly close any
elements opened after their match, unknown tags are unwrapped (their content
stays visible), and everything still open at end of input is closed.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from bbml.errors import InternalInvariantError
from bbml.tokenizer import EntityRef, TagClose, TagOpen, Text, Token, tokenize

logger = logging.getLogger(__name__)

# Recognised tags nested deeper than this are unwrapped instead of pushed
MAX_DEPTH = 256


class NodeKind(enum.Enum):
    ROOT = "root"
    PARAGRAPH = "paragraph"
    LINE_BREAK = "line_break"
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    HEADING = "heading"
    UNORDERED_LIST = "unordered_list"
    ORDERED_LIST = "ordered_list"
    LIST_ITEM = "list_item"
    LINK = "link"
    TEXT = "text"
    TABLE = "table"
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"
    IMAGE = "image"
    RULE = "rule"


TAG_KINDS: dict[str, NodeKind] = {
    "p": NodeKind.PARAGRAPH,
    "div": NodeKind.PARAGRAPH,
    "br": NodeKind.LINE_BREAK,
    "b": NodeKind.BOLD,
    "strong": NodeKind.BOLD,
    "i": NodeKind.ITALIC,
    "em": NodeKind.ITALIC,
    "u": NodeKind.UNDERLINE,
    "ins": NodeKind.UNDERLINE,
    "h1": NodeKind.HEADING,
    "h2": NodeKind.HEADING,
    "h3": NodeKind.HEADING,
    "h4": NodeKind.HEADING,
    "h5": NodeKind.HEADING,
    "h6": NodeKind.HEADING,
    "ul": NodeKind.UNORDERED_LIST,
    "ol": NodeKind.ORDERED_LIST,
    "li": NodeKind.LIST_ITEM,
    "a": NodeKind.LINK,
    "table": NodeKind.TABLE,
    "tr": NodeKind.TABLE_ROW,
    "td": NodeKind.TABLE_CELL,
    "th": NodeKind.TABLE_CELL,
    "img": NodeKind.IMAGE,
    "hr": NodeKind.RULE,
}

VOID_KINDS = frozenset({NodeKind.LINE_BREAK, NodeKind.IMAGE, NodeKind.RULE})

# Tags whose content is dropped along with the tags themselves
DISCARDED_TAGS = frozenset({"script", "style"})

BLOCK_KINDS = frozenset(
    {
        NodeKind.PARAGRAPH,
        NodeKind.HEADING,
        NodeKind.UNORDERED_LIST,
        NodeKind.ORDERED_LIST,
        NodeKind.TABLE,
        NodeKind.RULE,
    }
)

# kind being opened -> (kinds it implicitly closes, kinds that stop the search)
_IMPLIED_END: dict[NodeKind, tuple[frozenset[NodeKind], frozenset[NodeKind]]] = {
    NodeKind.LIST_ITEM: (
        frozenset({NodeKind.LIST_ITEM}),
        frozenset({NodeKind.UNORDERED_LIST, NodeKind.ORDERED_LIST, NodeKind.TABLE_CELL}),
    ),
    NodeKind.TABLE_ROW: (
        frozenset({NodeKind.TABLE_ROW}),
        frozenset({NodeKind.TABLE}),
    ),
    NodeKind.TABLE_CELL: (
        frozenset({NodeKind.TABLE_CELL}),
        frozenset({NodeKind.TABLE_ROW, NodeKind.TABLE}),
    ),
}

# Opening a block closes an open <p>, unless a container sits in between
_P_SCOPE_STOP = frozenset({NodeKind.LIST_ITEM, NodeKind.TABLE_CELL, NodeKind.TABLE})

_INTEGER_RE = re.compile(r"-?[0-9]{1,9}")


@dataclass
class Node:
    """A node in the document tree."""

    kind: NodeKind
    tag: str = ""
    children: list[Node] = field(default_factory=list)
    text: str = ""
    level: int = 0
    href: str | None = None
    start: int = 1
    header: bool = False

    @property
    def is_leaf(self) -> bool:
        return self.kind is NodeKind.TEXT

    def add_child(self, child: Node) -> Node:
        """Add a child node and return it for chaining."""
        if self.kind is NodeKind.TEXT:
            raise InternalInvariantError(f"text leaf cannot have children (adding {child.kind.value})")
        self.children.append(child)
        return child

    def depth_first(self) -> Iterator[Node]:
        """Traverse tree depth-first, yielding self then children."""
        yield self
        for child in self.children:
            yield from child.depth_first()

    def text_content(self) -> str:
        """Concatenated text of all text leaves below this node."""
        return "".join(n.text for n in self.depth_first() if n.kind is NodeKind.TEXT)


def _node_for(tag: TagOpen, kind: NodeKind) -> Node:
    node = Node(kind=kind, tag=tag.name)
    if kind is NodeKind.HEADING:
        node.level = int(tag.name[1])
    elif kind is NodeKind.LINK:
        node.href = tag.get("href")
    elif kind is NodeKind.ORDERED_LIST:
        start = (tag.get("start") or "").strip()
        if _INTEGER_RE.fullmatch(start):
            node.start = int(start)
    elif kind is NodeKind.TABLE_CELL:
        node.header = tag.name == "th"
    elif kind is NodeKind.IMAGE:
        node.text = tag.get("alt") or ""
    return node


class TreeBuilder:
    """Builds one document tree from a token stream."""

    def __init__(self) -> None:
        self.root = Node(kind=NodeKind.ROOT)
        self._stack: list[Node] = [self.root]
        self._discard: list[str] = []

    @property
    def current(self) -> Node:
        return self._stack[-1]

    def feed(self, token: Token) -> None:
        if self._discard:
            # Inside <script>/<style>: wait for the matching close tag
            if isinstance(token, TagClose) and token.name == self._discard[-1]:
                self._discard.pop()
            return

        if isinstance(token, Text | EntityRef):
            if token.text:
                self.current.add_child(Node(kind=NodeKind.TEXT, text=token.text))
        elif isinstance(token, TagOpen):
            self._open(token)
        elif isinstance(token, TagClose):
            self._close(token.name)
        else:
            raise InternalInvariantError(f"unexpected token {token!r}")

    def finish(self) -> Node:
        """Close everything still open and return the root."""
        if len(self._stack) > 1:
            logger.debug("Closing %d unclosed element(s) at end of input", len(self._stack) - 1)
        del self._stack[1:]
        return self.root

    # -- tag handling -------------------------------------------------------

    def _open(self, tag: TagOpen) -> None:
        if tag.name in DISCARDED_TAGS:
            if not tag.self_closing:
                self._discard.append(tag.name)
            return

        kind = TAG_KINDS.get(tag.name)
        if kind is None:
            logger.debug("Unwrapping unknown tag <%s>", tag.name)
            return

        self._close_implied(kind)

        node = _node_for(tag, kind)
        if kind in VOID_KINDS:
            self.current.add_child(node)
            return

        if len(self._stack) > MAX_DEPTH:
            logger.debug("Nesting depth cap reached; unwrapping <%s>", tag.name)
            return

        self.current.add_child(node)
        self._stack.append(node)

    def _close(self, name: str) -> None:
        if name == "br":
            # </br> is treated as <br>, as browsers do
            self.current.add_child(Node(kind=NodeKind.LINE_BREAK, tag="br"))
            return

        for i in range(len(self._stack) - 1, 0, -1):
            if self._stack[i].tag == name:
                if i < len(self._stack) - 1:
                    logger.debug(
                        "</%s> implicitly closes %s",
                        name,
                        ", ".join(f"<{n.tag}>" for n in self._stack[i + 1 :]),
                    )
                del self._stack[i:]
                return
        # No matching open element: ignore the stray close tag

    def _close_implied(self, kind: NodeKind) -> None:
        if kind in BLOCK_KINDS:
            self._pop_through(frozenset({NodeKind.PARAGRAPH}), _P_SCOPE_STOP, tag="p")
        implied = _IMPLIED_END.get(kind)
        if implied is not None:
            closes, stops = implied
            self._pop_through(closes, stops)

    def _pop_through(
        self,
        closes: frozenset[NodeKind],
        stops: frozenset[NodeKind],
        tag: str | None = None,
    ) -> None:
        for i in range(len(self._stack) - 1, 0, -1):
            node = self._stack[i]
            if node.kind in closes and (tag is None or node.tag == tag):
                logger.debug("<%s> implicitly closed", node.tag)
                del self._stack[i:]
                return
            if node.kind in stops:
                return


def build_tree(tokens: Iterable[Token]) -> Node:
    """Build a document tree from *tokens*."""
    builder = TreeBuilder()
    for token in tokens:
        builder.feed(token)
    return builder.finish()


def parse(markup: str) -> Node:
    """Tokenize and build the tree for *markup*."""
    return build_tree(tokenize(markup))
