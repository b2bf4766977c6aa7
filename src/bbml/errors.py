"""Exceptions raised by the rendering pipeline.

Malformed markup is never an error; it is recovered by the tokenizer and tree
builder.  Only bad configuration and internal defects surface as exceptions.
"""

from __future__ import annotations


class BbmlError(Exception):
    """Base class for all bbml errors."""


class LayoutConfigError(BbmlError, ValueError):
    """A layout width or render option is out of range."""


class InternalInvariantError(BbmlError, RuntimeError):
    """A pipeline invariant was violated; indicates a bug, not bad input."""
