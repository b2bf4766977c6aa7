"""Render options shared by the resolver and layout stages."""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Any

from bbml.errors import LayoutConfigError

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(frozen=True)
class RenderOptions:
    """Presentation policy for lists, links, images and rules."""

    indent_width: int = 2
    bullets: tuple[str, ...] = ("•", "◦", "▪")
    ordered_marker: str = "{n}."
    link_references: bool = False
    image_placeholder: str = "[image: {alt}]"
    image_placeholder_no_alt: str = "[image]"
    rule_char: str = "─"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RenderOptions:
        """Build options from a mapping of snake_case or camelCase keys.

        Unknown keys are ignored so settings written by newer versions still
        load.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_RE.sub("_", key).lower()
            if name not in known:
                continue
            if name == "bullets" and isinstance(value, list):
                value = tuple(value)
            kwargs[name] = value
        options = cls(**kwargs)
        options.validate()
        return options

    def validate(self) -> None:
        """Raise :class:`LayoutConfigError` if any option is unusable."""
        if not isinstance(self.indent_width, int) or self.indent_width < 0:
            raise LayoutConfigError(
                f"indent_width must be a non-negative integer, got {self.indent_width!r}"
            )
        if not self.bullets or not all(isinstance(b, str) and b for b in self.bullets):
            raise LayoutConfigError(f"bullets must be non-empty strings, got {self.bullets!r}")
        if "{n}" not in self.ordered_marker:
            raise LayoutConfigError(
                f"ordered_marker must contain '{{n}}', got {self.ordered_marker!r}"
            )
        if len(self.rule_char) != 1:
            raise LayoutConfigError(f"rule_char must be a single character, got {self.rule_char!r}")

    def bullet_for_depth(self, depth: int) -> str:
        return self.bullets[(depth - 1) % len(self.bullets)]

    def ordered_for_number(self, n: int) -> str:
        return self.ordered_marker.replace("{n}", str(n))

    def image_text(self, alt: str) -> str:
        alt = alt.strip()
        if not alt:
            return self.image_placeholder_no_alt
        return self.image_placeholder.replace("{alt}", alt)


DEFAULT_OPTIONS = RenderOptions()
