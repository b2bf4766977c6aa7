"""Tests for ANSI rendering of laid-out documents."""

from __future__ import annotations

from bbml import render
from bbml.ansi import Theme, render_document, render_line, render_span, style_prefix
from bbml.document import Line, Span
from bbml.resolver import PLAIN, ResolvedStyle
from bbml.utils import strip_ansi, visible_width


def _raw_lines(markup: str, width: int = 80, theme: Theme | None = None) -> list[str]:
    return render_document(render(markup, width), theme)


class TestStylePrefix:
    """SGR codes chosen for each style."""

    def test_plain_has_no_codes(self) -> None:
        assert style_prefix(PLAIN) == ""

    def test_bold(self) -> None:
        assert style_prefix(ResolvedStyle(bold=True)) == "\x1b[1m"

    def test_italic_and_underline(self) -> None:
        assert style_prefix(ResolvedStyle(italic=True, underline=True)) == "\x1b[3m\x1b[4m"

    def test_top_level_heading_is_bold_and_underlined(self) -> None:
        assert style_prefix(ResolvedStyle(heading_level=1)) == "\x1b[1m\x1b[4m"

    def test_minor_heading_is_only_bold(self) -> None:
        assert style_prefix(ResolvedStyle(heading_level=5)) == "\x1b[1m"

    def test_heading_color_from_theme(self) -> None:
        theme = Theme(heading_color="\x1b[36m")
        assert style_prefix(ResolvedStyle(heading_level=3), theme).startswith("\x1b[36m")

    def test_link_color_from_theme(self) -> None:
        theme = Theme(link_color="\x1b[34m")
        assert style_prefix(ResolvedStyle(link_target="u"), theme) == "\x1b[34m\x1b[4m"

    def test_list_marker_is_plain(self) -> None:
        assert style_prefix(ResolvedStyle(list_depth=1, list_marker="•")) == ""


class TestRenderSpan:
    def test_plain_text_unchanged(self) -> None:
        assert render_span(Span("abc")) == "abc"

    def test_styled_text_is_reset(self) -> None:
        assert render_span(Span("abc", ResolvedStyle(bold=True))) == "\x1b[1mabc\x1b[0m"

    def test_link_gets_hyperlink(self) -> None:
        out = render_span(Span("site", ResolvedStyle(link_target="https://example.com")))
        assert out.startswith("\x1b]8;;https://example.com\x07")
        assert out.endswith("\x1b]8;;\x07")
        assert strip_ansi(out) == "site"

    def test_hyperlinks_can_be_disabled(self) -> None:
        out = render_span(Span("site", ResolvedStyle(link_target="u")), hyperlinks=False)
        assert "\x1b]8" not in out

    def test_control_characters_removed_from_target(self) -> None:
        out = render_span(Span("x", ResolvedStyle(link_target="a\x07b")))
        assert out.startswith("\x1b]8;;ab\x07")


class TestRenderDocument:
    """Whole documents keep their visible text and widths."""

    def test_visible_text_matches_layout(self) -> None:
        markup = "<h1>Title</h1><p>Some <b>bold</b> and <i>italic</i> text.</p>"
        doc = render(markup, 30)
        raw = render_document(doc)
        assert [strip_ansi(line) for line in raw] == doc.text_lines()

    def test_visible_width_within_layout_width(self) -> None:
        markup = "<ul><li>A <a href='https://example.com'>linked phrase</a> in a list</li></ul>"
        for line in _raw_lines(markup, 12):
            assert visible_width(line) <= 12

    def test_bold_scenario(self) -> None:
        (line,) = _raw_lines("<b>Hi</b> there")
        assert line == "\x1b[1mHi\x1b[0m there"

    def test_blank_line_renders_empty(self) -> None:
        assert render_line(Line()) == ""
        assert _raw_lines("<p>a</p><p>b</p>")[1] == ""

    def test_theme_applied(self) -> None:
        raw = _raw_lines("<h2>Head</h2>", theme=Theme(heading_color="\x1b[35m"))
        assert raw[0].startswith("\x1b[35m\x1b[1m\x1b[4m")
