"""Tests for the tokenizer."""

from __future__ import annotations

from bbml.tokenizer import EntityRef, TagClose, TagOpen, Text, Tokenizer, tokenize


def _tokens(markup: str) -> list:
    return list(tokenize(markup))


def _texts(markup: str) -> str:
    """Concatenated text of all text and entity tokens."""
    return "".join(t.text for t in tokenize(markup) if isinstance(t, Text | EntityRef))


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


class TestTags:
    """Open and close tags, names and attributes."""

    def test_simple_markup(self) -> None:
        assert _tokens("<b>Hi</b> there") == [
            TagOpen("b"),
            Text("Hi"),
            TagClose("b"),
            Text(" there"),
        ]

    def test_names_are_lower_cased(self) -> None:
        assert _tokens("<B></P>") == [TagOpen("b"), TagClose("p")]

    def test_self_closing(self) -> None:
        assert _tokens("<br/>") == [TagOpen("br", self_closing=True)]

    def test_self_closing_with_space(self) -> None:
        assert _tokens("<hr />") == [TagOpen("hr", self_closing=True)]

    def test_quoted_attribute(self) -> None:
        (tag,) = _tokens('<a href="https://example.com/x">')
        assert tag.get("href") == "https://example.com/x"

    def test_single_quoted_and_unquoted_attributes(self) -> None:
        (tag,) = _tokens("<ol start=3 type='a'>")
        assert tag.attrs == (("start", "3"), ("type", "a"))

    def test_attribute_without_value_is_empty(self) -> None:
        (tag,) = _tokens("<a href>")
        assert tag.attrs == (("href", ""),)

    def test_attribute_names_are_lower_cased(self) -> None:
        (tag,) = _tokens('<a HREF="x">')
        assert tag.get("href") == "x"

    def test_attribute_values_are_entity_decoded(self) -> None:
        (tag,) = _tokens('<a href="?a=1&amp;b=2">')
        assert tag.get("href") == "?a=1&b=2"

    def test_first_duplicate_attribute_wins(self) -> None:
        (tag,) = _tokens('<a href="1" href="2">')
        assert tag.get("href") == "1"

    def test_missing_attribute_returns_default(self) -> None:
        (tag,) = _tokens("<a>")
        assert tag.get("href") is None
        assert tag.get("href", "") == ""


# ---------------------------------------------------------------------------
# Malformed input
# ---------------------------------------------------------------------------


class TestMalformedInput:
    """Nothing raises; odd constructs degrade to text or are closed."""

    def test_unterminated_tag_closes_at_end(self) -> None:
        assert _tokens("x<a href='u'") == [Text("x"), TagOpen("a", (("href", "u"),))]

    def test_unterminated_quoted_value(self) -> None:
        assert _tokens('<a href="u') == [TagOpen("a", (("href", "u"),))]

    def test_lone_less_than_is_text(self) -> None:
        assert _texts("1 < 2") == "1 < 2"

    def test_less_than_before_digit_is_text(self) -> None:
        assert _texts("a<3") == "a<3"

    def test_close_without_name_is_text(self) -> None:
        assert _texts("a</ b") == "a</ b"

    def test_trailing_less_than(self) -> None:
        assert _texts("end<") == "end<"

    def test_stray_quotes_in_tag_are_skipped(self) -> None:
        (tag,) = _tokens('<a " href="x">')
        assert tag.get("href") == "x"

    def test_control_characters_are_stripped(self) -> None:
        assert _texts("a\x07b\x1b[2Jc") == "ab[2Jc"

    def test_unterminated_comment_drops_rest(self) -> None:
        assert _texts("a<!-- never closed") == "a"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class TestEntities:
    """Character references are decoded while scanning."""

    def test_named_entity(self) -> None:
        assert _tokens("&amp;") == [EntityRef("amp", "&")]

    def test_decimal_entity(self) -> None:
        assert _tokens("&#65;") == [EntityRef("#65", "A")]

    def test_hex_entity(self) -> None:
        assert _tokens("&#x41;") == [EntityRef("#x41", "A")]

    def test_nbsp(self) -> None:
        assert _tokens("&nbsp;") == [EntityRef("nbsp", "\u00a0")]

    def test_entity_without_semicolon(self) -> None:
        assert _texts("a &lt b") == "a < b"

    def test_unknown_entity_stays_literal(self) -> None:
        assert _tokens("&bogus;") == [Text("&bogus;")]

    def test_bare_ampersand_is_text(self) -> None:
        assert _texts("fish & chips") == "fish & chips"

    def test_entities_in_running_text(self) -> None:
        assert _texts("a &lt;b&gt; c") == "a <b> c"


# ---------------------------------------------------------------------------
# Comments, declarations and raw text
# ---------------------------------------------------------------------------


class TestSkippedConstructs:
    def test_comment_is_dropped(self) -> None:
        assert _tokens("a<!-- <b>x</b> -->b") == [Text("a"), Text("b")]

    def test_doctype_is_dropped(self) -> None:
        assert _tokens("<!DOCTYPE html>x") == [Text("x")]

    def test_processing_instruction_is_dropped(self) -> None:
        assert _tokens('<?xml version="1.0"?>x') == [Text("x")]

    def test_script_content_is_raw_text(self) -> None:
        assert _tokens("<script>if (a<b) x();</script>after") == [
            TagOpen("script"),
            Text("if (a<b) x();"),
            TagClose("script"),
            Text("after"),
        ]

    def test_unclosed_style_runs_to_end(self) -> None:
        assert _tokens("<style>p { }") == [TagOpen("style"), Text("p { }")]


# ---------------------------------------------------------------------------
# Laziness
# ---------------------------------------------------------------------------


class TestRestartable:
    """Iterating the same token stream twice restarts it."""

    def test_iterating_twice_gives_same_tokens(self) -> None:
        stream = tokenize("<p>a &amp; b</p>")
        assert list(stream) == list(stream)

    def test_tokenizer_is_lazy(self) -> None:
        it = iter(Tokenizer("<b>x</b>" * 1000))
        assert next(it) == TagOpen("b")
        assert next(it) == Text("x")

    def test_empty_markup(self) -> None:
        assert _tokens("") == []
