"""Tests for bbml.utils -- width measurement, column slicing and word splitting."""

from __future__ import annotations

from bbml.utils import (
    is_blank,
    is_whitespace_char,
    max_grapheme_width,
    split_words,
    strip_ansi,
    strip_control_chars,
    take_columns,
    text_width,
    visible_width,
)

# ---------------------------------------------------------------------------
# text_width / visible_width
# ---------------------------------------------------------------------------


class TestTextWidth:
    """Terminal width of plain text."""

    def test_ascii_width_is_length(self) -> None:
        assert text_width("hello") == 5

    def test_empty_string_is_zero(self) -> None:
        assert text_width("") == 0

    def test_cjk_characters_are_double_width(self) -> None:
        assert text_width("日本") == 4

    def test_combining_mark_adds_no_width(self) -> None:
        assert text_width("e\u0301") == 1

    def test_nbsp_is_single_width(self) -> None:
        assert text_width("a\u00a0b") == 3

    def test_repeated_calls_agree(self) -> None:
        assert text_width("日本語") == text_width("日本語") == 6


class TestVisibleWidth:
    """Width after ANSI sequences are stripped."""

    def test_sgr_codes_are_ignored(self) -> None:
        assert visible_width("\x1b[1mhi\x1b[0m") == 2

    def test_osc8_hyperlink_is_ignored(self) -> None:
        text = "\x1b]8;;https://example.com\x07link\x1b]8;;\x07"
        assert visible_width(text) == 4

    def test_strip_ansi_leaves_text(self) -> None:
        assert strip_ansi("\x1b[3m\x1b[4mab\x1b[0m") == "ab"


# ---------------------------------------------------------------------------
# Column slicing
# ---------------------------------------------------------------------------


class TestTakeColumns:
    """Cutting text at a column boundary."""

    def test_ascii_cut(self) -> None:
        assert take_columns("abcdef", 4) == ("abcd", "ef")

    def test_whole_text_fits(self) -> None:
        assert take_columns("abc", 10) == ("abc", "")

    def test_zero_columns_takes_nothing(self) -> None:
        assert take_columns("abc", 0) == ("", "abc")

    def test_wide_grapheme_is_not_split(self) -> None:
        assert take_columns("日本語", 3) == ("日", "本語")

    def test_wide_grapheme_wider_than_limit(self) -> None:
        assert take_columns("日", 1) == ("", "日")

    def test_combining_sequence_stays_together(self) -> None:
        head, tail = take_columns("e\u0301x", 1)
        assert head == "e\u0301"
        assert tail == "x"


class TestMaxGraphemeWidth:
    def test_ascii(self) -> None:
        assert max_grapheme_width("abc") == 1

    def test_mixed(self) -> None:
        assert max_grapheme_width("a日b") == 2

    def test_empty(self) -> None:
        assert max_grapheme_width("") == 0


# ---------------------------------------------------------------------------
# Words and whitespace
# ---------------------------------------------------------------------------


class TestSplitWords:
    """Splitting into alternating word and whitespace parts."""

    def test_single_word(self) -> None:
        assert split_words("hello") == ["hello"]

    def test_whitespace_runs_are_kept(self) -> None:
        assert split_words("a  b\tc") == ["a", "  ", "b", "\t", "c"]

    def test_leading_and_trailing_whitespace(self) -> None:
        assert split_words(" a ") == [" ", "a", " "]

    def test_newlines_are_whitespace(self) -> None:
        assert split_words("a\nb") == ["a", "\n", "b"]

    def test_nbsp_does_not_split(self) -> None:
        assert split_words("a\u00a0b") == ["a\u00a0b"]

    def test_empty_string(self) -> None:
        assert split_words("") == []


class TestCharacterClassification:
    """Whitespace and blank checks."""

    def test_space_is_whitespace(self) -> None:
        assert is_whitespace_char(" ") is True

    def test_tab_is_whitespace(self) -> None:
        assert is_whitespace_char("\t") is True

    def test_newline_is_whitespace(self) -> None:
        assert is_whitespace_char("\n") is True

    def test_nbsp_is_not_whitespace(self) -> None:
        assert is_whitespace_char("\u00a0") is False

    def test_letter_is_not_whitespace(self) -> None:
        assert is_whitespace_char("a") is False

    def test_blank_text(self) -> None:
        assert is_blank(" \n\t") is True
        assert is_blank("") is True

    def test_nbsp_is_not_blank(self) -> None:
        assert is_blank("\u00a0") is False


class TestStripControlChars:
    def test_escape_and_bell_removed(self) -> None:
        assert strip_control_chars("a\x1b[31mb\x07") == "a[31mb"

    def test_whitespace_kept(self) -> None:
        assert strip_control_chars("a\tb\nc") == "a\tb\nc"

    def test_c1_controls_removed(self) -> None:
        assert strip_control_chars("a\x9bb") == "ab"
