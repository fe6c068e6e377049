"""
Unit Tests for src.utils.cleanup.text_normalizer

Tests line-ending, bullet and whitespace normalization, splitting of
flattened hierarchy numbers, and idempotence of the full pipeline.
"""

import pytest

from src.utils.cleanup.text_normalizer import (
    normalize_bullets,
    normalize_line_endings,
    normalize_lines,
    normalize_text,
    normalize_whitespace,
    split_flattened_numbers,
)


class TestNormalizeLineEndings:
    """Tests for normalize_line_endings()"""

    def test_crlf_and_cr(self):
        """CRLF and CR become LF"""
        assert normalize_line_endings("a\r\nb\rc") == "a\nb\nc"

    def test_invisible_characters(self):
        """Zero-width and no-break spaces are removed or made plain"""
        assert normalize_line_endings("10.1\u00a0Physics\u200b") == "10.1 Physics"

    def test_empty(self):
        """Empty input is returned unchanged"""
        assert normalize_line_endings("") == ""


class TestNormalizeBullets:
    """Tests for normalize_bullets()"""

    @pytest.mark.parametrize("glyph", ["•", "◦", "▪", "➢", "\uf0b7", "*"])
    def test_glyphs_become_dash(self, glyph):
        """Bullet glyphs at line start become '- '"""
        assert normalize_bullets(f"{glyph} Knows units") == "- Knows units"

    def test_only_at_line_start(self):
        """Glyphs inside a line are left alone"""
        assert normalize_bullets("Speed • time") == "Speed • time"

    def test_does_not_merge_lines(self):
        """A bullet after a blank line keeps the blank line"""
        assert normalize_bullets("Intro\n\n• Item") == "Intro\n\n- Item"


class TestNormalizeWhitespace:
    """Tests for normalize_whitespace()"""

    def test_collapses_runs(self):
        """Space and tab runs collapse to one space"""
        assert normalize_whitespace("10.1   General\t\tPhysics") == "10.1 General Physics"

    def test_collapses_blank_lines(self):
        """Three or more newlines collapse to one blank line"""
        assert normalize_whitespace("a\n\n\n\nb") == "a\n\nb"

    def test_trims_lines(self):
        """Leading and trailing spaces are trimmed per line"""
        assert normalize_whitespace("  a  \n  b  ") == "a\nb"


class TestSplitFlattenedNumbers:
    """Tests for split_flattened_numbers()"""

    def test_splits_four_segment_number(self):
        """An outcome number glued to a subtopic line starts a new line"""
        text = "10.1.1 Units 10.1.1.1 Distinguish units"
        assert split_flattened_numbers(text) == "10.1.1 Units\n10.1.1.1 Distinguish units"

    def test_splits_multiple(self):
        """Several flattened numbers all split"""
        text = "10.1.1.1 Define units 10.1.1.2 State SI units 10.1.1.3 Convert"
        assert split_flattened_numbers(text).split("\n") == [
            "10.1.1.1 Define units",
            "10.1.1.2 State SI units",
            "10.1.1.3 Convert",
        ]

    def test_two_segment_needs_capitalised_caption(self):
        """Two-segment numbers split only before a capitalised caption"""
        assert split_flattened_numbers("End of topic 11.2 Waves") == "End of topic\n11.2 Waves"
        assert split_flattened_numbers("A speed of 3.14 m per s") == "A speed of 3.14 m per s"

    def test_respects_top_levels(self):
        """Numbers outside the valid top levels are not split"""
        text = "Section 3.1.2.1 Define units"
        assert split_flattened_numbers(text, {10, 11, 12}) == text
        assert split_flattened_numbers(text, {3}) == "Section\n3.1.2.1 Define units"

    def test_line_start_untouched(self):
        """A number already at line start is not changed"""
        assert split_flattened_numbers("10.1.1 Units") == "10.1.1 Units"


class TestNormalizeText:
    """Tests for normalize_text()"""

    def test_full_pipeline(self):
        """All rules are applied together"""
        raw = "10.1  General Physics\r\n\r\n\r\n\r\n• Knows units  "
        assert normalize_text(raw) == "10.1 General Physics\n\n- Knows units"

    def test_idempotent(self, obc_text):
        """Normalizing twice equals normalizing once"""
        messy = obc_text.replace("\n", "\r\n") + "\n\n\n\n  10.2.1 Vectors 10.2.1.1 Add vectors  "
        once = normalize_text(messy, {10, 11, 12})
        assert normalize_text(once, {10, 11, 12}) == once

    def test_wording_unchanged(self):
        """Normalization never changes words"""
        text = "10.1.1.1 Distinguish base and derived units"
        assert normalize_text(text) == text

    def test_empty(self):
        """Empty input yields empty string"""
        assert normalize_text("") == ""
        assert normalize_text(None) == ""


class TestNormalizeLines:
    """Tests for normalize_lines()"""

    def test_drops_blank_lines(self):
        """Returns trimmed non-empty lines in order"""
        assert normalize_lines("  10.1  General\n\n\n  • Item ") == ["10.1 General", "- Item"]
