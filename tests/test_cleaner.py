"""Tests for the single-line caption cleaner."""

from __future__ import annotations

from transcriptor.core.cleaner import clean_line


class TestMarkup:
    """Tags and styling directives are removed."""

    def test_html_tags(self):
        assert clean_line("Hello <b>world</b>") == "Hello world"

    def test_vtt_karaoke_tags(self):
        line = "<00:00:01.000><c>Hello</c><00:00:01.500><c> world</c>"
        assert clean_line(line) == "Hello world"

    def test_class_tags(self):
        assert clean_line("<c.colorE5E5E5>grey</c> text") == "grey text"

    def test_ass_override_block(self):
        assert clean_line(r"{\an8}{\i1}Top line{\i0}") == "Top line"

    def test_cue_style_rule(self):
        assert clean_line("::cue(.yellow) { color: yellow; } Hi") == "Hi"


class TestAnnotations:
    """Non-speech annotations and speaker markers are removed."""

    def test_bracketed_annotations(self):
        assert clean_line("Hello [music] world [applause]") == "Hello world"

    def test_leading_speaker_marker(self):
        assert clean_line(">> Hello there") == "Hello there"

    def test_interleaved_speaker_marker(self):
        assert clean_line("Yes. >> No.") == "Yes. No."

    def test_annotation_only_line_is_empty(self):
        assert clean_line("[Music]") == ""


class TestWhitespace:
    """Whitespace is collapsed and trimmed."""

    def test_collapse_runs(self):
        assert clean_line("  a \t b   c  ") == "a b c"

    def test_empty_string(self):
        assert clean_line("") == ""

    def test_plain_text_unchanged(self):
        assert clean_line("Nothing to clean here.") == "Nothing to clean here."
