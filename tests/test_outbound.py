"""Tests for outbound text processing."""

from tinyclaw.communication.outbound import collapse_blank_lines, extract_media_refs

REF = "media://3f2c1a9e-8b7d-4c6e-9f0a-1b2c3d4e5f60"


class TestExtractMediaRefs:

    def test_no_media(self):
        assert extract_media_refs("plain answer") == ("plain answer", [])

    def test_empty(self):
        assert extract_media_refs("") == ("", [])

    def test_trailing_media_line(self):
        text, refs = extract_media_refs(f"Here is the chart.\n\nMEDIA: {REF}")
        assert text == "Here is the chart."
        assert refs == [REF]

    def test_media_only(self):
        text, refs = extract_media_refs(f"MEDIA: {REF}")
        assert text == ""
        assert refs == [REF]

    def test_multiple_in_order(self):
        other = "media://aaaa-bbbb"
        text, refs = extract_media_refs(f"A\nMEDIA: {REF}\nB\nMEDIA: {other}\n")
        assert refs == [REF, other]
        assert text == "A\nB"

    def test_inline_mention_not_extracted(self):
        """Only whole MEDIA: lines count, not mentions inside a sentence."""
        source = f"The ref MEDIA: {REF} is mentioned inline."
        assert extract_media_refs(source) == (source, [])

    def test_non_media_scheme_ignored(self):
        source = "MEDIA: /tmp/file.png"
        assert extract_media_refs(source) == (source, [])


class TestCollapseBlankLines:

    def test_collapses_runs(self):
        assert collapse_blank_lines("a\n\n\n\nb") == "a\n\nb"

    def test_trims(self):
        assert collapse_blank_lines("\n\n a \n") == "a"

    def test_empty(self):
        assert collapse_blank_lines("") == ""
