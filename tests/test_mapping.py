"""Tests for markpatch.mapping (plain offsets -> markup offsets)."""
import pytest

from markpatch.mapping import map_offset, map_range
from markpatch.normalization import extract_plain_text


CONSISTENCY_DOCS = [
    "<p>Hello wrold</p>",
    "A &amp; B",
    "Hello   \n\n  world",
    "  <p> Tom &amp; <b>Jerry</b> </p>\n<p>AT&T  rocks&nbsp;!</p>  ",
    "<h1>Title</h1><p>Body &lt;tag&gt; &quot;quoted&quot; it&#39;s</p>",
    "fish &amp chips &copy; 2024 &;",
    "<ul><li>one</li>\n  <li>two &amp; three</li></ul>",
    "Hello <b world",
]


class TestMapRange:
    def test_entity_maps_to_full_reference(self) -> None:
        markup = "A &amp; B"
        start, end = map_range(markup, 2, 3)
        assert (start, end) == (2, 7)
        assert markup[start:end] == "&amp;"

    def test_end_uses_first_entry_at_or_after(self) -> None:
        # Past the last character the sentinel (len(markup)) is returned.
        assert map_range("<p>Hello wrold</p>", 6, 11) == (9, 18)

    def test_start_skips_leading_tags(self) -> None:
        assert map_range("<p><b>Hi</b></p>", 0, 1) == (6, 7)

    def test_end_lands_past_intervening_tag(self) -> None:
        # 'o' ends at 8; the next plain character (the space) sits after "</b>".
        markup = "<b>Hello</b> world"
        assert map_range(markup, 0, 5) == (3, 12)

    def test_clamps_past_end(self) -> None:
        assert map_range("<p>Hi</p>", 0, 99) == (3, 9)
        assert map_range("<p>Hi</p>", 50, 99) == (9, 9)

    def test_empty_range(self) -> None:
        assert map_range("Hello world", 5, 5) == (5, 5)

    def test_empty_document(self) -> None:
        assert map_range("", 0, 0) == (0, 0)
        assert map_range("", 0, 3) == (0, 0)

    def test_negative_offset_raises(self) -> None:
        with pytest.raises(ValueError):
            map_range("Hello", -1, 2)

    def test_inverted_range_raises(self) -> None:
        with pytest.raises(ValueError, match="plain_start must be <= plain_end"):
            map_range("Hello", 3, 2)


class TestMapOffset:
    def test_collapsed_whitespace(self) -> None:
        markup = "Hello   world"
        assert map_offset(markup, 5) == 5
        assert map_offset(markup, 6) == 8

    def test_past_end_is_markup_length(self) -> None:
        assert map_offset("<p>Hi</p>", 99) == 9

    def test_negative_raises(self) -> None:
        with pytest.raises(ValueError):
            map_offset("Hi", -1)


class TestOffsetConsistency:
    """Cutting markup at a mapped offset yields the matching plain prefix."""

    @pytest.mark.parametrize("markup", CONSISTENCY_DOCS)
    def test_prefix_extraction_matches(self, markup: str) -> None:
        plain = extract_plain_text(markup)
        for k in range(len(plain) + 1):
            _, cut = map_range(markup, 0, k)
            # A prefix ending in a collapsed space loses it to trimming.
            assert extract_plain_text(markup[:cut]) == plain[:k].rstrip(" ")

    @pytest.mark.parametrize("markup", CONSISTENCY_DOCS)
    def test_suffix_extraction_matches(self, markup: str) -> None:
        plain = extract_plain_text(markup)
        for k in range(len(plain) + 1):
            cut = map_offset(markup, k)
            assert extract_plain_text(markup[cut:]) == plain[k:].lstrip(" ")
