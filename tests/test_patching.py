"""Tests for markpatch.patching (single and batch application)."""
import pytest

from markpatch.normalization import extract_plain_text
from markpatch.patching import apply_patch, apply_patches, resolve_patch_span
from markpatch.types import Patch, PatchOutcome, batch_result_to_dict


class TestApplyPatch:
    def test_single_replacement_keeps_tags(self) -> None:
        markup = "<p>Hello wrold</p>"
        assert extract_plain_text(markup) == "Hello wrold"
        updated = apply_patch(markup, 6, 11, "world")
        assert updated == "<p>Hello world</p>"
        assert extract_plain_text(updated) == "Hello world"

    def test_span_stops_before_closing_tag(self) -> None:
        assert resolve_patch_span("<p>Hello wrold</p>", 6, 11) == (9, 14)

    def test_inline_tag_around_target(self) -> None:
        markup = "<p>Hello <b>wrold</b> again</p>"
        assert apply_patch(markup, 6, 11, "world") == "<p>Hello <b>world</b> again</p>"

    def test_entity_replaced_as_a_whole(self) -> None:
        markup = "A &amp; B"
        assert resolve_patch_span(markup, 2, 3) == (2, 7)
        assert apply_patch(markup, 2, 3, "and") == "A and B"

    def test_insertion(self) -> None:
        assert apply_patch("<p>Hello world</p>", 5, 5, ",") == "<p>Hello, world</p>"

    def test_deletion(self) -> None:
        markup = "<p>Hello big world</p>"
        updated = apply_patch(markup, 5, 9, "")
        assert updated == "<p>Hello world</p>"

    def test_replacement_is_not_escaped(self) -> None:
        assert apply_patch("<p>a b</p>", 2, 3, "<i>c</i>") == "<p>a <i>c</i></p>"

    def test_collapsed_whitespace_range(self) -> None:
        markup = "one   two"
        # Plain "one two": the single space stands for the whole run.
        assert resolve_patch_span(markup, 3, 4) == (3, 6)
        updated = apply_patch(markup, 3, 4, "-")
        assert updated == "one-two"
        assert extract_plain_text(updated) == "one-two"

    def test_delete_collapsed_whitespace(self) -> None:
        updated = apply_patch("a  b", 1, 2, "")
        assert updated == "ab"
        assert extract_plain_text(updated) == "ab"

    def test_delete_collapsed_whitespace_applies_in_batch(self) -> None:
        result = apply_patches("a  b", [Patch(1, 2, "", " ")])
        assert result.updated_markup == "ab"
        assert result.results[0].outcome is PatchOutcome.APPLIED

    def test_whitespace_before_closing_tag(self) -> None:
        markup = "<p>a  </p>b"
        assert extract_plain_text(markup) == "a b"
        assert resolve_patch_span(markup, 1, 2) == (4, 6)
        updated = apply_patch(markup, 1, 2, "")
        assert updated == "<p>a</p>b"
        assert extract_plain_text(updated) == "ab"

    def test_inverted_range_raises(self) -> None:
        with pytest.raises(ValueError):
            apply_patch("<p>Hello</p>", 4, 2, "x")

    def test_pure(self) -> None:
        markup = "<p>Hello wrold</p>"
        apply_patch(markup, 6, 11, "world")
        assert markup == "<p>Hello wrold</p>"


class TestApplyPatchesBasics:
    def test_empty_patch_list_is_noop(self) -> None:
        markup = "<p>Hello <b>world</b></p>"
        result = apply_patches(markup, [])
        assert result.updated_markup == markup
        assert result.applied_count == 0
        assert result.failed_count == 0
        assert result.results == ()

    def test_single_patch(self) -> None:
        result = apply_patches("<p>Hello wrold</p>", [Patch(6, 11, "world", "wrold")])
        assert result.updated_markup == "<p>Hello world</p>"
        assert result.summary() == {"applied_count": 1, "failed_count": 0}
        row = result.results[0]
        assert row.outcome is PatchOutcome.APPLIED
        assert (row.markup_start, row.markup_end) == (9, 14)

    def test_accepts_generator(self) -> None:
        patches = (p for p in [Patch(6, 11, "world")])
        result = apply_patches("<p>Hello wrold</p>", patches)
        assert result.applied_count == 1


class TestApplyPatchesOrdering:
    def test_declared_order_does_not_matter(self) -> None:
        markup = "<p>abcde fghij klmno pqrst</p>"
        first = Patch(0, 5, "ABCDE")
        second = Patch(10, 15, "J-KLM")
        forward = apply_patches(markup, [first, second])
        backward = apply_patches(markup, [second, first])
        assert forward.updated_markup == backward.updated_markup
        assert forward.applied_count == backward.applied_count == 2

    def test_length_changes_do_not_shift_other_patches(self) -> None:
        markup = "<p>Helol, my <em>freind</em> here</p>"
        patches = [
            Patch(0, 5, "Hello", "Helol"),
            Patch(10, 16, "friend", "freind"),
        ]
        expected = "<p>Hello, my <em>friend</em> here</p>"
        assert apply_patches(markup, patches).updated_markup == expected
        assert apply_patches(markup, patches[::-1]).updated_markup == expected

    def test_results_are_in_input_order(self) -> None:
        markup = "<p>Helol, my <em>freind</em> here</p>"
        patches = [Patch(0, 5, "Hello"), Patch(10, 16, "friend")]
        result = apply_patches(markup, patches)
        assert [row.index for row in result.results] == [0, 1]
        assert [row.patch for row in result.results] == patches
        # The rightmost patch was applied first, against the original markup.
        assert result.results[1].markup_start == 17


class TestApplyPatchesVerification:
    def test_stale_patch_is_skipped(self) -> None:
        markup = "<p>Hello wrold</p>"
        fix = Patch(6, 11, "world", "wrold")
        stale = Patch(0, 11, "Hi", "Hello wrold")
        result = apply_patches(markup, [stale, fix])
        assert result.updated_markup == "<p>Hello world</p>"
        assert result.applied_count == 1
        assert result.failed_count == 1
        assert result.results[0].outcome is PatchOutcome.SKIPPED_STALE
        assert result.results[0].markup_start is None
        assert result.results[1].outcome is PatchOutcome.APPLIED

    def test_fragment_checked_anywhere_not_at_position(self) -> None:
        # The second "the" is rewritten first, but the first "the" keeps the
        # fragment check satisfied, so the patch lands on the changed text.
        markup = "<p>the cat and the dog</p>"
        rewrite = Patch(13, 19, "x")
        targets_second_the = Patch(12, 15, "one", "the")
        result = apply_patches(markup, [targets_second_the, rewrite])
        assert result.applied_count == 2
        assert result.updated_markup == "<p>the cat and one</p>"

    def test_empty_fragment_is_not_checked(self) -> None:
        result = apply_patches("<p>Hello wrold</p>", [Patch(6, 11, "world", "")])
        assert result.applied_count == 1

    def test_noop_patch_counts_as_failed(self) -> None:
        markup = "<p>Hello world</p>"
        result = apply_patches(markup, [Patch(0, 5, "Hello"), Patch(3, 3, "")])
        assert result.updated_markup == markup
        assert result.applied_count == 0
        assert result.failed_count == 2
        assert {row.outcome for row in result.results} == {PatchOutcome.SKIPPED_NOOP}

    def test_batch_continues_after_failures(self) -> None:
        markup = "<p>Teh cat sat on teh mat</p>"
        patches = [
            Patch(0, 3, "The", "Teh"),
            Patch(4, 7, "cat", "cat"),
            Patch(15, 18, "the", "nonexistent"),
        ]
        result = apply_patches(markup, patches)
        assert result.updated_markup == "<p>The cat sat on teh mat</p>"
        assert [row.outcome for row in result.results] == [
            PatchOutcome.APPLIED,
            PatchOutcome.SKIPPED_NOOP,
            PatchOutcome.SKIPPED_STALE,
        ]


class TestBatchResultToDict:
    def test_serializes_outcomes(self) -> None:
        result = apply_patches(
            "<p>Hello wrold</p>",
            [Patch(6, 11, "world", "wrold"), Patch(0, 5, "Hi", "Howdy")],
        )
        payload = batch_result_to_dict(result)
        assert payload["applied_count"] == 1
        assert payload["failed_count"] == 1
        rows = payload["results"]
        assert isinstance(rows, list)
        assert rows[0]["outcome"] == "applied"
        assert rows[0]["patch"] == {
            "plain_start": 6,
            "plain_end": 11,
            "replacement": "world",
            "original_fragment": "wrold",
            "confidence": None,
        }
        assert rows[1]["outcome"] == "skipped_stale"
        assert rows[1]["markup_start"] is None
