"""Apply plain-text patches to a markup document.

Single-patch application is a pure splice at the mapped markup span. Batch
application sorts patches right-to-left so that each splice only moves text
after every position a remaining patch still has to resolve; one pass over
the correspondence per patch is enough.
"""

from __future__ import annotations

from collections.abc import Iterable

from markpatch.mapping import range_in_projection
from markpatch.normalization import project_markup
from markpatch.types import (
    BatchResult,
    MarkupProjection,
    Patch,
    PatchOutcome,
    PatchResult,
)


def _resolve_span(
    projection: MarkupProjection,
    plain_start: int,
    plain_end: int,
) -> tuple[int, int]:
    markup_start, markup_end = range_in_projection(projection, plain_start, plain_end)
    plain_len = len(projection.plain_text)
    last = min(plain_end, plain_len) - 1
    if min(plain_start, plain_len) <= last:
        # Tags after the last replaced character (e.g. a closing </p>) stay in
        # place. Collapsed whitespace before the first tag is still replaced.
        last_end = projection.correspondence[last].markup_end
        cut = projection.markup.find("<", last_end, markup_end)
        if cut != -1:
            markup_end = cut
    return markup_start, markup_end


def resolve_patch_span(markup: str, plain_start: int, plain_end: int) -> tuple[int, int]:
    """Markup span replaced when patching ``[plain_start, plain_end)``.

    Same as ``map_range`` except that a non-empty range never ends on the far
    side of a tag that follows its last character: the end is pulled back to
    the first ``<`` between that character's source and the ``map_range``
    end. Without such a tag the ``map_range`` end is kept, so the unemitted
    tail of a collapsed whitespace run is replaced along with its space.
    """
    return _resolve_span(project_markup(markup), plain_start, plain_end)


def _splice(markup: str, span: tuple[int, int], replacement: str) -> str:
    markup_start, markup_end = span
    return markup[:markup_start] + replacement + markup[markup_end:]


def apply_patch(markup: str, plain_start: int, plain_end: int, replacement: str) -> str:
    """Replace the plain-text range ``[plain_start, plain_end)`` inside *markup*.

    *replacement* is inserted verbatim as markup; it is not escaped.

    Raises:
        ValueError: If an offset is negative or ``plain_start > plain_end``.
    """
    return _splice(markup, resolve_patch_span(markup, plain_start, plain_end), replacement)


def apply_patches(markup: str, patches: Iterable[Patch]) -> BatchResult:
    """Apply a list of patches computed against one snapshot of *markup*.

    Patches are applied in descending ``plain_start`` order (stable for
    ties). A patch with a non-empty ``original_fragment`` is skipped as stale
    when the fragment no longer occurs anywhere in the current plain text.
    The check is containment, not position: a fragment repeated elsewhere in
    the document still lets the patch through. A patch that leaves the
    markup unchanged is recorded as a no-op.

    Returns:
        BatchResult with the final markup and one PatchResult per input
        patch, in input order.
    """
    indexed = list(enumerate(patches))
    ordered = sorted(indexed, key=lambda item: item[1].plain_start, reverse=True)

    current = markup
    results: dict[int, PatchResult] = {}
    for index, patch in ordered:
        projection = project_markup(current)

        fragment = patch.original_fragment
        if fragment and fragment not in projection.plain_text:
            results[index] = PatchResult(
                index=index,
                patch=patch,
                outcome=PatchOutcome.SKIPPED_STALE,
                detail=f"original fragment {fragment!r} not found in current text",
            )
            continue

        span = _resolve_span(projection, patch.plain_start, patch.plain_end)
        updated = _splice(current, span, patch.replacement)
        if updated == current:
            results[index] = PatchResult(
                index=index,
                patch=patch,
                outcome=PatchOutcome.SKIPPED_NOOP,
                detail="patch left markup unchanged",
                markup_start=span[0],
                markup_end=span[1],
            )
            continue

        current = updated
        results[index] = PatchResult(
            index=index,
            patch=patch,
            outcome=PatchOutcome.APPLIED,
            detail=f"replaced markup [{span[0]}, {span[1]})",
            markup_start=span[0],
            markup_end=span[1],
        )

    ordered_results = tuple(results[index] for index, _ in indexed)
    applied = sum(1 for row in ordered_results if row.applied)
    return BatchResult(
        updated_markup=current,
        applied_count=applied,
        failed_count=len(ordered_results) - applied,
        results=ordered_results,
    )
