"""Resolve plain-text offsets to markup offsets.

The correspondence is rebuilt from the markup on every call; any edit to the
markup invalidates all downstream offsets, so nothing is cached.
"""

from __future__ import annotations

from markpatch.normalization import project_markup
from markpatch.types import MarkupProjection


def _check_range(plain_start: int, plain_end: int) -> None:
    if plain_start < 0 or plain_end < 0:
        raise ValueError(
            f"plain offsets must be >= 0, got [{plain_start}, {plain_end})",
        )
    if plain_start > plain_end:
        raise ValueError(
            f"plain_start must be <= plain_end, got {plain_start} > {plain_end}",
        )


def offset_in_projection(projection: MarkupProjection, plain_offset: int) -> int:
    """Markup offset of the first correspondence entry at or after *plain_offset*.

    Entries carry consecutive plain offsets, so the lookup is positional.
    Offsets past the end clamp to the sentinel, i.e. ``len(markup)``.
    """
    if plain_offset < 0:
        raise ValueError(f"plain_offset must be >= 0, got {plain_offset}")
    clamped = min(plain_offset, len(projection.plain_text))
    return projection.correspondence[clamped].markup_offset


def range_in_projection(
    projection: MarkupProjection,
    plain_start: int,
    plain_end: int,
) -> tuple[int, int]:
    _check_range(plain_start, plain_end)
    return (
        offset_in_projection(projection, plain_start),
        offset_in_projection(projection, plain_end),
    )


def map_offset(markup: str, plain_offset: int) -> int:
    """Map a single plain-text offset into *markup*."""
    return offset_in_projection(project_markup(markup), plain_offset)


def map_range(markup: str, plain_start: int, plain_end: int) -> tuple[int, int]:
    """Map the plain-text range ``[plain_start, plain_end)`` into *markup*.

    Each bound resolves to the markup offset of the first correspondence
    entry whose plain offset is at or after it. An end bound therefore lands
    on the next emitted character, past any tags or collapsed whitespace
    between the two. Bounds beyond the plain text clamp to its length.

    Args:
        markup: Raw markup document.
        plain_start: Inclusive start offset in the plain-text projection.
        plain_end: Exclusive end offset in the plain-text projection.

    Returns:
        ``(markup_start, markup_end)``.

    Raises:
        ValueError: If an offset is negative or ``plain_start > plain_end``.
    """
    return range_in_projection(project_markup(markup), plain_start, plain_end)
