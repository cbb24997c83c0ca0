"""Core types shared by projection, mapping and patch application.

All offsets are character offsets into Python strings. Plain offsets index
the normalized projection handed to the analyzer; markup offsets index the
raw markup document.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TypeAlias


@dataclass(frozen=True, slots=True)
class CorrespondenceEntry:
    """One emitted plain-text character and the markup span that produced it."""

    plain_offset: int
    markup_offset: int
    markup_end: int

    def __post_init__(self) -> None:
        if self.plain_offset < 0:
            raise ValueError(f"plain_offset must be >= 0, got {self.plain_offset}")
        if self.markup_offset < 0:
            raise ValueError(f"markup_offset must be >= 0, got {self.markup_offset}")
        if self.markup_end < self.markup_offset:
            raise ValueError(
                f"markup_end must be >= markup_offset, got "
                f"{self.markup_end} < {self.markup_offset}",
            )


PositionCorrespondence: TypeAlias = tuple[CorrespondenceEntry, ...]


@dataclass(frozen=True, slots=True)
class MarkupProjection:
    """Plain-text projection of a markup document plus its correspondence.

    ``correspondence`` holds one entry per plain character followed by a
    sentinel at ``(len(plain_text), len(markup), len(markup))``.
    """

    markup: str
    plain_text: str
    correspondence: PositionCorrespondence

    def __post_init__(self) -> None:
        if len(self.correspondence) != len(self.plain_text) + 1:
            raise ValueError(
                "correspondence length must equal len(plain_text) + 1",
            )


@dataclass(frozen=True, slots=True)
class Patch:
    """A caller-declared edit expressed in plain-text coordinates.

    ``original_fragment`` is the text the caller believes occupies
    ``[plain_start, plain_end)``; it is only used for stale detection.
    ``confidence`` is the analyzer's score, carried through unvalidated.
    """

    plain_start: int
    plain_end: int
    replacement: str
    original_fragment: str | None = None
    confidence: float | None = None

    def __post_init__(self) -> None:
        if self.plain_start < 0:
            raise ValueError(f"plain_start must be >= 0, got {self.plain_start}")
        if self.plain_end < self.plain_start:
            raise ValueError(
                f"plain_end must be >= plain_start, got "
                f"{self.plain_end} < {self.plain_start}",
            )


class PatchOutcome(Enum):
    """Terminal state of a patch after batch application."""

    APPLIED = "applied"
    SKIPPED_STALE = "skipped_stale"
    SKIPPED_NOOP = "skipped_noop"


@dataclass(frozen=True, slots=True)
class PatchResult:
    """Outcome of one patch within a batch.

    ``index`` is the patch's position in the caller's input list. The markup
    span is None when the patch was rejected before mapping.
    """

    index: int
    patch: Patch
    outcome: PatchOutcome
    detail: str
    markup_start: int | None = None
    markup_end: int | None = None

    @property
    def applied(self) -> bool:
        return self.outcome is PatchOutcome.APPLIED


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Updated markup plus per-patch outcomes, in input order."""

    updated_markup: str
    applied_count: int
    failed_count: int
    results: tuple[PatchResult, ...]

    def __post_init__(self) -> None:
        if self.applied_count + self.failed_count != len(self.results):
            raise ValueError("applied_count + failed_count must equal len(results)")

    def summary(self) -> dict[str, int]:
        return {
            "applied_count": self.applied_count,
            "failed_count": self.failed_count,
        }


def patch_to_dict(patch: Patch) -> dict[str, object]:
    return {
        "plain_start": patch.plain_start,
        "plain_end": patch.plain_end,
        "replacement": patch.replacement,
        "original_fragment": patch.original_fragment,
        "confidence": patch.confidence,
    }


def batch_result_to_dict(result: BatchResult) -> dict[str, object]:
    """Serialize a batch result for deterministic reports."""

    return {
        "applied_count": result.applied_count,
        "failed_count": result.failed_count,
        "results": [
            {
                "index": row.index,
                "outcome": row.outcome.value,
                "detail": row.detail,
                "markup_start": row.markup_start,
                "markup_end": row.markup_end,
                "patch": patch_to_dict(row.patch),
            }
            for row in result.results
        ],
    }
