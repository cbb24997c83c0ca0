"""Analyzer-facing contract: edit payloads, issue-block responses, dismissal keys.

The analyzer reports offsets against ``extract_plain_text(markup)``. Its
output reaches this package either as structured edits
(``{"start", "end", "replacement", "originalFragment"?, "confidence"?}``)
or as a text response made of ``ISSUE_START`` blocks::

    ISSUE_START
    Type: spelling
    Message: Misspelled word
    OriginalFragment: "wrold"
    SuggestedCorrection: "world"
    Explanation: "wrold" is a common typo for "world".
    Confidence: 0.95

Both are turned into ``Patch`` objects for ``apply_patches``.
"""

from __future__ import annotations

import math
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from markpatch.types import Patch

DEFAULT_CONFIDENCE = 0.8
DEFAULT_CONTEXT_CHARS = 20
DEFAULT_KEY_CONTEXT_CHARS = 10
SHORT_MESSAGE_LIMIT = 50

# A re-analysis is warranted when the length moves by more than this share...
DEFAULT_LENGTH_CHANGE_RATIO = 0.2
# ...or when more than this share of positions hold a different character.
DEFAULT_CHAR_CHANGE_RATIO = 0.3

ISSUE_BLOCK_MARKER = "ISSUE_START"

_START_KEYS = ("start", "plain_start", "plainStart")
_END_KEYS = ("end", "plain_end", "plainEnd")
_FRAGMENT_KEYS = ("originalFragment", "original_fragment", "originalText")


class EditPayloadError(ValueError):
    """Raised when an analyzer edit cannot be turned into a Patch."""


# ---------------------------------------------------------------------------
# Structured edits
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RejectedEdit:
    index: int
    reason: str
    payload: Mapping[str, Any]


def _first_present(payload: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in payload:
            return payload[key]
    return None


def _require_offset(payload: Mapping[str, Any], keys: tuple[str, ...]) -> int:
    value = _first_present(payload, keys)
    if value is None:
        raise EditPayloadError(f"missing offset field (one of {', '.join(keys)})")
    # bool is an int subclass; true/false offsets are a payload bug.
    if isinstance(value, bool) or not isinstance(value, int):
        raise EditPayloadError(f"offset must be an integer, got {value!r}")
    return value


def patch_from_edit(edit: Mapping[str, Any]) -> Patch:
    """Convert one analyzer edit payload into a Patch.

    Raises:
        EditPayloadError: If offsets or text fields are missing or mistyped,
            or the range violates the Patch preconditions.
    """
    if not isinstance(edit, Mapping):
        raise EditPayloadError(f"edit must be a mapping, got {type(edit).__name__}")
    start = _require_offset(edit, _START_KEYS)
    end = _require_offset(edit, _END_KEYS)

    replacement = edit.get("replacement")
    if not isinstance(replacement, str):
        raise EditPayloadError(f"replacement must be a string, got {replacement!r}")

    fragment = _first_present(edit, _FRAGMENT_KEYS)
    if fragment is not None and not isinstance(fragment, str):
        raise EditPayloadError(f"originalFragment must be a string, got {fragment!r}")

    confidence = edit.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        confidence = None

    try:
        return Patch(
            plain_start=start,
            plain_end=end,
            replacement=replacement,
            original_fragment=fragment,
            confidence=confidence,
        )
    except ValueError as exc:
        raise EditPayloadError(str(exc)) from exc


def patches_from_edits(
    edits: Iterable[Mapping[str, Any]],
) -> tuple[list[Patch], list[RejectedEdit]]:
    """Convert analyzer edits, setting malformed ones aside instead of failing."""
    patches: list[Patch] = []
    rejected: list[RejectedEdit] = []
    for index, edit in enumerate(edits):
        try:
            patches.append(patch_from_edit(edit))
        except EditPayloadError as exc:
            rejected.append(RejectedEdit(index=index, reason=str(exc), payload=edit))
    return patches, rejected


# ---------------------------------------------------------------------------
# Issue-block responses
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SuggestionContext:
    """Plain-text window around a suggestion, with the highlight inside it."""

    text: str
    highlight_start: int
    highlight_end: int


@dataclass(frozen=True, slots=True)
class Suggestion:
    suggestion_id: str
    category: str
    message: str
    short_message: str
    original_fragment: str
    replacement: str
    plain_start: int
    plain_end: int
    context: SuggestionContext
    confidence: float = DEFAULT_CONFIDENCE

    def to_patch(self) -> Patch:
        return Patch(
            plain_start=self.plain_start,
            plain_end=self.plain_end,
            replacement=self.replacement,
            original_fragment=self.original_fragment,
            confidence=self.confidence,
        )


def _unquote(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def _parse_confidence(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_CONFIDENCE
    if not value or math.isnan(value):
        return DEFAULT_CONFIDENCE
    return value


def _shorten(message: str) -> str:
    if len(message) > SHORT_MESSAGE_LIMIT:
        return message[:SHORT_MESSAGE_LIMIT - 3] + "..."
    return message


def _parse_block(block: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    for line in block.splitlines():
        line = line.strip()
        if not line:
            continue
        label, sep, value = line.partition(":")
        if sep:
            fields[label.strip()] = value.strip()
    return fields


def parse_issue_blocks(
    response: str | None,
    plain_text: str,
    *,
    context_chars: int = DEFAULT_CONTEXT_CHARS,
) -> list[Suggestion]:
    """Parse an ``ISSUE_START`` analyzer response into located suggestions.

    A block is dropped when it lacks a message, fragment or correction, when
    the correction equals the fragment, or when the fragment does not occur
    in *plain_text*. A fragment is located at its first occurrence.

    Args:
        response: Raw analyzer response text (None is treated as empty).
        plain_text: The exact text the analyzer was given.
        context_chars: Characters of context kept on each side.

    Returns:
        Suggestions in response order.
    """
    if not response:
        return []

    suggestions: list[Suggestion] = []
    blocks = response.split(ISSUE_BLOCK_MARKER)[1:]
    for number, block in enumerate(blocks, start=1):
        fields = _parse_block(block)
        category = fields.get("Type", "grammar").lower() or "grammar"
        message = fields.get("Message", "")
        fragment = _unquote(fields.get("OriginalFragment", ""))
        correction = _unquote(fields.get("SuggestedCorrection", ""))
        explanation = fields.get("Explanation", "")
        confidence = _parse_confidence(fields.get("Confidence", ""))

        if not (message and fragment and correction) or fragment == correction:
            continue
        start = plain_text.find(fragment)
        if start < 0:
            continue
        end = start + len(fragment)

        window_start = max(0, start - context_chars)
        window_end = min(len(plain_text), end + context_chars)
        suggestions.append(Suggestion(
            suggestion_id=f"issue-{number}",
            category=category,
            message=explanation or message,
            short_message=_shorten(message),
            original_fragment=fragment,
            replacement=correction,
            plain_start=start,
            plain_end=end,
            context=SuggestionContext(
                text=plain_text[window_start:window_end],
                highlight_start=start - window_start,
                highlight_end=end - window_start,
            ),
            confidence=confidence,
        ))
    return suggestions


# ---------------------------------------------------------------------------
# Dismissal and re-analysis
# ---------------------------------------------------------------------------


def suggestion_key(
    suggestion: Suggestion,
    plain_text: str,
    *,
    context_chars: int = DEFAULT_KEY_CONTEXT_CHARS,
) -> str:
    """Stable key identifying a suggestion by category, position and context.

    Used to remember dismissed suggestions across re-analysis of the same text.
    """
    window_start = max(0, suggestion.plain_start - context_chars)
    window_end = min(len(plain_text), suggestion.plain_end + context_chars)
    length = suggestion.plain_end - suggestion.plain_start
    context = plain_text[window_start:window_end]
    return f"{suggestion.category}-{suggestion.plain_start}-{length}-{context}"


def filter_dismissed(
    suggestions: Iterable[Suggestion],
    plain_text: str,
    dismissed: Collection[str],
) -> list[Suggestion]:
    return [s for s in suggestions if suggestion_key(s, plain_text) not in dismissed]


def has_significant_text_change(
    old_text: str,
    new_text: str,
    *,
    length_ratio: float = DEFAULT_LENGTH_CHANGE_RATIO,
    char_ratio: float = DEFAULT_CHAR_CHANGE_RATIO,
) -> bool:
    """Decide whether *new_text* differs enough from *old_text* to re-analyze.

    Compares length first, then the share of positions (aligned from the
    start) holding a different character.
    """
    max_length = max(len(old_text), len(new_text))
    if abs(len(old_text) - len(new_text)) > max_length * length_ratio:
        return True
    if max_length == 0:
        return False
    differences = sum(
        1
        for i in range(max_length)
        if i >= len(old_text) or i >= len(new_text) or old_text[i] != new_text[i]
    )
    return differences / max_length > char_ratio
