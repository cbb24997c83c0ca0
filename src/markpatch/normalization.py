"""Markup to plain-text projection with a character-level correspondence.

This module is the single normalization routine of the package. Text handed
to the analyzer (``extract_plain_text``) and the correspondence used to land
patches (``project_markup``) come out of the same scan, so analyzer offsets
and markup offsets can never disagree about whitespace or entities.

Rules, applied in one left-to-right pass:

- Tag content (``<`` through the next ``>``) emits nothing. An unterminated
  ``<`` turns the remainder of the document into tag content.
- Entity references decode through ``ENTITY_TABLE``. Any other reference of
  the form ``&name;`` decodes to a single space. An ``&`` that does not start
  a reference is literal text.
- Runs of whitespace (after decoding, per ``str.isspace``) collapse to one
  space; leading and trailing whitespace is dropped.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Final

from markpatch.types import CorrespondenceEntry, MarkupProjection

ENTITY_TABLE: Final = MappingProxyType({
    "&nbsp;": " ",
    "&#160;": " ",
    "&amp;": "&",
    "&#38;": "&",
    "&lt;": "<",
    "&#60;": "<",
    "&gt;": ">",
    "&#62;": ">",
    "&quot;": '"',
    "&#34;": '"',
    "&#39;": "'",
    "&apos;": "'",
})

# Longest reference, ``&`` and ``;`` included, still treated as an entity.
MAX_ENTITY_LENGTH: Final = 32

UNKNOWN_ENTITY_CHAR: Final = " "


class ScanState(Enum):
    """Lexical mode of the projection scanner."""

    TEXT = "text"
    TAG = "tag"
    ENTITY = "entity"


def _is_entity_name_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "#")


def decode_entity(reference: str) -> str:
    """Decode one complete ``&...;`` reference to its single character."""
    return ENTITY_TABLE.get(reference, UNKNOWN_ENTITY_CHAR)


class _Projector:
    """One-pass scanner building plain text and correspondence together."""

    __slots__ = ("markup", "state", "entity_start", "pending_space", "chars", "entries")

    def __init__(self, markup: str) -> None:
        self.markup = markup
        self.state = ScanState.TEXT
        self.entity_start = 0
        # Source span of the first character of an unflushed whitespace run.
        self.pending_space: tuple[int, int] | None = None
        self.chars: list[str] = []
        self.entries: list[CorrespondenceEntry] = []

    def run(self) -> MarkupProjection:
        pos = 0
        end = len(self.markup)
        while pos < end:
            pos = self._transition(pos)
        if self.state is ScanState.ENTITY:
            self._emit_literal(self.entity_start, end)
        # Trailing whitespace run is trimmed: pending_space is dropped here.
        self.entries.append(CorrespondenceEntry(len(self.chars), end, end))
        return MarkupProjection(
            markup=self.markup,
            plain_text="".join(self.chars),
            correspondence=tuple(self.entries),
        )

    def _transition(self, pos: int) -> int:
        """Consume ``markup[pos]`` and return the next position to scan.

        Returning ``pos`` unchanged re-scans the character in the new state.
        """
        ch = self.markup[pos]
        match self.state:
            case ScanState.TEXT:
                if ch == "<":
                    self.state = ScanState.TAG
                elif ch == "&":
                    self.state = ScanState.ENTITY
                    self.entity_start = pos
                else:
                    self._emit(ch, pos, pos + 1)
                return pos + 1
            case ScanState.TAG:
                if ch == ">":
                    self.state = ScanState.TEXT
                return pos + 1
            case ScanState.ENTITY:
                if ch == ";" and pos > self.entity_start + 1:
                    reference = self.markup[self.entity_start:pos + 1]
                    self._emit(decode_entity(reference), self.entity_start, pos + 1)
                    self.state = ScanState.TEXT
                    return pos + 1
                if _is_entity_name_char(ch) and pos - self.entity_start < MAX_ENTITY_LENGTH - 1:
                    return pos + 1
                self._emit_literal(self.entity_start, pos)
                self.state = ScanState.TEXT
                return pos

    def _emit_literal(self, start: int, end: int) -> None:
        for pos in range(start, end):
            self._emit(self.markup[pos], pos, pos + 1)

    def _emit(self, ch: str, start: int, end: int) -> None:
        if ch.isspace():
            if self.pending_space is None:
                self.pending_space = (start, end)
            return
        if self.pending_space is not None:
            if self.chars:
                self._append(" ", *self.pending_space)
            self.pending_space = None
        self._append(ch, start, end)

    def _append(self, ch: str, start: int, end: int) -> None:
        self.entries.append(CorrespondenceEntry(len(self.chars), start, end))
        self.chars.append(ch)


def project_markup(markup: str) -> MarkupProjection:
    """Project markup to plain text, keeping the position correspondence.

    Args:
        markup: Raw markup document.

    Returns:
        MarkupProjection with one correspondence entry per plain character
        plus a sentinel ``(len(plain_text), len(markup), len(markup))``.
    """
    return _Projector(markup or "").run()


def extract_plain_text(markup: str) -> str:
    """Return the normalized plain text an analyzer should receive."""
    return project_markup(markup).plain_text
