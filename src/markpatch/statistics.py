"""Document and analyzer-facing statistics.

Word and character counts are taken from ``extract_plain_text`` so they
describe exactly the text the analyzer was given.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from bs4 import BeautifulSoup

from markpatch.normalization import extract_plain_text

DEFAULT_WORDS_PER_MINUTE = 200
DEFAULT_QUALITY_FLOOR = 60
DEFAULT_QUALITY_PENALTY = 3

ISSUE_CATEGORIES: tuple[str, ...] = ("grammar", "spelling", "style")

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_BLANK_LINE_RE = re.compile(r"\n\s*\n")


@dataclass(frozen=True, slots=True)
class DocumentStats:
    word_count: int
    character_count: int
    character_count_no_spaces: int
    paragraph_count: int
    reading_time_minutes: int

    def as_dict(self) -> dict[str, int]:
        return {
            "word_count": self.word_count,
            "character_count": self.character_count,
            "character_count_no_spaces": self.character_count_no_spaces,
            "paragraph_count": self.paragraph_count,
            "reading_time_minutes": self.reading_time_minutes,
        }


@dataclass(frozen=True, slots=True)
class AnalysisStats:
    word_count: int
    sentence_count: int
    paragraph_count: int
    reading_time_minutes: int
    quality_score: int
    issue_count: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    def as_dict(self) -> dict[str, object]:
        return {
            "word_count": self.word_count,
            "sentence_count": self.sentence_count,
            "paragraph_count": self.paragraph_count,
            "reading_time_minutes": self.reading_time_minutes,
            "quality_score": self.quality_score,
            "issue_count": dict(sorted(self.issue_count.items())),
        }


def reading_time_minutes(
    word_count: int,
    *,
    words_per_minute: int = DEFAULT_WORDS_PER_MINUTE,
) -> int:
    """Whole minutes needed to read *word_count* words, rounded up."""
    if words_per_minute <= 0:
        raise ValueError(f"words_per_minute must be > 0, got {words_per_minute}")
    return math.ceil(word_count / words_per_minute)


def count_paragraphs(markup: str) -> int:
    """Count paragraphs as the larger of ``<p>`` elements and blank-line blocks.

    Never less than 1, even for an empty document.
    """
    if not markup:
        return 1
    soup = BeautifulSoup(markup, "html.parser")
    tag_count = len(soup.find_all("p"))
    block_count = len(_BLANK_LINE_RE.findall(markup)) + 1
    return max(1, tag_count, block_count)


def compute_document_stats(
    markup: str,
    *,
    words_per_minute: int = DEFAULT_WORDS_PER_MINUTE,
) -> DocumentStats:
    """Compute editor statistics for a markup document."""
    text = extract_plain_text(markup)
    words = text.split()
    return DocumentStats(
        word_count=len(words),
        character_count=len(text),
        character_count_no_spaces=sum(1 for ch in text if not ch.isspace()),
        paragraph_count=count_paragraphs(markup),
        reading_time_minutes=reading_time_minutes(
            len(words), words_per_minute=words_per_minute,
        ),
    )


def quality_score(
    issue_total: int,
    *,
    floor: int = DEFAULT_QUALITY_FLOOR,
    penalty: int = DEFAULT_QUALITY_PENALTY,
) -> int:
    """Score out of 100, losing *penalty* points per issue down to *floor*."""
    return max(floor, 100 - issue_total * penalty)


def compute_analysis_stats(
    plain_text: str,
    categories: Iterable[str] = (),
    *,
    words_per_minute: int = DEFAULT_WORDS_PER_MINUTE,
    floor: int = DEFAULT_QUALITY_FLOOR,
    penalty: int = DEFAULT_QUALITY_PENALTY,
    markup: str | None = None,
) -> AnalysisStats:
    """Summarize analyzed text and the categories of the issues found in it.

    Args:
        plain_text: The plain text that was sent to the analyzer.
        categories: One category string per reported issue.
        markup: The document the text was extracted from. The projection
            collapses newlines, so paragraphs are counted on the markup;
            without it a non-blank text counts as one paragraph.

    Returns:
        AnalysisStats. Blank text yields all-zero statistics.
    """
    counts = Counter({category: 0 for category in ISSUE_CATEGORIES})
    counts.update(categories)
    issue_total = sum(counts.values())

    if not plain_text.strip():
        return AnalysisStats(
            word_count=0,
            sentence_count=0,
            paragraph_count=0,
            reading_time_minutes=0,
            quality_score=0,
            issue_count=MappingProxyType({category: 0 for category in ISSUE_CATEGORIES}),
        )

    words = plain_text.split()
    sentences = [s for s in _SENTENCE_SPLIT_RE.split(plain_text) if s.strip()]
    return AnalysisStats(
        word_count=len(words),
        sentence_count=len(sentences),
        paragraph_count=count_paragraphs(markup) if markup is not None else 1,
        reading_time_minutes=reading_time_minutes(
            len(words), words_per_minute=words_per_minute,
        ),
        quality_score=quality_score(issue_total, floor=floor, penalty=penalty),
        issue_count=MappingProxyType(dict(counts)),
    )
