"""Markup/plain-text reconciliation: projection, offset mapping and patching."""

from markpatch.mapping import map_offset, map_range
from markpatch.normalization import (
    ENTITY_TABLE,
    ScanState,
    decode_entity,
    extract_plain_text,
    project_markup,
)
from markpatch.patching import apply_patch, apply_patches, resolve_patch_span
from markpatch.statistics import (
    AnalysisStats,
    DocumentStats,
    compute_analysis_stats,
    compute_document_stats,
)
from markpatch.suggestions import (
    EditPayloadError,
    RejectedEdit,
    Suggestion,
    SuggestionContext,
    filter_dismissed,
    has_significant_text_change,
    parse_issue_blocks,
    patch_from_edit,
    patches_from_edits,
    suggestion_key,
)
from markpatch.types import (
    BatchResult,
    CorrespondenceEntry,
    MarkupProjection,
    Patch,
    PatchOutcome,
    PatchResult,
    PositionCorrespondence,
    batch_result_to_dict,
    patch_to_dict,
)

__all__ = [
    "ENTITY_TABLE",
    "AnalysisStats",
    "BatchResult",
    "CorrespondenceEntry",
    "DocumentStats",
    "EditPayloadError",
    "MarkupProjection",
    "Patch",
    "PatchOutcome",
    "PatchResult",
    "PositionCorrespondence",
    "RejectedEdit",
    "ScanState",
    "Suggestion",
    "SuggestionContext",
    "apply_patch",
    "apply_patches",
    "batch_result_to_dict",
    "compute_analysis_stats",
    "compute_document_stats",
    "decode_entity",
    "extract_plain_text",
    "filter_dismissed",
    "has_significant_text_change",
    "map_offset",
    "map_range",
    "parse_issue_blocks",
    "patch_from_edit",
    "patch_to_dict",
    "patches_from_edits",
    "project_markup",
    "resolve_patch_span",
    "suggestion_key",
]
