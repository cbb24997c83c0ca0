#!/usr/bin/env python3
"""Print the plain-text projection of a markup document.

The output is exactly the text an analyzer must be given so that its offsets
can later be applied with ``scripts/apply_patches.py``.

Usage::

    python3 scripts/extract_text.py --markup doc.html
    python3 scripts/extract_text.py --markup doc.html --json --with-map
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from markpatch.io_utils import dumps_json, read_markup
from markpatch.normalization import project_markup
from markpatch.statistics import DEFAULT_WORDS_PER_MINUTE, compute_document_stats


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract the analyzer-facing plain text from a markup document."
    )
    parser.add_argument("--markup", required=True, type=Path, help="Markup file")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit JSON with plain text and document statistics",
    )
    parser.add_argument(
        "--with-map",
        action="store_true",
        help="Include the plain->markup correspondence (requires --json)",
    )
    parser.add_argument(
        "--words-per-minute",
        type=int,
        default=DEFAULT_WORDS_PER_MINUTE,
        help=f"Reading speed for reading-time estimate (default: {DEFAULT_WORDS_PER_MINUTE})",
    )
    return parser


def build_payload(markup: str, *, with_map: bool, words_per_minute: int) -> dict[str, Any]:
    projection = project_markup(markup)
    payload: dict[str, Any] = {
        "plain_text": projection.plain_text,
        "document_stats": compute_document_stats(
            markup, words_per_minute=words_per_minute,
        ).as_dict(),
    }
    if with_map:
        payload["correspondence"] = [
            [entry.plain_offset, entry.markup_offset, entry.markup_end]
            for entry in projection.correspondence
        ]
    return payload


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if not args.markup.exists():
        print(f"Error: file not found: {args.markup}", file=sys.stderr)
        return 1
    if args.with_map and not args.json:
        print("Error: --with-map requires --json", file=sys.stderr)
        return 1
    if args.words_per_minute <= 0:
        print("Error: --words-per-minute must be > 0", file=sys.stderr)
        return 1

    markup = read_markup(args.markup)
    if args.json:
        print(dumps_json(build_payload(
            markup, with_map=args.with_map, words_per_minute=args.words_per_minute,
        )))
    else:
        print(project_markup(markup).plain_text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
