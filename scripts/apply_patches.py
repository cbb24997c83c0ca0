#!/usr/bin/env python3
"""Apply analyzer edits to a markup document.

Reads a markup file and an edits file (a JSON list, a JSON object with an
``edits`` list, or JSON Lines), applies the edits right-to-left against the
markup, writes the updated markup (same encoding and line endings as the
input) and prints a JSON summary to stdout.
Skipped edits are logged to stderr.

Edit offsets must refer to ``extract_plain_text`` of the same markup file,
e.g. as produced by ``scripts/extract_text.py``.

Usage::

    python3 scripts/apply_patches.py --markup doc.html --edits edits.json \
      --out doc.fixed.html [--report report.json] [--fail-on-skip] [--verbose]
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from markpatch.io_utils import (
    dumps_json,
    load_edits,
    read_markup_with_encoding,
    save_json,
    write_markup,
)
from markpatch.patching import apply_patches
from markpatch.suggestions import patches_from_edits
from markpatch.types import PatchOutcome, batch_result_to_dict

log = logging.getLogger("apply_patches")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Apply plain-text analyzer edits to a markup document."
    )
    parser.add_argument("--markup", required=True, type=Path, help="Markup file to patch")
    parser.add_argument(
        "--edits", required=True, type=Path, help="Edits file (.json or .jsonl)"
    )
    parser.add_argument("--out", required=True, type=Path, help="Where to write patched markup")
    parser.add_argument(
        "--report", type=Path, default=None, help="Optional full JSON report path"
    )
    parser.add_argument(
        "--fail-on-skip",
        action="store_true",
        help="Exit with status 2 if any edit was rejected or skipped",
    )
    parser.add_argument("--verbose", action="store_true")
    return parser


def run(markup_path: Path, edits_path: Path, out_path: Path) -> dict[str, Any]:
    """Apply the edits and write the patched markup. Returns the full report."""
    markup, encoding = read_markup_with_encoding(markup_path)
    patches, rejected = patches_from_edits(load_edits(edits_path))
    for row in rejected:
        log.warning("Rejected edit #%d: %s", row.index, row.reason)

    result = apply_patches(markup, patches)
    for row in result.results:
        if row.outcome is PatchOutcome.APPLIED:
            log.debug("Patch #%d applied: %s", row.index, row.detail)
        else:
            log.warning("Patch #%d %s: %s", row.index, row.outcome.value, row.detail)

    write_markup(result.updated_markup, out_path, encoding=encoding)

    report = batch_result_to_dict(result)
    report["rejected_edits"] = [
        {"index": row.index, "reason": row.reason} for row in rejected
    ]
    report["markup_path"] = str(markup_path)
    report["out_path"] = str(out_path)
    report["encoding"] = encoding
    return report


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    for path in (args.markup, args.edits):
        if not path.exists():
            print(f"Error: file not found: {path}", file=sys.stderr)
            return 1

    try:
        report = run(args.markup, args.edits, args.out)
    except (OSError, ValueError) as exc:
        # orjson.JSONDecodeError is a ValueError too.
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    log.info(
        "Applied %d of %d edits (%d skipped, %d rejected) -> %s",
        report["applied_count"],
        len(report["results"]) + len(report["rejected_edits"]),
        report["failed_count"],
        len(report["rejected_edits"]),
        args.out,
    )
    if args.report is not None:
        save_json(report, args.report)
        log.info("Report written to %s", args.report)

    print(
        dumps_json({
            "applied_count": report["applied_count"],
            "failed_count": report["failed_count"],
            "rejected_count": len(report["rejected_edits"]),
            "out_path": report["out_path"],
        })
    )
    if args.fail_on_skip and (report["failed_count"] or report["rejected_edits"]):
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
