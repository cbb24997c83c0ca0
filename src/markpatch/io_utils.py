"""I/O utilities for markup documents, patch files and reports.

JSON and JSON Lines go through orjson; markup files are read with an
encoding fallback (UTF-8 -> CP1252 -> replace) so documents saved by word
processors with smart quotes still load. Markup is read and written as
bytes so line endings and the source encoding survive a round trip.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson


def load_json(path: Path) -> Any:
    """Load JSON from a file."""
    return orjson.loads(path.read_bytes())


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    """Save an object as JSON with sorted keys."""
    path.parent.mkdir(parents=True, exist_ok=True)
    opts = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS if pretty else orjson.OPT_SORT_KEYS
    path.write_bytes(orjson.dumps(obj, option=opts))


def dumps_json(obj: Any, *, pretty: bool = True) -> str:
    opts = orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS if pretty else orjson.OPT_SORT_KEYS
    return orjson.dumps(obj, option=opts).decode("utf-8")


def load_jsonl(path: Path) -> list[dict[str, Any]]:
    """Load a JSON Lines file (one JSON object per line). Blank lines skipped."""
    records: list[dict[str, Any]] = []
    for line in path.read_bytes().split(b"\n"):
        line = line.strip()
        if line:
            records.append(orjson.loads(line))
    return records


def save_jsonl(records: list[dict[str, Any]], path: Path) -> None:
    """Save a list of dicts as a JSON Lines file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [orjson.dumps(r, option=orjson.OPT_SORT_KEYS) for r in records]
    path.write_bytes(b"\n".join(lines) + b"\n")


def load_edits(path: Path) -> list[Any]:
    """Load analyzer edits from ``.jsonl`` or ``.json``.

    A JSON file may hold either a list of edits or an object with an
    ``edits`` (or ``patches``) list.

    Raises:
        ValueError: If a JSON file holds neither shape.
    """
    if path.suffix == ".jsonl":
        return list(load_jsonl(path))
    payload = load_json(path)
    if isinstance(payload, dict):
        payload = payload.get("edits", payload.get("patches"))
    if not isinstance(payload, list):
        raise ValueError(f"{path}: expected a list of edits or an object with 'edits'")
    return payload


def decode_markup(data: bytes) -> tuple[str, str]:
    """Decode markup bytes with fallback: UTF-8 -> CP1252 -> replace.

    Line endings are left untouched. Returns the text and the encoding it was
    decoded with, so the document can be written back byte for byte.
    """
    try:
        return data.decode("utf-8"), "utf-8"
    except UnicodeDecodeError:
        pass
    try:
        return data.decode("cp1252"), "cp1252"
    except UnicodeDecodeError:
        return data.decode("utf-8", errors="replace"), "utf-8"


def read_markup_with_encoding(fpath: Path) -> tuple[str, str]:
    """Read a markup file; returns ``(text, encoding)``.

    Raises:
        OSError: If the file cannot be read.
    """
    return decode_markup(fpath.read_bytes())


def read_markup(fpath: Path) -> str:
    """Read a markup file with encoding fallback: UTF-8 -> CP1252 -> replace.

    A missing or unreadable file is an error, not an empty document.

    Raises:
        OSError: If the file cannot be read.
    """
    return read_markup_with_encoding(fpath)[0]


def write_markup(text: str, path: Path, *, encoding: str = "utf-8") -> None:
    """Write markup in *encoding* without newline translation.

    Characters the encoding cannot represent are written as numeric
    character references.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(text.encode(encoding, errors="xmlcharrefreplace"))
