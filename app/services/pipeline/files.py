"""JSON interchange files shared by the command-line stages."""

import json
import sys
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, TextIO

import structlog

logger = structlog.get_logger(__name__)


def read_json_list(path: str | Path, missing_ok: bool = False) -> list[Any]:
    """Read a JSON array from disk.

    Raises:
        ValueError: the file does not hold a JSON array
    """
    file_path = Path(path)
    if missing_ok and not file_path.exists():
        logger.warning("json_file_missing", path=str(file_path))
        return []

    data = json.loads(file_path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{file_path} does not contain a JSON array")
    return data


def write_json(path: str | Path, data: Any) -> None:
    """Write data as indented JSON, creating parent directories."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")


def append_unique(
    path: str | Path,
    items: Iterable[Any],
    key: Callable[[Any], Any] = lambda item: item,
) -> int:
    """Append items to a JSON array file, skipping keys already present.

    Returns:
        Number of entries in the file afterwards
    """
    existing = read_json_list(path, missing_ok=True)
    seen = {key(item) for item in existing}
    for item in items:
        item_key = key(item)
        if item_key not in seen:
            seen.add(item_key)
            existing.append(item)
    write_json(path, existing)
    return len(existing)


def emit_json_lines(records: Iterable[Any], stream: TextIO | None = None) -> None:
    """Write one JSON document per line; a closed pipe stops output quietly."""
    out = stream or sys.stdout
    try:
        for record in records:
            out.write(json.dumps(record, default=str) + "\n")
        out.flush()
    except BrokenPipeError:
        logger.info("stdout_closed")
