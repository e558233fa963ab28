from __future__ import annotations
import json
import os
from typing import Dict

from ..models import MalformedInputError


def save_offsets(offsets: Dict[str, int], path: str) -> None:
    """Write the word -> byte offset map as JSON (temp file + replace)."""
    tmp = f"{path}.tmp"
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(offsets, f, ensure_ascii=False)
    os.replace(tmp, path)


def load_offsets(path: str) -> Dict[str, int]:
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise MalformedInputError(f"invalid offset map: {exc}", source=path) from exc
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, int) and not isinstance(v, bool) and v >= 0
        for k, v in data.items()
    ):
        raise MalformedInputError("offset map must map words to non-negative integers", source=path)
    return data
