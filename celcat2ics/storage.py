"""
Persistent storage for the user's filter selection.

This module manages the file:

    ~/.celcat2ics/selection.json

so that the groups / options / common-track modules picked once can be
reused for the next export without answering the filter prompt again.

JSON schema:

    {
      "group_course_ids": [...],
      "option_ids": [...],
      "common_track_modules": [...]
    }

A missing key means "keep everything" for that category.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, FrozenSet, Optional

from celcat2ics.model import FilterSelection


_KEYS = ("group_course_ids", "option_ids", "common_track_modules")


def _default_selection_path() -> Path:
    """
    Return the default path of selection.json in the user's home directory.

    Using a function instead of a constant makes testing easier,
    because tests can override the path.
    """
    return Path.home() / ".celcat2ics" / "selection.json"


def _as_id_set(value: Any) -> Optional[FrozenSet[str]]:
    if not isinstance(value, list):
        return None
    return frozenset(x.strip() for x in value if isinstance(x, str) and x.strip())


def load_selection(path: str | Path | None = None) -> Optional[FilterSelection]:
    """
    Load the saved selection.

    Returns None if the file does not exist or is invalid, which callers
    treat as "no saved selection".
    """
    selection_path = Path(path) if path is not None else _default_selection_path()

    if not selection_path.exists():
        return None

    try:
        data = json.loads(selection_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return None

    if not isinstance(data, dict):
        return None

    return FilterSelection(**{key: _as_id_set(data.get(key)) for key in _KEYS})


def save_selection(selection: FilterSelection, path: str | Path | None = None) -> Path:
    """
    Save a selection, creating parent directories if needed.

    Lists are sorted to keep a stable file format; None sets are omitted.
    """
    selection_path = Path(path) if path is not None else _default_selection_path()
    selection_path.parent.mkdir(parents=True, exist_ok=True)

    payload = {}
    for key in _KEYS:
        ids = getattr(selection, key)
        if ids is not None:
            payload[key] = sorted(ids)

    selection_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return selection_path
