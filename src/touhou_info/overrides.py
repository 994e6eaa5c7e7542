"""Curated TouhouDB song id -> Spotify link table.

Well-known originals get a fixed link so resolution can skip the TouhouDB
lookup. The table is read once and handed around as a read-only mapping.
"""
from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

DEFAULT_OVERRIDES_PATH = Path(__file__).parent / "override_links.json"

EMPTY_OVERRIDES: Mapping[int, str] = MappingProxyType({})


def load_override_table(path: str | Path | None = None) -> Mapping[int, str]:
    """Read a JSON object of ``{"<song id>": "<link>"}`` pairs.

    Keys that are not integer ids and blank links are skipped.
    """
    path = Path(path) if path else DEFAULT_OVERRIDES_PATH
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"Override table {path} must be a JSON object")

    table: dict[int, str] = {}
    for key, link in raw.items():
        try:
            song_id = int(key)
        except (TypeError, ValueError):
            continue
        if isinstance(link, str) and link.strip():
            table[song_id] = link.strip()
    return MappingProxyType(table)
