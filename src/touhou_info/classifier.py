from __future__ import annotations

import logging
from typing import Iterable

logger = logging.getLogger(__name__)

STRICT_ORIGINAL_ARTISTS = ("ZUN", "上海アリス幻樂団")

ARRANGEMENT_KEYWORDS = (
    "violin",
    "バイオリン",
    "remix",
    "arrang",
    "orchestra",
    "cover",
    "rework",
    "tribute",
    "mix",
    "tamusic",
    "instrumental",
    "アレンジ",
    "リミックス",
    "オーケストラ",
    "カバー",
)

_MULTI_CREDIT_MARKS = ("&", ",", "/")


def _is_canonical_credit(name: str) -> bool:
    lowered = name.casefold()
    return any(lowered == artist.casefold() for artist in STRICT_ORIGINAL_ARTISTS)


def is_strictly_original(
    artist_name: str,
    title: str | None = None,
    album: str | None = None,
    credit_slots: Iterable[str] | None = None,
) -> bool:
    """Decide whether the reported credit names ZUN and nothing else.

    The same Original record on TouhouDB shows up both as ZUN's own release
    and as a backing track credited to an arranger, so the verdict comes from
    the player's reporting context rather than from the record.
    """
    if artist_name not in STRICT_ORIGINAL_ARTISTS:
        logger.debug("artist %r is not a strict original credit", artist_name)
        return False

    combined = f"{title or ''} {album or ''}".lower()
    for keyword in ARRANGEMENT_KEYWORDS:
        if keyword in combined:
            logger.debug("arrangement keyword %r found in %r", keyword, combined)
            return False

    if any(mark in artist_name for mark in _MULTI_CREDIT_MARKS):
        return False

    for slot in credit_slots or ():
        slot = slot.strip()
        if slot and not _is_canonical_credit(slot):
            logger.debug("secondary credit %r is not a strict original credit", slot)
            return False

    return True
