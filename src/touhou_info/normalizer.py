"""Turn a player-reported track title into a TouhouDB search query.

Player titles carry game names, stage/boss annotations, remix credits and
version markers that TouhouDB does not index, so all of those are removed
before searching.
"""
from __future__ import annotations

import logging
import re
import unicodedata
from typing import Iterable

logger = logging.getLogger(__name__)

TITLE_TAGS_TO_STRIP = (
    "Remaster",
    "2021 ver",
    "Instrumental",
    "feat.",
    "Original Mix",
)

_BRACKETED = re.compile(r"[\(\[][^\)\]]*[\)\]]")

# "-5面ボス・クラウンピース"
_STAGE_BOSS_JA = re.compile(r"-\s*[0-9]*\s*面\s*ボス[^\s\-]*")
# "- 5th Stage Boss - Clownpiece", "- Extra Stage"
_STAGE_BOSS_EN = re.compile(
    r"-\s*(?:(?:\d+(?:st|nd|rd|th)?|extra)\s*)?(?:stage|boss)\b[^\-]*(?:-[^\-]*)?",
    re.IGNORECASE,
)

_ARRANGEMENT_TERMS = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"violin\s*rock",
        r"バイオリンロック",
        r"バイオリン",
        r"violin",
        r"remix",
        r"arrange(?:ment|d)?",
    )
)

_WHITESPACE = re.compile(r"[\s　]+")
_EDGE_SEPARATORS = " -~〜"


def _strip_pass(title: str, tag_patterns: list[re.Pattern]) -> str:
    title = _BRACKETED.sub("", title)
    title = _STAGE_BOSS_JA.sub("", title)
    title = _STAGE_BOSS_EN.sub("", title)
    for pattern in tag_patterns:
        title = pattern.sub("", title)
    for pattern in _ARRANGEMENT_TERMS:
        title = pattern.sub(" ", title)
    title = _WHITESPACE.sub(" ", title)
    return title.strip(_EDGE_SEPARATORS)


def normalize(raw_title: str, tags: Iterable[str] = TITLE_TAGS_TO_STRIP) -> str:
    """Return a clean search query for ``raw_title``.

    An empty result means there is nothing worth searching for.
    """
    if not raw_title:
        return ""

    tag_patterns = [re.compile(re.escape(tag), re.IGNORECASE) for tag in tags]
    title = unicodedata.normalize("NFKC", raw_title)

    # Removing one annotation can expose another, or join a base character to
    # a combining mark, so recompose and run until nothing changes.
    while True:
        cleaned = unicodedata.normalize("NFKC", _strip_pass(title, tag_patterns))
        if cleaned == title:
            break
        title = cleaned

    logger.debug("normalized title %r -> %r", raw_title, title)
    return title
