from __future__ import annotations

import logging

from touhou_info.exceptions import InvalidInputError
from touhou_info.models import ORIGINAL, SongMetadata, SongRecord

logger = logging.getLogger(__name__)

MATCH_SCORE_STRICT_ORIGINAL = 50
MATCH_SCORE_ARTIST = 5
MATCH_SCORE_ALBUM = 10


def score_candidate(
    candidate: SongRecord,
    meta: SongMetadata,
    is_strictly_original: bool,
) -> tuple[int, str]:
    reported_artist = (meta.artist_name or "").lower()
    reported_album = (meta.album_title or "").lower()

    score = 0
    strict_bonus = is_strictly_original and candidate.song_type == ORIGINAL
    if strict_bonus:
        score += MATCH_SCORE_STRICT_ORIGINAL

    artist_hits = 0
    for entry in candidate.artists:
        if entry.artist is None or not entry.artist.name:
            continue
        if entry.artist.name.lower() in reported_artist:
            artist_hits += 1
    score += MATCH_SCORE_ARTIST * artist_hits

    # An empty string is a substring of everything, so both sides must be set.
    album_hits = 0
    if reported_album:
        for album in candidate.albums:
            db_album = album.name.lower()
            if db_album and (db_album in reported_album or reported_album in db_album):
                album_hits += 1
    score += MATCH_SCORE_ALBUM * album_hits

    reason = f"strict={strict_bonus}, artist_hits={artist_hits}, album_hits={album_hits}"
    return score, reason


def select_best(
    candidates: list[SongRecord],
    meta: SongMetadata,
    is_strictly_original: bool,
) -> SongRecord:
    """Pick the candidate that best fits the reported metadata.

    Ties keep the earliest candidate, i.e. TouhouDB's own relevance order.
    """
    if not candidates:
        raise InvalidInputError("select_best requires at least one candidate")
    if len(candidates) == 1:
        return candidates[0]

    best = candidates[0]
    best_score = -1
    for candidate in candidates:
        score, reason = score_candidate(candidate, meta, is_strictly_original)
        logger.debug("candidate %s (%s): score=%d, %s", candidate.id, candidate.name, score, reason)
        if score > best_score:
            best = candidate
            best_score = score
    return best
