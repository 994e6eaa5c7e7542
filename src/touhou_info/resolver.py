from __future__ import annotations

import logging
import warnings
from typing import Callable, Mapping

from touhou_info.models import ARRANGEMENT, ORIGINAL, IdentityKind, ResolvedIdentity, SongRecord
from touhou_info.overrides import EMPTY_OVERRIDES

logger = logging.getLogger(__name__)

SPOTIFY_SERVICE = "Spotify"

LookupFn = Callable[[int], "SongRecord | None"]


def spotify_link_from_song(song: SongRecord, service: str = SPOTIFY_SERVICE) -> str | None:
    for pv in song.pvs:
        if pv.service == service and pv.url:
            return pv.url
    return None


def _safe_lookup(lookup_original: LookupFn, song_id: int) -> SongRecord | None:
    try:
        return lookup_original(song_id)
    except Exception as exc:
        warnings.warn(
            f"Lookup of TouhouDB song {song_id} failed ({exc!r}). Continuing without it.",
            RuntimeWarning,
            stacklevel=3,
        )
        return None


def resolve(
    match: SongRecord,
    is_strictly_original: bool,
    lookup_original: LookupFn,
    overrides: Mapping[int, str] | None = None,
) -> ResolvedIdentity:
    """Work out what the now-playing display should name and link to.

    At most one call is made to ``lookup_original``; a curated override for
    the relevant id means no call at all.
    """
    overrides = EMPTY_OVERRIDES if overrides is None else overrides

    if match.song_type == ORIGINAL:
        if is_strictly_original:
            return ResolvedIdentity(
                match=match,
                kind=IdentityKind.ORIGINAL,
                display=match,
                spotify_link=spotify_link_from_song(match),
            )

        # The reported artist is covering this original.
        link = overrides.get(match.id)
        if link is None:
            fetched = _safe_lookup(lookup_original, match.id)
            link = spotify_link_from_song(fetched) if fetched else None
        return ResolvedIdentity(
            match=match,
            kind=IdentityKind.ARRANGEMENT,
            display=match,
            spotify_link=link,
            original_id=match.id,
        )

    original_id = match.original_version_id
    if match.song_type == ARRANGEMENT and original_id is not None and original_id != match.id:
        link = overrides.get(original_id)
        if link is not None:
            logger.debug("override link for original %s", original_id)
            return ResolvedIdentity(
                match=match,
                kind=IdentityKind.ARRANGEMENT,
                display=None,
                spotify_link=link,
                original_id=original_id,
            )

        original = _safe_lookup(lookup_original, original_id)
        if original is None:
            return ResolvedIdentity(
                match=match,
                kind=IdentityKind.UNRESOLVED_ARRANGEMENT,
                display=None,
                original_id=original_id,
            )
        return ResolvedIdentity(
            match=match,
            kind=IdentityKind.ARRANGEMENT,
            display=original,
            spotify_link=spotify_link_from_song(original),
            original_id=original_id,
        )

    return ResolvedIdentity(match=match, kind=IdentityKind.OTHER, display=match)
