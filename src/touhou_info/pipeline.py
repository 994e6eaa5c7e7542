"""One resolution cycle per track change.

Each cycle threads its own values through normalize -> search -> select_best
-> resolve -> extract_facets and hands back a single ``TrackCard``. Nothing is
kept between cycles apart from the override table.
"""
from __future__ import annotations

import logging
import threading
import warnings
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Mapping

from requests.exceptions import RequestException
from spotipy.exceptions import SpotifyException

from touhou_info.classifier import is_strictly_original
from touhou_info.facets import extract_facets, find_character_artist
from touhou_info.matcher import select_best
from touhou_info.models import CharacterInfo, IdentityKind, ResolvedIdentity, SongMetadata, TrackCard
from touhou_info.normalizer import normalize
from touhou_info.resolver import resolve

if TYPE_CHECKING:
    from touhou_info.spotify_service import SpotifyService
    from touhou_info.touhoudb_service import TouhouDBService

logger = logging.getLogger(__name__)


def _fill_overridden_original(identity: ResolvedIdentity, touhoudb: TouhouDBService) -> None:
    # resolve() skips the lookup when an override supplies the link; the
    # original is still fetched here for its name and character.
    if identity.kind is not IdentityKind.ARRANGEMENT or identity.display is not None:
        return
    original = touhoudb.fetch_song(identity.original_id)
    if original is not None:
        identity.display = original


def _spotify_fallback(identity: ResolvedIdentity, spotify: SpotifyService) -> None:
    if identity.spotify_link is not None or identity.kind is not IdentityKind.ARRANGEMENT:
        return
    if identity.display is None:
        return
    try:
        identity.spotify_link = spotify.find_original_track(identity.display.name)
    except (RequestException, SpotifyException) as exc:
        warnings.warn(
            f"Spotify search for {identity.display.name!r} failed ({exc}). Continuing without a link.",
            RuntimeWarning,
            stacklevel=3,
        )


def identify_track(
    metadata: SongMetadata,
    touhoudb: TouhouDBService,
    overrides: Mapping[int, str] | None = None,
    spotify: SpotifyService | None = None,
) -> TrackCard | None:
    """Run a full cycle; None means there is nothing to show for this track."""
    query = normalize(metadata.title or "")
    if not query:
        logger.debug("title %r has no searchable text", metadata.title)
        return None

    strict = is_strictly_original(
        metadata.artist_name or "",
        metadata.title,
        metadata.album_title,
        metadata.credit_slots,
    )

    candidates = touhoudb.search_songs(query)
    if not candidates:
        return None

    match = select_best(candidates, metadata, strict)
    identity = resolve(match, strict, touhoudb.fetch_song, overrides)
    _fill_overridden_original(identity, touhoudb)
    if spotify is not None:
        _spotify_fallback(identity, spotify)

    source = identity.display or match
    card = TrackCard(identity=identity, facets=extract_facets(source))

    character_entry = find_character_artist(source)
    album = source.albums[0] if source.albums else None

    # Both image lookups are independent of each other.
    with ThreadPoolExecutor(max_workers=2) as pool:
        character_future = (
            pool.submit(touhoudb.fetch_artist_image, character_entry.artist.id) if character_entry else None
        )
        album_future = (
            pool.submit(touhoudb.fetch_album_image, album.id) if album is not None and album.id is not None else None
        )
        character_images = character_future.result() if character_future else None
        card.album_image = album_future.result() if album_future else None

    if character_images is not None:
        card.character = CharacterInfo(
            name=character_entry.artist.name,
            icon_url=character_images.icon_url,
            popup_url=character_images.popup_url,
        )
    return card


class CycleTracker:
    """Keeps only the result of the most recently started cycle.

    For the player-side shell, where a new track change can start while the
    previous cycle's lookups are still in flight: call ``begin()`` on every
    track change and ``publish()`` when ``identify_track`` returns. The CLI and
    HTTP API run one cycle per call and do not need it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._generation = 0
        self._current: TrackCard | None = None

    def begin(self) -> int:
        with self._lock:
            self._generation += 1
            self._current = None
            return self._generation

    def publish(self, token: int, card: TrackCard | None) -> bool:
        """Apply ``card`` if ``token`` is still the latest cycle; return whether it was."""
        with self._lock:
            if token != self._generation:
                logger.debug("discarding stale cycle %d (latest is %d)", token, self._generation)
                return False
            self._current = card
            return True

    @property
    def current(self) -> TrackCard | None:
        return self._current
