import unittest
import warnings
from types import MappingProxyType
from unittest.mock import MagicMock

from requests.exceptions import ConnectionError
from spotipy.exceptions import SpotifyException

from touhou_info.models import (
    PV,
    Album,
    Artist,
    ArtistEntry,
    IdentityKind,
    ImageUrls,
    SongMetadata,
    SongRecord,
    TrackCard,
)
from touhou_info.pipeline import CycleTracker, identify_track

OWEN = "U.N.オーエンは彼女なのか？"


def _owen_original(with_pv: bool = True) -> SongRecord:
    return SongRecord(
        id=500,
        name=OWEN,
        song_type="Original",
        artists=(
            ArtistEntry(categories="Composer", artist=Artist(id=1, name="ZUN")),
            ArtistEntry(categories="Subject", artist=Artist(id=2, name="フランドール・スカーレット",
                                                            artist_type="Character",
                                                            additional_names="Flandre Scarlet")),
        ),
        albums=(Album(name="東方紅魔郷", id=77, additional_names="TH06"),),
        pvs=(PV(service="Spotify", url="https://open.spotify.com/track/owen"),) if with_pv else (),
    )


def _owen_arrangement() -> SongRecord:
    return SongRecord(
        id=900,
        name="U.N. Owen (Aftergrow Arrange)",
        song_type="Arrangement",
        original_version_id=500,
        artists=(ArtistEntry(categories="Arranger", artist=Artist(id=3, name="Aftergrow")),),
    )


def _make_touhoudb(search=None, original=None) -> MagicMock:
    service = MagicMock()
    service.search_songs = MagicMock(return_value=search or [])
    service.fetch_song = MagicMock(return_value=original)
    service.fetch_artist_image = MagicMock(return_value=ImageUrls(icon_url="icon", popup_url="popup"))
    service.fetch_album_image = MagicMock(return_value=ImageUrls(icon_url="album-icon", popup_url="album-popup"))
    return service


class IdentifyTrackTests(unittest.TestCase):
    def test_arrangement_resolves_to_fetched_original(self) -> None:
        touhoudb = _make_touhoudb(search=[_owen_arrangement()], original=_owen_original())
        meta = SongMetadata(title="U.N.オーエンは彼女なのか？ (Cirno's Theme)", artist_name="Aftergrow")

        card = identify_track(meta, touhoudb, overrides=MappingProxyType({}))

        touhoudb.search_songs.assert_called_once_with("U.N.オーエンは彼女なのか?")
        touhoudb.fetch_song.assert_called_once_with(500)
        self.assertEqual(card.main, f"Arrangement of: {OWEN}")
        self.assertEqual(card.identity.spotify_link, "https://open.spotify.com/track/owen")
        self.assertTrue(card.has_original_link)
        self.assertEqual(card.facets, ["Touhou 6", "Flandre Scarlet"])
        self.assertEqual(card.character.name, "フランドール・スカーレット")
        self.assertEqual(card.character.icon_url, "icon")
        self.assertEqual(card.album_image.icon_url, "album-icon")
        touhoudb.fetch_artist_image.assert_called_once_with(2)
        touhoudb.fetch_album_image.assert_called_once_with(77)

    def test_arrangement_without_original_pv_has_no_link(self) -> None:
        touhoudb = _make_touhoudb(search=[_owen_arrangement()], original=_owen_original(with_pv=False))
        meta = SongMetadata(title="U.N.オーエンは彼女なのか？ (Cirno's Theme)", artist_name="Aftergrow")

        card = identify_track(meta, touhoudb)

        self.assertEqual(card.main, f"Arrangement of: {OWEN}")
        self.assertIsNone(card.identity.spotify_link)
        self.assertFalse(card.has_original_link)

    def test_spotify_search_fills_missing_link(self) -> None:
        touhoudb = _make_touhoudb(search=[_owen_arrangement()], original=_owen_original(with_pv=False))
        spotify = MagicMock()
        spotify.find_original_track = MagicMock(return_value="spotify:track:found")
        meta = SongMetadata(title=OWEN, artist_name="Aftergrow")

        card = identify_track(meta, touhoudb, spotify=spotify)

        spotify.find_original_track.assert_called_once_with(OWEN)
        self.assertEqual(card.identity.spotify_link, "spotify:track:found")

    def test_failed_spotify_search_keeps_resolved_card(self) -> None:
        touhoudb = _make_touhoudb(search=[_owen_arrangement()], original=_owen_original(with_pv=False))
        spotify = MagicMock()
        spotify.find_original_track = MagicMock(side_effect=SpotifyException(503, -1, "service unavailable"))
        meta = SongMetadata(title=OWEN, artist_name="Aftergrow")

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            card = identify_track(meta, touhoudb, spotify=spotify)

        self.assertEqual(card.main, f"Arrangement of: {OWEN}")
        self.assertIsNone(card.identity.spotify_link)
        self.assertTrue(any("503" in str(w.message) for w in caught))

    def test_spotify_connection_error_keeps_resolved_card(self) -> None:
        touhoudb = _make_touhoudb(search=[_owen_arrangement()], original=_owen_original(with_pv=False))
        spotify = MagicMock()
        spotify.find_original_track = MagicMock(side_effect=ConnectionError("offline"))
        meta = SongMetadata(title=OWEN, artist_name="Aftergrow")

        with warnings.catch_warnings(record=True):
            warnings.simplefilter("always")
            card = identify_track(meta, touhoudb, spotify=spotify)

        self.assertIsNone(card.identity.spotify_link)
        self.assertEqual(card.facets, ["Touhou 6", "Flandre Scarlet"])

    def test_override_link_kept_and_original_fetched_for_display(self) -> None:
        touhoudb = _make_touhoudb(search=[_owen_arrangement()], original=_owen_original())
        spotify = MagicMock()
        meta = SongMetadata(title=OWEN, artist_name="Aftergrow")

        card = identify_track(meta, touhoudb, overrides=MappingProxyType({500: "spotify:track:x"}), spotify=spotify)

        touhoudb.fetch_song.assert_called_once_with(500)
        self.assertEqual(card.main, f"Arrangement of: {OWEN}")
        self.assertEqual(card.identity.spotify_link, "spotify:track:x")
        self.assertEqual(card.facets, ["Touhou 6", "Flandre Scarlet"])
        self.assertEqual(card.character.name, "フランドール・スカーレット")
        spotify.find_original_track.assert_not_called()

    def test_override_link_kept_when_original_fetch_misses(self) -> None:
        touhoudb = _make_touhoudb(search=[_owen_arrangement()], original=None)
        meta = SongMetadata(title=OWEN, artist_name="Aftergrow")

        card = identify_track(meta, touhoudb, overrides=MappingProxyType({500: "spotify:track:x"}))

        self.assertEqual(card.main, "Arrangement of ID #500")
        self.assertEqual(card.identity.spotify_link, "spotify:track:x")

    def test_strict_original_skips_lookup(self) -> None:
        touhoudb = _make_touhoudb(search=[_owen_arrangement(), _owen_original()])
        meta = SongMetadata(title=OWEN, artist_name="ZUN", album_title="東方紅魔郷")

        card = identify_track(meta, touhoudb)

        self.assertEqual(card.identity.kind, IdentityKind.ORIGINAL)
        self.assertEqual(card.main, f"Original: {OWEN}")
        touhoudb.fetch_song.assert_not_called()

    def test_unresolved_original_gives_placeholder(self) -> None:
        touhoudb = _make_touhoudb(search=[_owen_arrangement()], original=None)
        meta = SongMetadata(title=OWEN, artist_name="Aftergrow")

        card = identify_track(meta, touhoudb)

        self.assertEqual(card.main, "Arrangement of ID #500")
        self.assertIsNone(card.identity.spotify_link)
        self.assertIsNone(card.character)
        touhoudb.fetch_artist_image.assert_not_called()

    def test_blank_query_skips_search(self) -> None:
        touhoudb = _make_touhoudb()
        self.assertIsNone(identify_track(SongMetadata(title="(Remaster)"), touhoudb))
        self.assertIsNone(identify_track(SongMetadata(title=None), touhoudb))
        touhoudb.search_songs.assert_not_called()

    def test_no_candidates_gives_none(self) -> None:
        touhoudb = _make_touhoudb(search=[])
        self.assertIsNone(identify_track(SongMetadata(title="Unknown Song"), touhoudb))
        touhoudb.fetch_song.assert_not_called()


class CycleTrackerTests(unittest.TestCase):
    def _card(self, song_id: int) -> TrackCard:
        touhoudb = _make_touhoudb(search=[SongRecord(id=song_id, name=f"Song {song_id}")])
        return identify_track(SongMetadata(title=f"Song {song_id}", artist_name="ZUN"), touhoudb)

    def test_latest_cycle_is_applied(self) -> None:
        tracker = CycleTracker()
        token = tracker.begin()
        card = self._card(1)
        self.assertTrue(tracker.publish(token, card))
        self.assertIs(tracker.current, card)

    def test_stale_cycle_is_discarded(self) -> None:
        tracker = CycleTracker()
        first = tracker.begin()
        second = tracker.begin()
        newer = self._card(2)

        self.assertTrue(tracker.publish(second, newer))
        self.assertFalse(tracker.publish(first, self._card(1)))
        self.assertIs(tracker.current, newer)

    def test_begin_clears_previous_result(self) -> None:
        tracker = CycleTracker()
        tracker.publish(tracker.begin(), self._card(1))
        tracker.begin()
        self.assertIsNone(tracker.current)


if __name__ == "__main__":
    unittest.main()
