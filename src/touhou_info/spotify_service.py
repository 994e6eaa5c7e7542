from __future__ import annotations

import os
import warnings
from urllib.parse import urlparse

import spotipy
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyClientCredentials
from requests.exceptions import HTTPError

ORIGINAL_COMPOSER = "ZUN"


def parse_spotify_link(link: str) -> str:
    """Turn a Spotify URI or URL into a client path like ``/track/<id>``."""
    if link.startswith("spotify:"):
        parts = link.split(":")
        if len(parts) > 2:
            return f"/{parts[1]}/{parts[2]}"
        return link
    if "http" in link:
        try:
            path = urlparse(link).path
        except ValueError:
            return link
        return path or link
    return link


class SpotifyService:
    def __init__(self) -> None:
        self._validate_credentials()
        self.client = spotipy.Spotify(auth_manager=SpotifyClientCredentials())

    @staticmethod
    def _validate_credentials() -> None:
        missing = [name for name in ("SPOTIPY_CLIENT_ID", "SPOTIPY_CLIENT_SECRET") if not os.getenv(name)]
        if missing:
            missing_list = ", ".join(missing)
            raise ValueError(
                f"Missing Spotify credentials: {missing_list}. "
                "Set them in environment variables or local .env file."
            )

    def find_original_track(self, original_name: str) -> str | None:
        """Search Spotify for ZUN's release of ``original_name``.

        Used when TouhouDB has no Spotify PV for an original.
        """
        if not original_name:
            return None
        query = f"artist:{ORIGINAL_COMPOSER} track:{original_name}"
        try:
            page = self.client.search(q=query, type="track", limit=1)
        except (HTTPError, SpotifyException) as exc:
            status = exc.response.status_code if isinstance(exc, HTTPError) else exc.http_status
            if status is not None and 400 <= status < 500:
                warnings.warn(
                    f"Spotify search returned {status} for {query!r}. Continuing without a link.",
                    RuntimeWarning,
                    stacklevel=2,
                )
                return None
            raise
        items = page.get("tracks", {}).get("items", [])
        if not items:
            return None
        return items[0].get("external_urls", {}).get("spotify") or items[0].get("uri")
