from __future__ import annotations

import warnings

import requests
from requests.exceptions import RequestException

from touhou_info.config import DEFAULT_TOUHOUDB_API_BASE, DEFAULT_TOUHOUDB_TIMEOUT
from touhou_info.models import ImageUrls, SongRecord

USER_AGENT = "touhou-info/0.1 (+https://touhoudb.com)"


class TouhouDBService:
    SEARCH_FIELDS = "Tags,Names,Artists,Albums"
    SONG_FIELDS = "Tags,Names,PVs,Artists,Albums"

    def __init__(
        self,
        api_base: str = DEFAULT_TOUHOUDB_API_BASE,
        timeout: float = DEFAULT_TOUHOUDB_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json", "User-Agent": USER_AGENT})

    def _get_json(self, path: str, params: dict) -> dict | None:
        url = f"{self.api_base}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (RequestException, ValueError) as exc:
            warnings.warn(
                f"TouhouDB request {path} failed ({exc}). Falling back to no result.",
                RuntimeWarning,
                stacklevel=3,
            )
            return None

    def search_songs(self, query: str) -> list[SongRecord]:
        if not query:
            return []
        data = self._get_json("/songs", {"query": query, "fields": self.SEARCH_FIELDS})
        if not data:
            return []
        return [SongRecord.from_dict(item) for item in data.get("items") or [] if item.get("id") is not None]

    def fetch_song(self, song_id: int) -> SongRecord | None:
        data = self._get_json(f"/songs/{song_id}", {"fields": self.SONG_FIELDS})
        if not data or data.get("id") is None:
            return None
        return SongRecord.from_dict(data)

    @staticmethod
    def _image_urls(data: dict | None) -> ImageUrls | None:
        picture = (data or {}).get("mainPicture")
        if not picture:
            return None
        icon = picture.get("urlSmallThumb") or picture.get("urlTinyThumb") or picture.get("urlThumb")
        popup = picture.get("urlThumb") or picture.get("urlOriginal")
        if not icon or not popup:
            return None
        return ImageUrls(icon_url=icon, popup_url=popup)

    def fetch_artist_image(self, artist_id: int) -> ImageUrls | None:
        return self._image_urls(self._get_json(f"/artists/{artist_id}", {"fields": "MainPicture"}))

    def fetch_album_image(self, album_id: int) -> ImageUrls | None:
        return self._image_urls(self._get_json(f"/albums/{album_id}", {"fields": "MainPicture"}))
