from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

ORIGINAL = "Original"
ARRANGEMENT = "Arrangement"

# Player metadata keys that carry secondary artist credits.
CREDIT_SLOT_KEYS = ("artist_name:1", "artist_name1", "artist_name_1", "artist_name2", "artist_name:2")


def _split_aliases(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass(frozen=True, slots=True)
class SongName:
    language: str
    value: str


@dataclass(frozen=True, slots=True)
class Artist:
    id: int
    name: str
    artist_type: str | None = None
    additional_names: str | None = None

    @property
    def aliases(self) -> list[str]:
        return _split_aliases(self.additional_names)

    @classmethod
    def from_dict(cls, data: dict) -> Artist:
        return cls(
            id=int(data["id"]),
            name=data.get("name") or "",
            artist_type=data.get("artistType"),
            additional_names=data.get("additionalNames"),
        )


@dataclass(frozen=True, slots=True)
class ArtistEntry:
    categories: str | None = None
    artist: Artist | None = None

    @classmethod
    def from_dict(cls, data: dict) -> ArtistEntry:
        artist = data.get("artist")
        return cls(
            categories=data.get("categories"),
            artist=Artist.from_dict(artist) if artist else None,
        )


@dataclass(frozen=True, slots=True)
class Album:
    name: str
    id: int | None = None
    additional_names: str | None = None

    @property
    def aliases(self) -> list[str]:
        return _split_aliases(self.additional_names)

    @classmethod
    def from_dict(cls, data: dict) -> Album:
        album_id = data.get("id")
        return cls(
            name=data.get("name") or "",
            id=int(album_id) if album_id is not None else None,
            additional_names=data.get("additionalNames"),
        )


@dataclass(frozen=True, slots=True)
class PV:
    service: str
    url: str


@dataclass(frozen=True, slots=True)
class Tag:
    name: str
    category_name: str | None = None
    additional_names: str | None = None

    @property
    def aliases(self) -> list[str]:
        return _split_aliases(self.additional_names)


@dataclass(frozen=True, slots=True)
class SongTag:
    tag: Tag
    count: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> SongTag:
        tag = data.get("tag") or {}
        return cls(
            tag=Tag(
                name=tag.get("name") or "",
                category_name=tag.get("categoryName"),
                additional_names=tag.get("additionalNames"),
            ),
            count=int(data.get("count") or 0),
        )


@dataclass(frozen=True, slots=True)
class SongRecord:
    """A TouhouDB song entry, as returned by the songs API."""

    id: int
    name: str
    song_type: str = ORIGINAL
    original_version_id: int | None = None
    names: tuple[SongName, ...] = ()
    artists: tuple[ArtistEntry, ...] = ()
    albums: tuple[Album, ...] = ()
    pvs: tuple[PV, ...] = ()
    tags: tuple[SongTag, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> SongRecord:
        song_id = int(data["id"])
        original_id = data.get("originalVersionId")
        # A record pointing at itself has no usable upstream.
        if original_id is not None and int(original_id) == song_id:
            original_id = None
        return cls(
            id=song_id,
            name=data.get("name") or "",
            song_type=data.get("songType") or ORIGINAL,
            original_version_id=int(original_id) if original_id is not None else None,
            names=tuple(
                SongName(language=n.get("language") or "", value=n.get("value") or "")
                for n in data.get("names") or []
            ),
            artists=tuple(ArtistEntry.from_dict(a) for a in data.get("artists") or []),
            albums=tuple(Album.from_dict(a) for a in data.get("albums") or []),
            pvs=tuple(
                PV(service=p.get("service") or "", url=p.get("url") or "")
                for p in data.get("pvs") or []
            ),
            tags=tuple(SongTag.from_dict(t) for t in data.get("tags") or []),
        )


@dataclass(slots=True)
class SongMetadata:
    title: str | None = None
    artist_name: str | None = None
    album_title: str | None = None
    credit_slots: list[str] = field(default_factory=list)

    @classmethod
    def from_player(cls, metadata: dict) -> SongMetadata:
        """Build from the player's raw metadata dict.

        Only the known secondary credit keys are read; anything else in the
        dict is ignored.
        """
        slots = []
        for key in CREDIT_SLOT_KEYS:
            value = str(metadata.get(key) or "").strip()
            if value:
                slots.append(value)
        return cls(
            title=metadata.get("title"),
            artist_name=metadata.get("artist_name"),
            album_title=metadata.get("album_title"),
            credit_slots=slots,
        )


class IdentityKind(str, Enum):
    ORIGINAL = "original"
    ARRANGEMENT = "arrangement"
    UNRESOLVED_ARRANGEMENT = "unresolved_arrangement"
    OTHER = "other"


@dataclass(slots=True)
class ResolvedIdentity:
    match: SongRecord
    kind: IdentityKind
    display: SongRecord | None
    spotify_link: str | None = None
    original_id: int | None = None

    @property
    def main_text(self) -> str:
        if self.kind is IdentityKind.ORIGINAL:
            return f"Original: {self.display.name}"
        if self.kind is IdentityKind.ARRANGEMENT and self.display is not None:
            return f"Arrangement of: {self.display.name}"
        if self.kind in (IdentityKind.ARRANGEMENT, IdentityKind.UNRESOLVED_ARRANGEMENT):
            return f"Arrangement of ID #{self.original_id}"
        return f"Touhou: {self.match.name}"

    @property
    def sub_text(self) -> str:
        if self.display is None:
            return ""
        english = english_name(self.display)
        if not english or english == self.match.name or english in self.main_text:
            return ""
        return english


def english_name(song: SongRecord) -> str:
    for name in song.names:
        if name.language == "English":
            return name.value
    return ""


@dataclass(frozen=True, slots=True)
class ImageUrls:
    icon_url: str
    popup_url: str


@dataclass(slots=True)
class CharacterInfo:
    name: str
    icon_url: str
    popup_url: str


@dataclass(slots=True)
class TrackCard:
    """Everything one resolution cycle produces for the now-playing display."""

    identity: ResolvedIdentity
    facets: list[str] = field(default_factory=list)
    character: CharacterInfo | None = None
    album_image: ImageUrls | None = None

    @property
    def main(self) -> str:
        return self.identity.main_text

    @property
    def sub(self) -> str:
        return self.identity.sub_text

    @property
    def has_original_link(self) -> bool:
        return self.identity.spotify_link is not None
