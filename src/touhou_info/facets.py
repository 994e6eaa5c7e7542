from __future__ import annotations

import re

from touhou_info.models import Album, ArtistEntry, SongRecord

THEMES_CATEGORY = "Themes"
SUBJECT_CATEGORY = "Subject"
CHARACTER_ARTIST_TYPE = "Character"

# "TH06", "Touhou 6", "東方12.5"
_GAME_INDEX_ALIAS = re.compile(r"^(?:th|touhou|東方)\s*0*(\d+(?:\.\d+)?)$", re.IGNORECASE)

KNOWN_GAME_TITLES = (
    "Highly Responsive to Prayers",
    "Story of Eastern Wonderland",
    "Phantasmagoria of Dim.Dream",
    "Lotus Land Story",
    "Mystic Square",
    "Embodiment of Scarlet Devil",
    "Perfect Cherry Blossom",
    "Imperishable Night",
    "Phantasmagoria of Flower View",
    "Mountain of Faith",
    "Subterranean Animism",
    "Undefined Fantastic Object",
    "Ten Desires",
    "Double Dealing Character",
    "Legacy of Lunatic Kingdom",
    "Hidden Star in Four Seasons",
    "Wily Beast and Weakest Creature",
    "Unconnected Marketeers",
    "Unfinished Dream of All Living Ghost",
)


def _game_label(album: Album) -> str:
    aliases = album.aliases
    for alias in aliases:
        found = _GAME_INDEX_ALIAS.match(alias)
        if found:
            return f"Touhou {found.group(1)}"
    for alias in aliases:
        lowered = alias.lower()
        if any(title.lower() in lowered for title in KNOWN_GAME_TITLES):
            return alias
    return album.name


def find_character_artist(record: SongRecord) -> ArtistEntry | None:
    for entry in record.artists:
        if entry.artist is None:
            continue
        if entry.categories == SUBJECT_CATEGORY or entry.artist.artist_type == CHARACTER_ARTIST_TYPE:
            return entry
    return None


def _character_label(record: SongRecord) -> str | None:
    entry = find_character_artist(record)
    if entry is None:
        return None
    # The first alias is conventionally the English name.
    aliases = entry.artist.aliases
    return aliases[0] if aliases else entry.artist.name or None


def _stage_label(record: SongRecord) -> str | None:
    fallback = None
    for song_tag in record.tags:
        tag = song_tag.tag
        if tag.category_name != THEMES_CATEGORY:
            continue
        for alias in tag.aliases:
            if any(ch.isdigit() for ch in alias):
                return alias
        if fallback is None:
            aliases = tag.aliases
            fallback = aliases[0] if aliases else tag.name or None
    return fallback


def extract_facets(record: SongRecord) -> list[str]:
    """Auxiliary display strings: source game, then character or stage."""
    facets: list[str] = []
    if record.albums:
        label = _game_label(record.albums[0])
        if label:
            facets.append(label)

    character = _character_label(record)
    if character:
        facets.append(character)
    else:
        stage = _stage_label(record)
        if stage:
            facets.append(stage)
    return facets
