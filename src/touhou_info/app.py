from __future__ import annotations

import argparse
import logging

from touhou_info.config import Settings, load_local_env_file
from touhou_info.models import SongMetadata, TrackCard
from touhou_info.overrides import load_override_table
from touhou_info.pipeline import identify_track
from touhou_info.spotify_service import parse_spotify_link


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Identify a Touhou track on TouhouDB")
    parser.add_argument("--title", required=True, help="Track title as reported by the player")
    parser.add_argument("--artist", default=None, help="Primary artist credit")
    parser.add_argument("--album", default=None, help="Album title")
    parser.add_argument(
        "--credit",
        action="append",
        default=[],
        dest="credits",
        help="Secondary artist credit (repeatable)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log matching decisions")
    return parser.parse_args(argv)


def metadata_from_args(args: argparse.Namespace) -> SongMetadata:
    return SongMetadata(
        title=args.title,
        artist_name=args.artist,
        album_title=args.album,
        credit_slots=list(args.credits),
    )


def format_card(card: TrackCard) -> list[str]:
    lines = [card.main]
    if card.sub:
        lines.append(card.sub)
    lines.extend(card.facets)
    if card.character:
        lines.append(f"Character:  {card.character.name}")
    link = card.identity.spotify_link
    if link:
        lines.append(f"Original:   {link} ({parse_spotify_link(link)})")
    return lines


def main(argv: list[str] | None = None) -> None:
    load_local_env_file()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )
    settings = Settings.from_env()

    from touhou_info.touhoudb_service import TouhouDBService

    service = TouhouDBService(api_base=settings.touhoudb_api_base, timeout=settings.touhoudb_timeout)
    spotify = None
    if settings.spotify_enabled:
        from touhou_info.spotify_service import SpotifyService

        spotify = SpotifyService()

    card = identify_track(
        metadata_from_args(args),
        service,
        overrides=load_override_table(settings.overrides_path),
        spotify=spotify,
    )
    if card is None:
        print("No TouhouDB match found.")
        return

    for line in format_card(card):
        print(line)


if __name__ == "__main__":
    main()
