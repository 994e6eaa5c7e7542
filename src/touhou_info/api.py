"""FastAPI web server for touhou-info."""
from functools import lru_cache

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from touhou_info.config import Settings
from touhou_info.models import SongMetadata, TrackCard
from touhou_info.overrides import load_override_table
from touhou_info.pipeline import identify_track
from touhou_info.spotify_service import SpotifyService, parse_spotify_link
from touhou_info.touhoudb_service import TouhouDBService

app = FastAPI(title="Touhou Info")

# Enable CORS for the player extension
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request/Response models
class IdentifyRequest(BaseModel):
    """Now-playing metadata as reported by the player."""
    title: str = Field(min_length=1)
    artist_name: str | None = None
    album_title: str | None = None
    credit_slots: list[str] = []

class CharacterResponse(BaseModel):
    name: str
    icon_url: str
    popup_url: str

class CardResponse(BaseModel):
    """Resolved identity of the playing track."""
    song_id: int
    main: str
    sub: str = ""
    extra: list[str] = []
    kind: str
    original_id: int | None = None
    spotify_link: str | None = None
    spotify_path: str | None = None
    character: CharacterResponse | None = None
    album_icon_url: str | None = None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=1)
def get_override_table():
    """Loaded once per process."""
    return load_override_table(get_settings().overrides_path)


def get_touhoudb_service() -> TouhouDBService:
    settings = get_settings()
    return TouhouDBService(api_base=settings.touhoudb_api_base, timeout=settings.touhoudb_timeout)


def get_spotify_service() -> SpotifyService | None:
    if not get_settings().spotify_enabled:
        return None
    return SpotifyService()


def card_to_response(card: TrackCard) -> CardResponse:
    identity = card.identity
    link = identity.spotify_link
    return CardResponse(
        song_id=identity.match.id,
        main=card.main,
        sub=card.sub,
        extra=card.facets,
        kind=identity.kind.value,
        original_id=identity.original_id,
        spotify_link=link,
        spotify_path=parse_spotify_link(link) if link else None,
        character=(
            CharacterResponse(
                name=card.character.name,
                icon_url=card.character.icon_url,
                popup_url=card.character.popup_url,
            )
            if card.character
            else None
        ),
        album_icon_url=card.album_image.icon_url if card.album_image else None,
    )


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/api/identify", response_model=CardResponse)
def identify(request: IdentifyRequest):
    """Resolve the playing track to its TouhouDB song and original."""
    try:
        metadata = SongMetadata(
            title=request.title,
            artist_name=request.artist_name,
            album_title=request.album_title,
            credit_slots=list(request.credit_slots),
        )
        card = identify_track(
            metadata,
            get_touhoudb_service(),
            overrides=get_override_table(),
            spotify=get_spotify_service(),
        )
        if card is None:
            raise HTTPException(
                status_code=404,
                detail=f"No TouhouDB song found for '{request.title}'"
            )
        return card_to_response(card)

    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error: {str(e)}")
