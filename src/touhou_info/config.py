from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_TOUHOUDB_API_BASE = "https://touhoudb.com/api"
DEFAULT_TOUHOUDB_TIMEOUT = 10.0


def load_local_env_file(env_path: str = ".env") -> None:
    """Load key=value pairs from a local .env file into process env.

    Existing environment variables are preserved and not overwritten.
    """

    path = Path(env_path)
    if not path.exists():
        return

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")

        if key and key not in os.environ:
            os.environ[key] = value


def _env_float(name: str, fallback: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return fallback
    try:
        return float(raw)
    except ValueError:
        return fallback


@dataclass(frozen=True, slots=True)
class Settings:
    touhoudb_api_base: str = DEFAULT_TOUHOUDB_API_BASE
    touhoudb_timeout: float = DEFAULT_TOUHOUDB_TIMEOUT
    overrides_path: str | None = None
    spotify_enabled: bool = False

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            touhoudb_api_base=os.getenv("TOUHOUDB_API_BASE") or DEFAULT_TOUHOUDB_API_BASE,
            touhoudb_timeout=_env_float("TOUHOUDB_TIMEOUT", DEFAULT_TOUHOUDB_TIMEOUT),
            overrides_path=os.getenv("TOUHOU_INFO_OVERRIDES") or None,
            spotify_enabled=bool(os.getenv("SPOTIPY_CLIENT_ID") and os.getenv("SPOTIPY_CLIENT_SECRET")),
        )
