"""Runtime settings, read from the environment (and `.env` if present)."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_ROOT = Path(__file__).parent.parent.parent

NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"


@dataclass(frozen=True)
class Settings:
    refresh_seconds: int = 60
    search_days: int = 7
    ephemeris_dir: Path = _ROOT / "resources"
    ephemeris_file: str = "de421.bsp"
    geocoder_url: str = NOMINATIM_REVERSE_URL
    user_agent: str = "Moonsight/1.0"
    http_timeout: float = 10.0
    location_timeout: float = 10.0
    default_city: str = "London"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        for name in ("refresh_seconds", "search_days", "http_timeout", "location_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")


def load_settings() -> Settings:
    """Build Settings from MOONSIGHT_* environment variables, loading `.env` first."""
    load_dotenv()
    return Settings(
        refresh_seconds=int(os.getenv("MOONSIGHT_REFRESH_SECONDS", "60")),
        search_days=int(os.getenv("MOONSIGHT_SEARCH_DAYS", "7")),
        ephemeris_dir=Path(os.getenv("MOONSIGHT_EPHEMERIS_DIR", str(_ROOT / "resources"))),
        ephemeris_file=os.getenv("MOONSIGHT_EPHEMERIS_FILE", "de421.bsp"),
        geocoder_url=os.getenv("MOONSIGHT_GEOCODER_URL", NOMINATIM_REVERSE_URL),
        user_agent=os.getenv("MOONSIGHT_USER_AGENT", "Moonsight/1.0"),
        http_timeout=float(os.getenv("MOONSIGHT_HTTP_TIMEOUT", "10")),
        location_timeout=float(os.getenv("MOONSIGHT_LOCATION_TIMEOUT", "10")),
        default_city=os.getenv("MOONSIGHT_DEFAULT_CITY", "London"),
        log_level=os.getenv("MOONSIGHT_LOG_LEVEL", "INFO").upper(),
    )
