import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Load env vars from .env
load_dotenv()

DEFAULT_CSV_PATH = "data/gita-shloks.csv"
DEFAULT_FALLBACK_CSV_PATH = "public/data/gita-shloks.csv"


class Settings(BaseModel):
    csv_path: str = DEFAULT_CSV_PATH
    fallback_csv_path: Optional[str] = DEFAULT_FALLBACK_CSV_PATH
    cache_enabled: bool = False
    mongo_uri: Optional[str] = None
    mongo_db: str = "tamohar"
    frontend_url: str = "http://localhost:3000"
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"

    @property
    def cors_origins(self) -> list[str]:
        # FRONTEND_URL may list several origins separated by commas
        return [o.strip() for o in self.frontend_url.split(",") if o.strip()]


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def get_settings() -> Settings:
    return Settings(
        csv_path=os.getenv("SHLOK_CSV_PATH", DEFAULT_CSV_PATH),
        fallback_csv_path=os.getenv(
            "SHLOK_FALLBACK_CSV_PATH", DEFAULT_FALLBACK_CSV_PATH
        )
        or None,
        cache_enabled=_env_flag("SHLOK_CACHE_ENABLED"),
        mongo_uri=os.getenv("MONGO_URI") or None,
        mongo_db=os.getenv("MONGO_DB", "tamohar"),
        frontend_url=os.getenv("FRONTEND_URL", "http://localhost:3000"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3001")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
