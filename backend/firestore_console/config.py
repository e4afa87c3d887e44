import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

DEFAULT_DATABASE_ID = "(default)"

# Load env from backend/.env.local if exists
_env_path = Path(__file__).resolve().parent.parent / ".env.local"
if _env_path.exists():
    load_dotenv(_env_path)


def _split_csv(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def _as_bool(raw: Optional[str], default: bool = False) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


_DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost",
    "http://127.0.0.1",
]


@dataclass
class Settings:
    service_account_json: Optional[str] = None
    service_account_file: Optional[str] = None
    validate_on_startup: bool = False
    databases: List[str] = field(default_factory=lambda: [DEFAULT_DATABASE_ID])
    cors_origins: List[str] = field(default_factory=lambda: list(_DEV_ORIGINS))
    default_page_size: int = 50
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.environ
        databases = _split_csv(env.get("FIRESTORE_DATABASES"))
        # "(default)" is always offered, and always first
        databases = [DEFAULT_DATABASE_ID] + [d for d in databases if d != DEFAULT_DATABASE_ID]
        return cls(
            service_account_json=env.get("FIREBASE_SERVICE_ACCOUNT") or None,
            service_account_file=env.get("FIREBASE_SERVICE_ACCOUNT_FILE") or None,
            validate_on_startup=_as_bool(env.get("FIREBASE_VALIDATE_ON_STARTUP")),
            databases=databases,
            cors_origins=_split_csv(env.get("CORS_ORIGINS")) or list(_DEV_ORIGINS),
            default_page_size=int(env.get("DEFAULT_PAGE_SIZE", "50")),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            log_file=env.get("LOG_FILE") or None,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings.from_env()
