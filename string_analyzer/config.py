import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables only for local development
if os.path.exists(".env"):
    load_dotenv()

STORAGE_BACKENDS = ("auto", "memory", "database")


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str] = None
    storage_backend: str = "auto"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000


def normalize_database_url(url: Optional[str]) -> Optional[str]:
    """Point bare mysql:// URLs at the PyMySQL driver"""
    if not url:
        return None
    # SQLAlchemy expects "mysql+pymysql://"
    if url.startswith("mysql://"):
        return url.replace("mysql://", "mysql+pymysql://", 1)
    return url


def get_settings() -> Settings:
    """Read settings from the environment"""
    backend = os.getenv("STORAGE_BACKEND", "auto").strip().lower()
    if backend not in STORAGE_BACKENDS:
        logger.warning(f"Unknown STORAGE_BACKEND '{backend}', using 'auto'")
        backend = "auto"

    return Settings(
        database_url=normalize_database_url(os.getenv("DATABASE_URL")),
        storage_backend=backend,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", 8000)),
    )
