"""Configuration loading from .env file."""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file
load_dotenv()


class Config:
    """Application configuration."""

    # TMDB
    TMDB_API_KEY: str = os.getenv("TMDB_API_KEY", "")

    # Gemini (persona text)
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

    # Enrichment
    ENRICH_BATCH_SIZE: int = int(os.getenv("ENRICH_BATCH_SIZE", "5"))
    ENRICH_BATCH_DELAY: float = float(os.getenv("ENRICH_BATCH_DELAY", "1.0"))  # seconds

    # Stats
    MINUTES_PER_FILM: int = int(os.getenv("MINUTES_PER_FILM", "105"))

    # Options
    OUTPUT_DIR: Path = Path(os.getenv("OUTPUT_DIR", "./output"))
    DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", "data/wrapped.db"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Web interface
    WEB_HOST: str = os.getenv("WEB_HOST", "0.0.0.0")
    WEB_PORT: int = int(os.getenv("WEB_PORT", "19876"))

    @classmethod
    def validate(cls) -> list[str]:
        """Validate configuration. Returns list of errors."""
        errors = []

        if cls.LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"LOG_LEVEL '{cls.LOG_LEVEL}' is not a valid logging level")

        if cls.ENRICH_BATCH_SIZE < 1:
            errors.append("ENRICH_BATCH_SIZE must be at least 1")

        if cls.ENRICH_BATCH_DELAY < 0:
            errors.append("ENRICH_BATCH_DELAY must not be negative")

        if cls.MINUTES_PER_FILM < 1:
            errors.append("MINUTES_PER_FILM must be at least 1")

        return errors

    @classmethod
    def enrichment_enabled(cls) -> bool:
        return bool(cls.TMDB_API_KEY)

    @classmethod
    def ensure_directories(cls) -> None:
        """Create output and logs directories if they don't exist."""
        cls.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        cls.DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
        Path("logs").mkdir(parents=True, exist_ok=True)
