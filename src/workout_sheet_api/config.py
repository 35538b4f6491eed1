"""Configuration settings for the workout sheet API."""
import os
from typing import List, Literal


EnvironmentType = Literal["development", "staging", "production"]

CATEGORIES = ("A", "B", "C", "D", "E")


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


class Settings:
    """Application settings."""

    # Environment
    ENVIRONMENT: EnvironmentType = "development"

    # Ingestion defaults
    DEFAULT_REPETITIONS: str = "10"
    DEFAULT_CATEGORY: str = "A"

    # Caller-imposed limits for pasted blocks and uploads
    MAX_IMPORT_LINES: int = 2000
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # Sharing / branding
    PUBLIC_BASE_URL: str = "http://localhost:3000"
    STUDIO_NAME: str = "Studio"

    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:3001"]

    def __init__(self):
        # Environment
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env in ("development", "staging", "production"):
            self.ENVIRONMENT = env  # type: ignore
        else:
            self.ENVIRONMENT = "development"

        # Ingestion defaults
        self.DEFAULT_REPETITIONS = os.getenv("DEFAULT_REPETITIONS", "10").strip() or "10"
        category = os.getenv("DEFAULT_CATEGORY", "A").strip().upper()
        self.DEFAULT_CATEGORY = category if category in CATEGORIES else "A"

        # Limits
        self.MAX_IMPORT_LINES = _int_env("MAX_IMPORT_LINES", 2000)
        self.MAX_UPLOAD_BYTES = _int_env("MAX_UPLOAD_BYTES", 5 * 1024 * 1024)

        # Sharing / branding
        self.PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000").rstrip("/")
        self.STUDIO_NAME = os.getenv("STUDIO_NAME", "Studio")

        origins = os.getenv("CORS_ORIGINS")
        if origins:
            self.CORS_ORIGINS = [o.strip() for o in origins.split(",") if o.strip()]
        else:
            self.CORS_ORIGINS = ["http://localhost:3000", "http://localhost:3001"]


settings = Settings()
