"""
Configuration settings for the application
"""

import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./whispqr.db")
    USE_FIREBASE: bool = os.getenv("USE_FIREBASE", "false").lower() in ("1", "true", "yes")
    FIREBASE_CREDENTIALS_JSON: str | None = os.getenv("FIREBASE_CREDENTIALS_JSON")
    FIREBASE_CREDENTIALS_FILE: str | None = os.getenv("FIREBASE_CREDENTIALS_FILE")
    FIREBASE_CREDENTIALS_B64: str | None = os.getenv("FIREBASE_CREDENTIALS_B64")

    # Security
    # Accepted as a host bearer token when Firebase auth is disabled (local development)
    DEV_HOST_TOKEN: str = os.getenv("DEV_HOST_TOKEN", "host_token_123")
    DEV_HOST_ID: str = os.getenv("DEV_HOST_ID", "dev-host")
    DEV_HOST_NAME: str = os.getenv("DEV_HOST_NAME", "Dev Host")

    # Application
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:8000")
    DEEP_LINK_SCHEME: str = os.getenv("DEEP_LINK_SCHEME", "whispqr")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Events
    EVENT_LIFETIME_HOURS: int = 48
    CODE_COLLISION_RETRIES: int = 5

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://localhost:8081",
        "http://localhost:19006",
    ]

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 30

    class Config:
        env_file = ".env"

settings = Settings()
