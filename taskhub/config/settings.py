# taskhub/config/settings.py
# Runtime configuration read from the environment (.env supported)

import os
from typing import List
from dotenv import load_dotenv

load_dotenv()


def _csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Application settings"""

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./taskhub.db")

    # JWT
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
    ALGORITHM = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))

    # CORS
    CORS_ORIGINS = _csv(os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5173,http://localhost:3000,http://127.0.0.1:3000",
    ))

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Notification feed
    DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", 10))
    MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", 100))
    WATCHED_FEED_LIMIT = int(os.getenv("WATCHED_FEED_LIMIT", 50))

    # Admin chat
    GENERAL_CHANNEL_EMAIL = os.getenv("GENERAL_CHANNEL_EMAIL", "all@subadmin.com")


settings = Settings()
