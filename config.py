"""Application settings and logging setup for Housing Hub."""
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./housing_hub.db"

    # JWT
    SECRET_KEY: str = "super-secret-key-change-this"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Image host
    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_API_KEY: Optional[str] = None
    CLOUDINARY_API_SECRET: Optional[str] = None

    # Text generation
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash-preview-09-2025"
    GEMINI_TIMEOUT: Optional[float] = None

    # Chat
    AUTO_REPLY_KEYWORD: str = "help"
    AUTO_REPLY_DELAY_SECONDS: float = 1.5

    # App
    APP_NAME: str = "Housing Hub API"
    CORS_ORIGINS: List[str] = [
        "https://housing-hub-frontend-main.onrender.com",
        "http://localhost:3000",
    ]
    LOG_LEVEL: str = "INFO"


settings = Settings()


def configure_logging() -> None:
    """Installs a single stdout handler on the root logger."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    root.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
