from pydantic_settings import BaseSettings
from typing import List
import os


class Settings(BaseSettings):
    # App Configuration
    APP_NAME: str = "TutorHub API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS
    ALLOWED_HOSTS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:3001", "http://127.0.0.1:3001"]

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./tutorhub.db")
    STORE_RETRY_ATTEMPTS: int = 3  # Retries of a read-modify-write unit on serialization failure

    # Authentication
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key-here")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Scheduling
    SESSION_DURATION_MINUTES: int = 60
    BOOKING_COLLISION_WINDOW_MINUTES: int = 60
    STRICT_AVAILABILITY_WINDOW: bool = False  # Require the session to fit inside a slot window

    class Config:
        env_file = ".env"
        case_sensitive = True


# Create settings instance
settings = Settings()

# Deployed frontends are added by origin, comma separated
if os.getenv("ENVIRONMENT") == "production" and os.getenv("FRONTEND_ORIGINS"):
    settings.ALLOWED_HOSTS.extend(
        origin.strip() for origin in os.getenv("FRONTEND_ORIGINS").split(",") if origin.strip()
    )
