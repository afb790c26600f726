# storefront/config/settings.py

# Centralized application settings management using Pydantic Settings.

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- Application ---
    APP_NAME: str = "Storefront"
    APP_ENV: str = "development" # "production" turns on secure cookies and short access logs
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # --- Database ---
    MONGODB_URI: str = "mongodb://localhost:27017"
    DB_NAME: str = "storefront"

    # --- JWT ---
    SECRET_KEY: str = "change-me" # Critical: override in .env
    ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "storefront"
    JWT_AUDIENCE: str = "auth"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60
    AUTH_COOKIE_MAX_AGE_SECONDS: int = 7 * 24 * 60 * 60

    # --- Hashing ---
    HASH_ROUNDS: int = 12
    HASH_SECRET: str = "" # pepper prepended to passwords before hashing

    # --- Password reset ---
    RESET_TOKEN_TTL_SECONDS: int = 600

    # --- Email (resend) ---
    RESEND_API_KEY: str = ""
    SENDER_EMAIL: str = "onboarding@resend.dev"

    # --- Uploads ---
    UPLOAD_DIR: str = "uploads"
    MAX_FILE_SIZE: int = 2 * 1024 * 1024 # 2MB, do not go above 5MB
    MAX_FILE_COUNT: int = 10
    ALLOWED_MIME_TYPES: List[str] = ["image/jpeg", "image/jpg", "image/png"]
    IMAGE_WIDTH: int = 400
    IMAGE_HEIGHT: int = 400
    IMAGE_QUALITY: int = 70
    IMAGE_EFFORT: int = 4

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
    )

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"


# Create a settings instance that loads values on import
settings = Settings()
