# app/core/settings.py
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "session-files"

    # --- Metadata store ---
    DATABASE_URL: str = "sqlite:///./session_files.db"
    DB_POOL_TIMEOUT: int = 10

    # --- Object store (S3 / R2 / MinIO) ---
    S3_BUCKET: str = "session-files"
    S3_REGION: str = "auto"
    S3_ENDPOINT_URL: Optional[str] = None
    S3_ACCESS_KEY_ID: Optional[str] = None
    S3_SECRET_ACCESS_KEY: Optional[str] = None
    S3_CONNECT_TIMEOUT: float = 3.0
    S3_READ_TIMEOUT: float = 30.0

    # --- Uploads ---
    PRESIGN_EXPIRY_SEC: int = 600
    MAX_UPLOAD_MB: int = 2048
    DIRECT_UPLOAD_MAX_MB: int = 25  # /uploads/simple gaat door dit proces heen
    DEFAULT_UPLOADED_BY: str = "admin"

    # --- Serving ---
    VIEW_CACHE_MAX_AGE: int = 3600
    PROXY_CACHE_MAX_AGE: int = 31536000  # 1 jaar; keys zijn immutable

    # --- Folders ---
    FOLDER_CONFLICT_RETRIES: int = 3

    # --- Web / logging ---
    ALLOWED_ORIGINS: list[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()  # leest .env
