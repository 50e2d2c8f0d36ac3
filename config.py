"""
Configuration management using Pydantic Settings.
Loads environment variables from .env file.

Both the admin service and the download service read the same settings;
admin-only values have defaults so the download service can start without them.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Object storage (any S3-compatible endpoint, e.g. IBM COS)
    cos_endpoint: Optional[str] = None
    aws_access_key_id: str
    aws_secret_access_key: str
    aws_region: str = "us-east-1"
    s3_bucket_name: str
    s3_connect_timeout: float = 5.0
    s3_read_timeout: float = 30.0

    # Catalog document
    catalog_key: str = "metadata.json"
    catalog_fetch_timeout: float = 10.0

    # Download service
    download_chunk_size: int = 64 * 1024
    download_content_type: str = "application/pdf"

    # Admin service
    download_service_url: str = ""
    admin_email: str = ""
    admin_password: str = ""
    session_secret: str = ""
    session_cookie_secure: bool = True
    session_max_age: int = 3600

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()
