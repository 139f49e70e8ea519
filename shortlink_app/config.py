from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = False

    # Application
    app_name: str = "Shortlink"
    app_version: str = "1.0.0"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = "sqlite:///./shortlink.db"

    # URL Shortener specific
    base_url: str = "http://localhost:8000"
    short_code_length: int = 7
    max_retries: int = 5
    reserved_aliases: List[str] = ["api", "health", "admin", "analytics", "docs", "redoc"]

    # Cache settings
    cache_backend: str = "redis"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl: int = 86400  # 24 hours
    redis_socket_timeout: float = 0.5  # seconds, per command
    cache_backoff_seconds: int = 30  # skip Redis this long after a failure

    # Rate limiting (0 disables)
    rate_limit_per_minute: int = 60

    # CORS
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
