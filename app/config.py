"""
Configuration management for the Movie Lists web application.
Uses Pydantic Settings for environment variable management.
"""

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Movie Lists"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Document store (CouchDB)
    couchdb_url: str = "http://localhost:5984"
    couchdb_user: str = ""
    couchdb_password: str = ""
    users_db: str = "users"
    lists_db: str = "lists"
    comments_db: str = "comments"
    http_timeout: float = 10.0
    """Timeout in seconds for every outbound HTTP call (store and TMDB)."""

    # TMDB
    tmdb_api_key: str = ""
    tmdb_base_url: str = "https://api.themoviedb.org/3"

    # Session
    jwt_secret_key: str = "change-me-in-production-use-secure-random-key"
    jwt_algorithm: str = "HS256"
    session_expire_minutes: int = 60
    session_cookie_name: str = "access_token"
    cookie_secure: bool = False

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """Validate JWT secret is not the default value in production."""
        default_secret = "change-me-in-production-use-secure-random-key"
        if self.environment == "production" and self.jwt_secret_key == default_secret:
            raise ValueError(
                "JWT_SECRET_KEY must be set to a secure random value in production. "
                "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(32))\""
            )
        return self


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
