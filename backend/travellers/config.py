"""Application configuration."""
from collections import Counter
from functools import lru_cache
import math
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Travellers"
    debug: bool = False
    environment: str = "development"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]
    frontend_domain: str = "http://localhost:5173"

    # Database
    database_url: str = "sqlite:///./data/travellers.db"

    # Auth
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 30
    reset_token_expire_minutes: int = 15
    session_cookie_name: str = "sessionId"
    access_cookie_name: str = "accessToken"
    refresh_cookie_name: str = "refreshToken"
    cookie_path: str = "/"
    cookie_samesite: str = "none"
    cookie_secure: bool = True

    # Email
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = "noreply@travellers.app"

    # Image storage
    cloudinary_cloud_name: str | None = None
    cloudinary_api_key: str | None = None
    cloudinary_api_secret: str | None = None
    max_image_bytes: int = 2 * 1024 * 1024

    # Rate limiting (fixed window, per client IP)
    rate_limit_enabled: bool = True
    general_rate_limit: int | None = None
    general_rate_window_seconds: int = 15 * 60
    auth_rate_limit: int | None = None
    auth_rate_window_seconds: int = 60 * 60
    # Reverse proxies in front of the app; 0 means use the socket peer address
    trusted_proxy_hops: int = 1

    # Paths
    base_dir: Path = Path(__file__).parent
    categories_file: Path = base_dir / "configs" / "categories.yaml"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def effective_general_rate_limit(self) -> int:
        if self.general_rate_limit is not None:
            return self.general_rate_limit
        return 100 if self.is_production else 5000

    @property
    def effective_auth_rate_limit(self) -> int:
        if self.auth_rate_limit is not None:
            return self.auth_rate_limit
        return 5 if self.is_production else 100

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, value: str) -> str:
        """Fail closed if SECRET_KEY is weak or placeholder quality."""
        if not value:
            raise ValueError("SECRET_KEY must be set.")

        if len(value) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")

        weak_values = {"changeme", "changeme-in-production", "secret", "password", "test"}
        lowered = value.lower()
        if lowered in weak_values or "changeme" in lowered:
            raise ValueError("SECRET_KEY must not be a placeholder value.")

        counts = Counter(value)
        entropy_per_char = -sum((count / len(value)) * math.log2(count / len(value)) for count in counts.values())
        estimated_entropy_bits = entropy_per_char * len(value)
        if estimated_entropy_bits < 100:
            raise ValueError("SECRET_KEY entropy is too low; use a cryptographically random value.")

        return value

    @field_validator("cookie_samesite")
    @classmethod
    def validate_cookie_samesite(cls, value: str) -> str:
        lowered = value.lower()
        if lowered not in {"lax", "strict", "none"}:
            raise ValueError("COOKIE_SAMESITE must be one of: lax, strict, none.")
        return lowered


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
