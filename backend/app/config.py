"""Application configuration."""
from collections import Counter
from functools import lru_cache
import math

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "SnapWin Admin"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Hosted backend
    backend_url: str
    backend_anon_key: str
    request_timeout_seconds: float = 10.0
    notification_function: str = "admin-send-notification"
    raffle_images_bucket: str = "raffle-images"

    # Admin marker cookie
    session_secret: str
    algorithm: str = "HS256"
    admin_cookie_name: str = "snapwin-admin"
    admin_cookie_max_age_seconds: int = 7 * 24 * 60 * 60
    admin_cookie_secure: bool = True
    admin_cookie_samesite: str = "lax"

    # Paging and batching
    delivery_page_size: int = 50
    campaign_page_size: int = 50
    customer_lookup_batch_size: int = 500
    raffle_lookup_limit: int = 200
    notifications_fetch_limit: int = 400
    report_row_limit: int = 5000
    realtime_debounce_seconds: float = 0.25
    live_cache_max_age_seconds: float = 60.0

    # Change feed webhook; unset disables the endpoint
    change_feed_secret: str | None = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @field_validator("backend_url")
    @classmethod
    def strip_backend_url(cls, value: str) -> str:
        """Require a backend URL and drop any trailing slash."""
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("BACKEND_URL must be set.")
        return value

    @field_validator("backend_anon_key")
    @classmethod
    def validate_anon_key(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("BACKEND_ANON_KEY must be set.")
        return value

    @field_validator("session_secret")
    @classmethod
    def validate_session_secret(cls, value: str) -> str:
        """Fail closed if SESSION_SECRET is weak or placeholder quality."""
        if not value:
            raise ValueError("SESSION_SECRET must be set.")

        if len(value) < 32:
            raise ValueError("SESSION_SECRET must be at least 32 characters.")

        weak_values = {"changeme", "changeme-in-production", "secret", "password", "test"}
        lowered = value.lower()
        if lowered in weak_values or "changeme" in lowered:
            raise ValueError("SESSION_SECRET must not be a placeholder value.")

        counts = Counter(value)
        entropy_per_char = -sum((count / len(value)) * math.log2(count / len(value)) for count in counts.values())
        estimated_entropy_bits = entropy_per_char * len(value)
        if estimated_entropy_bits < 100:
            raise ValueError("SESSION_SECRET entropy is too low; use a cryptographically random value.")

        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
