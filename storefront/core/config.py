"""Client configuration with environment validation."""

from pathlib import Path
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # --- Backend ---
    API_BASE_URL: str = "http://127.0.0.1:8000"
    ORDER_REQUEST_TIMEOUT_SECONDS: float = 15.0
    DELIVERY_CONFIG_TIMEOUT_SECONDS: float = 10.0

    # --- Local storage ---
    PERSONAL_INFO_PATH: Path | None = None
    CHECKOUT_CACHE_TTL_SECONDS: int = 30 * 60

    # --- Store messaging ---
    STORE_CITY: str = "Lima Duarte (MG)"
    DEFAULT_STORE_WHATSAPP: str = "5532999999999"
    WHATSAPP_BASE_URL: str = "https://wa.me"

    LOG_LEVEL: str = "INFO"

    @field_validator("ORDER_REQUEST_TIMEOUT_SECONDS", "DELIVERY_CONFIG_TIMEOUT_SECONDS")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Request timeouts must be positive.")
        return value

    @field_validator("CHECKOUT_CACHE_TTL_SECONDS")
    @classmethod
    def validate_cache_ttl(cls, value: int) -> int:
        if value < 0:
            raise ValueError("CHECKOUT_CACHE_TTL_SECONDS must not be negative.")
        return value

    @field_validator("API_BASE_URL", "WHATSAPP_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


settings = Settings()
