from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "sqlite+aiosqlite:///./midtrans_gateway.db"

    # Application URLs
    frontend_url: str = "http://localhost:3000"

    # Internal API security
    checkout_api_key: str = ""

    # Midtrans production credentials
    midtrans_merchant_id: str = ""
    midtrans_client_key: str = ""
    midtrans_server_key: str = ""

    # Midtrans sandbox credentials
    midtrans_sandbox_merchant_id: str = ""
    midtrans_sandbox_client_key: str = ""
    midtrans_sandbox_server_key: str = ""

    midtrans_use_sandbox: bool = True
    midtrans_payment_mode: Literal["popup", "embedded"] = "popup"
    midtrans_default_country_code: str = "IDN"

    # Snap token issuance
    midtrans_request_timeout_seconds: float = 15.0
    midtrans_token_ttl_seconds: int = 3600
    midtrans_max_token_attempts: int = 3
    midtrans_gateway_id: int | None = None

    @field_validator("midtrans_default_country_code", mode="before")
    @classmethod
    def _normalize_country_code(cls, value: object) -> str:
        if value is None:
            return "IDN"
        cleaned = str(value).strip().upper()
        return cleaned or "IDN"


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
