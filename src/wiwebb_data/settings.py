"""
wiwebb_data.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for every layer.
- Hide secrets from repr/logging (identity-provider key, JWT secret).
- Offer a cached settings instance; configuration is read once, never hot-reloaded.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Single settings object injected into the composition root (`WiwebbClient`).
    Defaults are safe for local development against the dev server.
    """

    model_config = SettingsConfigDict(env_prefix="WIWEBB_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "wiwebb-data"
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Dual-backend switch: True routes every data-access function to the simulated store.
    use_mock_data: bool = False

    # Remote backend
    api_base_url: str = "http://127.0.0.1:8000/api/v1"
    request_timeout_s: float = 30.0
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay_s: float = Field(default=0.1, ge=0)

    # Identity provider
    identity_base_url: str | None = None
    identity_api_key: str = Field(default="", repr=False)
    token_refresh_margin_s: int = 60

    # Persisted auth state (credential + last-known profile snapshot)
    storage_url: str = "sqlite+aiosqlite:///./wiwebb_data.db"

    # Simulated backend
    mock_latency_min_ms: int = Field(default=200, ge=0)
    mock_latency_max_ms: int = Field(default=500, ge=0)
    mock_token_ttl_s: int = 3600

    # JWT parameters for tokens minted by the simulated identity provider / dev server.
    jwt_alg: str = "HS256"
    jwt_issuer: str = "wiwebb-identity"
    jwt_audience: str = "wiwebb-api"
    jwt_secret: str = Field(default="wiwebb-dev-secret-change-me-before-deploying", repr=False)

    # Dev server
    devserver_host: str = "127.0.0.1"
    devserver_port: int = 8000

    @model_validator(mode="after")
    def check_latency_window(self) -> Settings:
        if self.mock_latency_max_ms < self.mock_latency_min_ms:
            raise ValueError("mock_latency_max_ms must be >= mock_latency_min_ms")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars; the backend flag is resolved exactly once per process.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Every other module depends on this one; add fields here rather than reading os.environ.
