"""
lexdesk.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (JWT secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_JWT_SECRET = "dev-secret-change-me"


class Settings(BaseSettings):
    """
    Env-driven configuration (prefix `LEXDESK_`). Defaults are safe for local dev only.
    """

    model_config = SettingsConfigDict(env_prefix="LEXDESK_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables and plan seeding.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "lexdesk"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth
    auth_scheme: str = "Bearer"
    jwt_alg: str = "HS256"
    jwt_issuer: str = "lexdesk"
    jwt_audience: str = "lexdesk-api"
    jwt_secret: str = Field(default=DEV_JWT_SECRET, repr=False)
    access_token_ttl_minutes: int = Field(default=24 * 60, ge=1)
    refresh_token_ttl_minutes: int = Field(default=7 * 24 * 60, ge=1)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./lexdesk.db"
    # Uploaded document files; created on first upload.
    upload_dir: str = "./uploads"

    # Billing
    trial_plan_name: str = "Teste Gratuito"
    trial_days: int = Field(default=7, ge=0)

    @model_validator(mode="after")
    def check_prod_secret(self) -> Settings:
        if self.env == "prod" and self.jwt_secret == DEV_JWT_SECRET:
            raise ValueError("LEXDESK_JWT_SECRET must be set in prod")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Plan quotas are not configured here; they live in `lexdesk.auth.quotas` as a
# fixed table so that a misconfigured environment cannot loosen them.
