"""Application configuration management."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment or `.env`."""

    model_config = SettingsConfigDict(
        env_file=(".env",),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    alchemy_api_key: str = Field(..., alias="ALCHEMY_API_KEY")
    gemini_api_key: str = Field(..., alias="GEMINI_API_KEY")
    coingecko_api_key: str = Field(..., alias="COINGECKO_API_KEY")

    gemini_model: str = Field(
        default="gemini-1.5-flash-latest",
        alias="GEMINI_MODEL",
    )
    alchemy_network: str = Field(default="eth-mainnet", alias="ALCHEMY_NETWORK")
    coingecko_base_url: str = Field(
        default="https://api.coingecko.com/api/v3",
        alias="COINGECKO_BASE_URL",
    )

    planner_prompt_file: Optional[Path] = Field(
        default=None,
        alias="PLANNER_PROMPT_FILE",
    )
    tokens_json: Optional[Path] = Field(default=None, alias="TOKENS_JSON")
    collections_json: Optional[Path] = Field(default=None, alias="COLLECTIONS_JSON")

    planner_confidence_threshold: float = Field(
        default=0.3,
        alias="PLANNER_CONFIDENCE_THRESHOLD",
        ge=0.0,
        le=1.0,
    )
    llm_timeout_seconds: float = Field(
        default=15.0, alias="LLM_TIMEOUT_SECONDS", gt=0, le=120
    )
    http_timeout_seconds: float = Field(
        default=10.0, alias="HTTP_TIMEOUT_SECONDS", gt=0, le=120
    )
    rpc_max_retries: int = Field(default=2, alias="RPC_MAX_RETRIES", ge=0, le=5)
    rpc_backoff_seconds: float = Field(
        default=1.0, alias="RPC_BACKOFF_SECONDS", ge=0, le=30
    )

    resolver_cache_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        alias="RESOLVER_CACHE_TTL_SECONDS",
        ge=1,
    )
    cache_purge_interval_minutes: int = Field(
        default=60,
        alias="CACHE_PURGE_INTERVAL_MINUTES",
        ge=1,
        le=24 * 60,
    )
    max_token_metadata: int = Field(
        default=10, alias="MAX_TOKEN_METADATA", ge=1, le=50
    )
    enable_price_enrichment: bool = Field(
        default=True, alias="ENABLE_PRICE_ENRICHMENT"
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("alchemy_api_key", "gemini_api_key", "coingecko_api_key")
    @classmethod
    def _require_non_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("alchemy_api_key")
    @classmethod
    def _check_alchemy_key_length(cls, value: str) -> str:
        if len(value) < 20:
            raise ValueError(
                f"appears to be incomplete (length {len(value)}, expected 20+)"
            )
        return value

    @property
    def alchemy_rpc_url(self) -> str:
        return f"https://{self.alchemy_network}.g.alchemy.com/v2/{self.alchemy_api_key}"

    @property
    def alchemy_nft_url(self) -> str:
        return (
            f"https://{self.alchemy_network}.g.alchemy.com/nft/v3/"
            f"{self.alchemy_api_key}"
        )

    @property
    def alchemy_data_url(self) -> str:
        return f"https://api.g.alchemy.com/data/v1/{self.alchemy_api_key}"


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Return cached Settings instance, raising a helpful message on failure."""
    try:
        return Settings()
    except ValidationError as exc:  # pragma: no cover - configuration failure visible on boot
        raise RuntimeError(f"Invalid configuration: {exc}") from exc


__all__ = ["Settings", "load_settings"]
