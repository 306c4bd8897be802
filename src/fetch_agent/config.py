from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the fetch agent."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Copilot chat-completion API (OpenAI compatible)
    copilot_api_base_url: str = Field(
        default="https://api.githubcopilot.com/", alias="COPILOT_API_BASE_URL"
    )
    copilot_model: str = Field(default="gpt-4o", alias="COPILOT_MODEL")

    # Request signature verification
    github_keys_uri: str = Field(
        default="https://api.github.com/meta/public_keys/copilot_api",
        alias="GITHUB_KEYS_URI",
    )
    verify_signatures: bool = Field(default=True, alias="VERIFY_SIGNATURES")
    keys_timeout_seconds: float = Field(default=10.0, alias="KEYS_TIMEOUT_SECONDS")

    # Guarded outbound fetch
    fetch_timeout_seconds: float = Field(default=5.0, alias="FETCH_TIMEOUT_SECONDS")
    fetch_max_response_chars: int = Field(default=3750, alias="FETCH_MAX_RESPONSE_CHARS")
    # Off by default: only literal addresses are checked against the reserved table
    resolve_hostnames: bool = Field(default=False, alias="RESOLVE_HOSTNAMES")

    # System prompt
    hardened_prompt: bool = Field(default=True, alias="HARDENED_PROMPT")
    system_prompt: str | None = Field(default=None, alias="SYSTEM_PROMPT")

    # FastAPI configuration
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=9121, alias="APP_PORT")
    debug: bool = Field(default=False, alias="DEBUG")


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings so multiple imports share a single instance."""

    return Settings()  # type: ignore[call-arg]
