"""Application configuration — loaded from environment variables."""

from __future__ import annotations

from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from chat_relay.domain.exceptions import ConfigMissingError


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openai_api_key: SecretStr
    openai_model: str = ""
    openai_base_url: str | None = None
    openai_max_retries: int = 2
    api_gw_endpoint: str = ""
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000


def load_settings(*, require_push_endpoint: bool = True) -> Settings:
    """Resolve settings once at process start.

    A missing credential, or a missing push endpoint when the transport needs
    one, is reported as :class:`ConfigMissingError`.
    """
    try:
        settings = Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        fields = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
        raise ConfigMissingError(
            f"Invalid or missing configuration: {', '.join(fields)}"
        ) from exc

    if not settings.openai_api_key.get_secret_value():
        raise ConfigMissingError(
            "OpenAI API key not found in environment variable OPENAI_API_KEY"
        )
    if require_push_endpoint and not settings.api_gw_endpoint:
        raise ConfigMissingError(
            "API Gateway Endpoint not found in environment variable API_GW_ENDPOINT"
        )
    return settings
