"""Configuration schema and loader."""

import os
from pathlib import Path

import yaml
from loguru import logger
from pydantic import BaseModel, Field, field_validator

from relay.telegram.events import UPDATE_KINDS, MediaKind


STRATEGY_NAMES = ("copy", "reupload")


class ConfigError(Exception):
    """Raised at startup when the configuration cannot run the relay."""


class TelegramConfig(BaseModel):
    token: str = ""
    secret_token: str = ""  # compared against X-Telegram-Bot-Api-Secret-Token
    api_base: str = "https://api.telegram.org"
    request_timeout: float = Field(default=30.0, gt=0)


class RelayConfig(BaseModel):
    update_kinds: list[str] = Field(default_factory=lambda: list(UPDATE_KINDS))
    strategy: str = "copy"  # copy, reupload
    strategies: dict[str, str] = Field(default_factory=dict)  # per media kind override
    reupload_as_document: bool = False
    max_media_duration: int | None = Field(default=None, ge=1)  # seconds
    max_download_bytes: int = Field(default=20 * 1024 * 1024, ge=1)
    delete_original: bool = True

    @field_validator("update_kinds")
    @classmethod
    def _check_update_kinds(cls, value: list[str]) -> list[str]:
        unknown = [kind for kind in value if kind not in UPDATE_KINDS]
        if unknown:
            raise ValueError(f"Unknown update kinds: {', '.join(unknown)}")
        return value

    @field_validator("strategy")
    @classmethod
    def _check_strategy(cls, value: str) -> str:
        if value not in STRATEGY_NAMES:
            raise ValueError(f"Unknown strategy '{value}' (expected one of: {', '.join(STRATEGY_NAMES)})")
        return value

    @field_validator("strategies")
    @classmethod
    def _check_strategies(cls, value: dict[str, str]) -> dict[str, str]:
        kinds = {kind.value for kind in MediaKind}
        for kind, name in value.items():
            if kind not in kinds:
                raise ValueError(f"Unknown media kind '{kind}'")
            if name not in STRATEGY_NAMES:
                raise ValueError(f"Unknown strategy '{name}' for {kind}")
        return value

    def strategy_for(self, kind: MediaKind) -> str:
        return self.strategies.get(kind.value, self.strategy)


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    paths: list[str] = Field(default_factory=lambda: ["/", "/webhook"])


class LoggingConfig(BaseModel):
    level: str = "INFO"


class Config(BaseModel):
    """Root configuration."""
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    relay: RelayConfig = Field(default_factory=RelayConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def validate_for_startup(self) -> None:
        """Fail fast on settings that would break every request."""
        if not self.telegram.token:
            raise ConfigError(
                "Telegram bot token not configured (set telegram.token or BOT_TOKEN)"
            )


# Environment variable -> (section, field)
_ENV_OVERRIDES = {
    "BOT_TOKEN": ("telegram", "token"),
    "TELEGRAM_SECRET_TOKEN": ("telegram", "secret_token"),
    "TELEGRAM_API_BASE": ("telegram", "api_base"),
    "RELAY_LOG_LEVEL": ("logging", "level"),
}


def load_config(path: str | Path = "config.yaml") -> Config:
    """Load config from YAML file, then apply environment overrides."""
    p = Path(path).expanduser()
    data: dict = {}
    if p.exists():
        with open(p.resolve()) as f:
            data = yaml.safe_load(f) or {}
        # An empty section such as "telegram:" loads as None.
        data = {k: v for k, v in data.items() if v is not None}
    else:
        logger.debug(f"Config file {p} not found, using defaults")

    for env_key, (section, field) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_key)
        if value:
            section_data = data.get(section) or {}
            section_data[field] = value
            data[section] = section_data

    return Config(**data)
