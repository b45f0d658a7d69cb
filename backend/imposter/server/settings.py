"""Imposter server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from imposter.logic.enums import Difficulty
from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class ImposterServerSettings(BaseSettings):
    model_config = {"env_prefix": "IMPOSTER_"}

    max_sessions: int = Field(default=200, ge=1)
    log_dir: str | None = None
    cors_origins: list[str] = ["http://localhost:8080"]
    word_dir: str = Field(default="backend/data/words", min_length=1)
    default_difficulty: Difficulty = Difficulty.EASY

    clue_seconds: int = Field(default=60, ge=1)
    voting_seconds: int = Field(default=60, ge=1)
    disconnect_grace_seconds: float = Field(default=5.0, ge=0)
    min_players: int = Field(default=2, ge=1, le=12)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings
