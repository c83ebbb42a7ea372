from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from studylens.domain import constants as c

CONFIG_FILE = Path.home() / ".config/studylens/config.toml"


class AppConfig(BaseSettings):
    """
    Configuration model for studylens.
    Supports loading from:
    1. Config file (~/.config/studylens/config.toml)
    2. Environment variables (STUDYLENS_*)
    3. Manual overrides (CLI, HTTP)
    """

    model_config = SettingsConfigDict(
        env_prefix="STUDYLENS_",
        toml_file=CONFIG_FILE,
        extra="ignore",
    )

    # Storage
    backend: Literal["memory", "file"] = "file"
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/studylens")

    # Calendar bucketing
    timezone: str = "UTC"

    # Housekeeping
    retention_days: int = Field(default=c.OUTCOME_RETENTION_DAYS, gt=0)
    verbose: int = 1

    # Engine tunables
    accuracy_threshold: float = Field(default=c.LOW_ACCURACY_THRESHOLD, ge=0, le=1)
    mastery_threshold: float = Field(default=c.MASTERY_THRESHOLD, ge=0, le=1)
    improvement_rate: float = Field(default=c.IMPROVEMENT_RATE, gt=0)
    difficult_card_limit: int = Field(default=c.DIFFICULT_CARD_LIMIT, ge=0)
    peer_average_accuracy: float = Field(default=c.PEER_AVERAGE_ACCURACY, gt=0, le=1)
    streak_bonus_every: int = Field(default=c.STREAK_BONUS_EVERY, gt=0)
    level_beginner_max: int = c.LEVEL_BEGINNER_MAX
    level_intermediate_max: int = c.LEVEL_INTERMEDIATE_MAX
    level_advanced_max: int = c.LEVEL_ADVANCED_MAX

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Earlier sources win: init overrides, then env, then the TOML file
        if CONFIG_FILE.exists():
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=CONFIG_FILE),
            )
        return (init_settings, env_settings)

    @field_validator("data_dir", mode="before")
    @classmethod
    def resolve_data_dir(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @model_validator(mode="after")
    def check_level_thresholds(self) -> "AppConfig":
        if not 0 < self.level_beginner_max < self.level_intermediate_max < self.level_advanced_max:
            raise ValueError(
                "Level thresholds must be positive and strictly ascending: "
                f"{self.level_beginner_max}, {self.level_intermediate_max}, "
                f"{self.level_advanced_max}"
            )
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/studylens/config.toml (if exists)
    3. Environment variables (STUDYLENS_*)
    4. cli_overrides (None values are ignored)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
