from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from memora.domain.constants import (
    DEFAULT_CARDS_FILE,
    DEFAULT_INTERESTS_FILE,
    LOG_FILE_NAME,
    UPCOMING_WINDOW_DAYS,
)
from memora.domain.errors import ConfigError


def _config_files() -> list[Path]:
    # Re-evaluated on every call so a changed HOME is honoured
    return [
        Path.home() / ".config/memora/config.toml",
        Path.home() / ".memora.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for memora.
    Supports loading from:
    1. Environment variables (MEMORA_*)
    2. Config file (~/.config/memora/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="MEMORA_",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".local/share/memora")
    cards_file: str = DEFAULT_CARDS_FILE
    interests_file: str = DEFAULT_INTERESTS_FILE
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/memora/logs")

    # Scheduling
    include_failed_priority: bool = True
    upcoming_window_days: int = Field(default=UPCOMING_WINDOW_DAYS, ge=0)

    verbose: int = Field(default=1, ge=0)

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

        # Find the first existing file
        toml_file = None
        for f in _config_files():
            if f.exists():
                toml_file = f
                break

        # Earlier sources win: CLI overrides, then env, then the file
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def resolve_dir(cls, v: Any) -> Path:
        return Path(v).expanduser().resolve()

    @property
    def cards_path(self) -> Path:
        return self.data_dir / self.cards_file

    @property
    def interests_path(self) -> Path:
        return self.data_dir / self.interests_file

    @property
    def log_path(self) -> Path:
        return self.log_dir / LOG_FILE_NAME

    @property
    def markdown_dir(self) -> Path:
        return self.data_dir / "markdown"


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/memora/config.toml (if exists)
    3. Environment variables (MEMORA_*)
    4. cli_overrides (passed from Typer)
    """
    # Typer passes None for options the user did not set
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    try:
        return AppConfig(**overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
