"""
Configuration management for action-control.

This module uses Pydantic's BaseSettings to layer configuration from CLI
flags, environment variables, a .env file and an optional YAML config file.
A Settings instance is built once per invocation by `load_settings` and
passed to whatever needs it.
"""
from pathlib import Path
from typing import Any, Optional, Tuple, Type

from pydantic import AliasChoices, Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from action_control.exceptions import FatalConfigError

CONFIG_SEARCH_PATHS = (
    Path("config.yaml"),
    Path.home() / ".config" / "action-control" / "config.yaml",
    Path.home() / "config.yaml",
)


class Settings(BaseSettings):
    """
    Application settings.

    Environment variables use the ACTION_CONTROL_ prefix, e.g.
    ACTION_CONTROL_ORGANIZATION. The token is also read from GITHUB_TOKEN.
    """

    # GitHub
    github_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("github_token", "ACTION_CONTROL_GITHUB_TOKEN", "GITHUB_TOKEN"),
    )
    api_url: str = "https://api.github.com"

    # Target
    organization: Optional[str] = None
    repository: Optional[str] = None  # owner/repo

    # Output
    output_format: str = "markdown"

    # Enforce
    policy_file: str = "policy.yaml"
    policy_content: Optional[str] = None
    ignore_local_policy: bool = False
    local_policy_path: str = ".github/action-control-policy.yaml"

    # Export
    export_file: str = "policy.yaml"
    include_versions: bool = False
    include_custom: bool = False
    policy_mode: str = "allow"

    # Fetching
    max_concurrency: int = Field(default=8, ge=1)
    fetch_timeout: float = Field(default=60.0, gt=0)  # seconds per repository

    model_config = SettingsConfigDict(
        env_prefix="ACTION_CONTROL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
        )

    def require_token(self) -> str:
        if not self.github_token:
            raise FatalConfigError(
                "GitHub token not provided. Set it in config.yaml or as the "
                "GITHUB_TOKEN / ACTION_CONTROL_GITHUB_TOKEN environment variable."
            )
        return self.github_token

    def require_target(self) -> None:
        if not self.organization and not self.repository:
            raise FatalConfigError(
                "Either organization (--org) or specific repository (--repo) must be provided."
            )


def find_config_file(explicit: Optional[str] = None) -> Optional[Path]:
    """Return the config file to read: the explicit path, else the first that exists."""
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise FatalConfigError(f"Config file not found: {path}")
        return path
    for candidate in CONFIG_SEARCH_PATHS:
        if candidate.is_file():
            return candidate
    return None


def load_settings(config_file: Optional[str] = None, **overrides: Any) -> Settings:
    """
    Build the settings for one invocation.

    Args:
        config_file: Explicit YAML config path; otherwise the search paths apply.
        **overrides: Values from CLI flags. None means "not given".

    Raises:
        FatalConfigError: If the config file is missing or a value is invalid.
    """
    path = find_config_file(config_file)

    class FileSettings(Settings):
        model_config = SettingsConfigDict(yaml_file=path)

    try:
        return FileSettings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        raise FatalConfigError(f"Invalid configuration: {e}") from e
