"""Configuration management for pipectl using Pydantic."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from pipectl.core.exceptions import ConfigError
from pipectl.core.logging import LogLevel
from pipectl.core.output import OutputFormat
from pipectl.core.utils import get_config_dir, merge_dicts

DEFAULT_TRANSITION_STATUSES = [
    "booting",
    "building",
    "cloning",
    "deploying",
    "destroying",
    "pending",
    "progressing",
]


class PipelineServiceConfig(BaseModel):
    """Remote pipeline service configuration."""

    url: str | None = None
    token: str | None = None
    namespace: str | None = None
    timeout: int = 30
    insecure: bool = False

    def get_url(self) -> str | None:
        """Get service URL from config or environment."""
        return os.environ.get("PIPECTL_URL") or os.environ.get("OKTETO_URL") or self.url

    def get_token(self) -> str | None:
        """Get API token from config or environment."""
        token = self.token
        if token == "from_env" or token is None:
            token = os.environ.get("PIPECTL_TOKEN") or os.environ.get("OKTETO_TOKEN")
        return token

    def get_namespace(self) -> str | None:
        """Get the default namespace from config or environment."""
        return (
            os.environ.get("PIPECTL_NAMESPACE")
            or os.environ.get("OKTETO_NAMESPACE")
            or self.namespace
        )


class DeployConfig(BaseModel):
    """Pipeline deploy and wait settings."""

    timeout: float = 300  # seconds, 0 waits forever
    wait: bool = False
    poll_interval: float = 1.0
    error_status: str = "error"
    transition_statuses: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TRANSITION_STATUSES)
    )

    @field_validator("poll_interval")
    @classmethod
    def validate_poll_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("poll_interval must be positive")
        return v


class ProfileConfig(BaseModel):
    """Profile configuration grouping all service settings."""

    pipeline: PipelineServiceConfig = Field(default_factory=PipelineServiceConfig)
    deploy: DeployConfig = Field(default_factory=DeployConfig)


class GlobalConfig(BaseModel):
    """Global settings."""

    output_format: OutputFormat = OutputFormat.TABLE
    color: str = "auto"  # auto, always, never
    verbosity: LogLevel = LogLevel.WARNING
    dry_run: bool = False

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        if v not in ("auto", "always", "never"):
            raise ValueError("color must be 'auto', 'always', or 'never'")
        return v


class PipeCtlConfig(BaseModel):
    """Main configuration model."""

    model_config = {"populate_by_name": True}

    version: str = "1"
    global_settings: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    profiles: dict[str, ProfileConfig] = Field(default_factory=lambda: {"default": ProfileConfig()})

    def get_profile(self, name: str | None = None) -> ProfileConfig:
        """Get a profile by name, defaulting to 'default'."""
        profile_name = name or "default"
        if profile_name not in self.profiles:
            raise ConfigError(f"Profile '{profile_name}' not found")
        return self.profiles[profile_name]


class ConfigLoader:
    """Loads and merges configuration from multiple sources."""

    CONFIG_FILENAMES = ["pipectl.yaml", "pipectl.yml", ".pipectl.yaml", ".pipectl.yml"]

    def __init__(self):
        self._config: PipeCtlConfig | None = None

    def load(self, config_file: str | Path | None = None) -> PipeCtlConfig:
        """Load configuration from files.

        Priority (highest to lowest):
        1. Explicitly specified config file
        2. Project config (./pipectl.yaml)
        3. User config (~/.pipectl/config.yaml)

        Args:
            config_file: Optional explicit config file path

        Returns:
            Merged configuration
        """
        configs: list[dict[str, Any]] = []

        user_config_path = get_config_dir() / "config.yaml"
        if user_config_path.exists():
            configs.append(self._load_yaml_file(user_config_path))

        project_config = self._find_project_config()
        if project_config:
            configs.append(self._load_yaml_file(project_config))

        if config_file:
            config_path = Path(config_file)
            if not config_path.exists():
                raise ConfigError(f"Config file not found: {config_file}")
            configs.append(self._load_yaml_file(config_path))

        merged: dict[str, Any] = {}
        for config in configs:
            merged = merge_dicts(merged, config)

        try:
            self._config = PipeCtlConfig(**merged)
        except ValueError as e:
            raise ConfigError(f"Invalid configuration: {e}")
        return self._config

    def _find_project_config(self) -> Path | None:
        """Find project config file in current or parent directories."""
        current = Path.cwd()

        while current != current.parent:
            for filename in self.CONFIG_FILENAMES:
                config_path = current / filename
                if config_path.exists():
                    return config_path
            current = current.parent

        return None

    def _load_yaml_file(self, path: Path) -> dict[str, Any]:
        """Load a YAML config file."""
        try:
            with open(path) as f:
                content = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}")

        if not isinstance(content, dict):
            raise ConfigError(f"Invalid config in {path}: expected a mapping")
        return content


# Global config loader instance
_config_loader = ConfigLoader()


def load_config(config_file: str | Path | None = None) -> PipeCtlConfig:
    """Load pipectl configuration.

    Args:
        config_file: Optional explicit config file path

    Returns:
        Loaded configuration
    """
    return _config_loader.load(config_file)


def get_default_config() -> PipeCtlConfig:
    """Get default configuration without loading from files."""
    return PipeCtlConfig()
