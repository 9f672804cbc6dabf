"""Configuration for launcher-icons, loaded from YAML.

Example ``~/.config/launcher-icons/config.yaml``::

    icon_folder: ~/.cache/launcher-icons/icons
    timeout: 5
    max_attempts: 3
    providers:
      - "{scheme}://{host}/favicon.ico"
      - "https://icons.duckduckgo.com/ip2/{host}.ico"
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from launcher_icons.exceptions import ConfigError
from launcher_icons.remote.http import DEFAULT_USER_AGENT, HttpFetcher
from launcher_icons.remote.strategies import DEFAULT_PROVIDERS
from launcher_icons.throttle import DEFAULT_MAX_ATTEMPTS

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "launcher-icons" / "config.yaml"
DEFAULT_ICON_FOLDER = Path.home() / ".cache" / "launcher-icons" / "icons"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """Settings used to build an :class:`~launcher_icons.resolver.IconResolver`."""

    icon_folder: Path = DEFAULT_ICON_FOLDER
    timeout: float = HttpFetcher.DEFAULT_TIMEOUT
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    max_download_size: int = HttpFetcher.MAX_SIZE
    user_agent: str = DEFAULT_USER_AGENT
    providers: list[str] = field(default_factory=lambda: list(DEFAULT_PROVIDERS))
    log_level: str = "WARNING"

    @classmethod
    def load(cls, path: Path | None = None) -> Config:
        """Load configuration from a YAML file.

        Args:
            path: Config file. When None, the default location is used and a
                missing file yields the defaults.

        Returns:
            Validated configuration.

        Raises:
            ConfigError: If the file is unreadable or holds invalid values.
        """
        explicit = path is not None
        config_path = Path(path) if explicit else DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if explicit:
                raise ConfigError(f"Config file not found: {config_path}")
            return cls()

        try:
            data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read {config_path}: {e}") from e

        if data is None:
            return cls()
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Any) -> Config:
        if not isinstance(data, dict):
            raise ConfigError("Config must be a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(map(str, unknown))}")

        values = dict(data)
        if "icon_folder" in values:
            values["icon_folder"] = Path(str(values["icon_folder"])).expanduser()
        if "providers" in values:
            providers = values["providers"]
            if not isinstance(providers, list) or not all(isinstance(p, str) for p in providers):
                raise ConfigError("providers must be a list of URL templates")

        config = cls(**values)
        config.validate()
        return config

    def validate(self) -> None:
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)) or self.timeout <= 0:
            raise ConfigError(f"timeout must be a positive number, got {self.timeout!r}")
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int) or self.max_attempts < 1:
            raise ConfigError(f"max_attempts must be an integer >= 1, got {self.max_attempts!r}")
        if (
            isinstance(self.max_download_size, bool)
            or not isinstance(self.max_download_size, int)
            or self.max_download_size <= 0
        ):
            raise ConfigError(
                f"max_download_size must be a positive integer, got {self.max_download_size!r}"
            )
        if not isinstance(self.user_agent, str) or not self.user_agent.strip():
            raise ConfigError("user_agent must be a non-empty string")
        if not isinstance(self.log_level, str) or self.log_level.upper() not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        self.log_level = self.log_level.upper()
        self.timeout = float(self.timeout)

    def resolver_options(self) -> dict[str, Any]:
        """Keyword arguments for IconResolver (everything but the folder)."""
        return {
            "max_attempts": self.max_attempts,
            "timeout": self.timeout,
            "max_download_size": self.max_download_size,
            "user_agent": self.user_agent,
            "providers": list(self.providers),
        }

    @property
    def logging_level(self) -> int:
        return logging.getLevelName(self.log_level)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["icon_folder"] = str(self.icon_folder)
        return data
