"""
configuration loading for scoop.

this module handles loading of configuration from `{SCOOP_HOME}/config.toml`
and environment variables.
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from . import paths

logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes")


def _env_flag(name: str) -> bool | None:
    value = os.environ.get(name)
    if value is None:
        return None
    return value.lower() in _TRUTHY


@dataclass
class MigrateConfig:
    """
    migration configuration settings.

    attributes:
        `strict: bool`
            treat any failed package as a failed migration
        `auto_install_python: bool`
            install missing interpreters with uv during migration
        `compute_size: bool`
            compute environment sizes in `scoop migrate list`
    """

    strict: bool = False
    auto_install_python: bool = False
    compute_size: bool = False


@dataclass
class Config:
    """
    main configuration class for scoop.

    attributes:
        `uv_path: str`
            path to the uv executable (or 'auto' to search PATH)
        `no_color: bool`
            disable coloured output
        `migrate: MigrateConfig`
            migration configuration
    """

    uv_path: str = "auto"
    no_color: bool = False
    migrate: MigrateConfig = field(default_factory=MigrateConfig)

    @classmethod
    def from_toml(cls, config_file: Path) -> Config | None:
        """
        load configuration from a toml file.

        arguments:
            `config_file: Path`
                path to the toml file

        returns: `Config | None`
            configuration object if the file exists and parses, none otherwise
        """
        if not config_file.is_file():
            return None

        try:
            with open(config_file, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning("ignoring unreadable config file %s: %s", config_file, e)
            return None

        return cls._from_dict(data)

    @classmethod
    def from_environment(cls) -> Config:
        """
        load configuration from environment variables.

        returns: `Config`
            configuration with values from environment
        """
        config = cls()

        if uv_path := os.environ.get("SCOOP_UV"):
            config.uv_path = uv_path

        if os.environ.get("NO_COLOR") or _env_flag("SCOOP_NO_COLOR"):
            config.no_color = True

        if (strict := _env_flag("SCOOP_MIGRATE_STRICT")) is not None:
            config.migrate.strict = strict

        if (auto_install := _env_flag("SCOOP_AUTO_INSTALL_PYTHON")) is not None:
            config.migrate.auto_install_python = auto_install

        return config

    @classmethod
    def load(cls, config_file: Path | None = None) -> Config:
        """
        load configuration from all available sources.

        sources are loaded in order of priority (later overrides earlier):
        1. default values
        2. `{SCOOP_HOME}/config.toml`
        3. environment variables

        arguments:
            `config_file: Path | None`
                config file to read (default: `{SCOOP_HOME}/config.toml`)

        returns: `Config`
            merged configuration from all sources
        """
        config = cls()

        if file_config := cls.from_toml(config_file or paths.config_file()):
            config = config.merge(file_config)

        return config.merge(cls.from_environment())

    def merge(self, other: Config) -> Config:
        """
        merge another configuration into this one.

        non-default values from 'other' take precedence over this config.

        arguments:
            `other: Config`
                configuration to merge

        returns: `Config`
            new merged configuration
        """
        return Config(
            uv_path=other.uv_path if other.uv_path != "auto" else self.uv_path,
            no_color=other.no_color or self.no_color,
            migrate=MigrateConfig(
                strict=other.migrate.strict,
                auto_install_python=other.migrate.auto_install_python,
                compute_size=other.migrate.compute_size,
            )
            if other.migrate != MigrateConfig()
            else self.migrate,
        )

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> Config:
        config = cls()

        if "uv_path" in data:
            config.uv_path = str(data["uv_path"])  # pyright: ignore[reportAny]
        if "no_color" in data:
            config.no_color = bool(data["no_color"])  # pyright: ignore[reportAny]

        if migrate_data := data.get("migrate", {}):  # pyright: ignore[reportAny]
            config.migrate = MigrateConfig(
                strict=bool(migrate_data.get("strict", False)),  # pyright: ignore[reportAny]
                auto_install_python=bool(migrate_data.get("auto_install_python", False)),  # pyright: ignore[reportAny]
                compute_size=bool(migrate_data.get("compute_size", False)),  # pyright: ignore[reportAny]
            )

        return config
