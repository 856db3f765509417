"""tests for the config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from scoop.config import Config, MigrateConfig


class TestMigrateConfig:
    """tests for MigrateConfig."""

    def test_defaults(self) -> None:
        config = MigrateConfig()

        assert config.strict is False
        assert config.auto_install_python is False
        assert config.compute_size is False


class TestConfig:
    """tests for the main Config class."""

    def test_defaults(self) -> None:
        config = Config()

        assert config.uv_path == "auto"
        assert config.no_color is False
        assert config.migrate == MigrateConfig()

    def test_from_toml(self, tmp_path: Path) -> None:
        """values are read from the top level and the [migrate] table."""
        config_file = tmp_path.joinpath("config.toml")
        _ = config_file.write_text(
            """
uv_path = "/opt/uv/bin/uv"
no_color = true

[migrate]
strict = true
compute_size = true
"""
        )

        config = Config.from_toml(config_file)

        assert config is not None
        assert config.uv_path == "/opt/uv/bin/uv"
        assert config.no_color is True
        assert config.migrate.strict is True
        assert config.migrate.auto_install_python is False
        assert config.migrate.compute_size is True

    def test_from_toml_not_found(self, tmp_path: Path) -> None:
        assert Config.from_toml(tmp_path.joinpath("missing.toml")) is None

    def test_from_toml_invalid(self, tmp_path: Path) -> None:
        """a file that does not parse is ignored."""
        config_file = tmp_path.joinpath("config.toml")
        _ = config_file.write_text("uv_path = [unterminated\n")

        assert Config.from_toml(config_file) is None

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCOOP_UV", "/usr/local/bin/uv")
        monkeypatch.setenv("NO_COLOR", "1")
        monkeypatch.setenv("SCOOP_MIGRATE_STRICT", "yes")
        monkeypatch.setenv("SCOOP_AUTO_INSTALL_PYTHON", "true")

        config = Config.from_environment()

        assert config.uv_path == "/usr/local/bin/uv"
        assert config.no_color is True
        assert config.migrate.strict is True
        assert config.migrate.auto_install_python is True

    def test_load_reads_scoop_home(self, scoop_home: Path) -> None:
        """the default config file lives in SCOOP_HOME."""
        _ = scoop_home.joinpath("config.toml").write_text('uv_path = "/bin/uv"\n')

        config = Config.load()

        assert config.uv_path == "/bin/uv"

    def test_load_environment_wins(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """environment variables override the config file."""
        config_file = tmp_path.joinpath("config.toml")
        _ = config_file.write_text('uv_path = "/from/file"\nno_color = true\n')
        monkeypatch.setenv("SCOOP_UV", "/from/env")

        config = Config.load(config_file)

        assert config.uv_path == "/from/env"
        assert config.no_color is True

    def test_merge_configs(self) -> None:
        base = Config(uv_path="/a/uv")
        override = Config(no_color=True, migrate=MigrateConfig(strict=True))

        merged = base.merge(override)

        assert merged.uv_path == "/a/uv"
        assert merged.no_color is True
        assert merged.migrate.strict is True

    def test_merge_keeps_migrate_when_default(self) -> None:
        base = Config(migrate=MigrateConfig(compute_size=True))

        merged = base.merge(Config())

        assert merged.migrate.compute_size is True
