"""
pyenv-virtualenv environment discovery.

environments live at `{root}/versions/{python_version}/envs/{name}`.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import final

from typing_extensions import override

from ...errors import PyenvEnvNotFound
from ...paths import home_dir
from ..models import Corrupted, SourceEnvironment, SourceType
from ..status import classify_status
from .base import (
    UNKNOWN_VERSION,
    EnvironmentSource,
    cfg_home,
    cfg_version,
    has_python,
    is_lookup_name,
    iter_candidate_dirs,
    read_pyvenv_cfg,
    segment_after,
)

logger = logging.getLogger(__name__)


def default_pyenv_root() -> Path:
    """return `$PYENV_ROOT` if set, else `~/.pyenv`."""
    if root := os.environ.get("PYENV_ROOT"):
        return Path(root).expanduser()
    return home_dir().joinpath(".pyenv")


def pyenv_python_version(env_path: Path) -> str | None:
    """
    read the python version of a pyenv-virtualenv environment.

    tries the `version` key of pyvenv.cfg, then the segment after
    `versions/` in the `home` key.

    arguments:
        `env_path: Path`
            root of the environment

    returns: `str | None`
        the version, or none if pyvenv.cfg says nothing useful
    """
    lines = read_pyvenv_cfg(env_path)
    if lines is None:
        return None

    if version := cfg_version(lines):
        return version

    if home := cfg_home(lines):
        return segment_after(home, "versions/")

    return None


@final
class PyenvSource(EnvironmentSource):
    """
    discovers pyenv-virtualenv environments.

    attributes:
        `root: Path`
            pyenv root directory (typically ~/.pyenv)
    """

    source_type = SourceType.PYENV
    root: Path

    def __init__(self, root: Path) -> None:
        self.root = root

    @classmethod
    def from_environment(cls) -> PyenvSource:
        return cls(default_pyenv_root())

    @property
    def versions_dir(self) -> Path:
        return self.root.joinpath("versions")

    def _parse_environment(self, env_path: Path, fallback_version: str) -> SourceEnvironment:
        name = env_path.name
        python_version = pyenv_python_version(env_path) or fallback_version or UNKNOWN_VERSION

        if not has_python(env_path):
            logger.debug("pyenv environment %s has no python binary", env_path)
            return SourceEnvironment(
                name=name,
                python_version=python_version,
                path=env_path,
                source_type=SourceType.PYENV,
                status=Corrupted(reason="Python binary not found"),
                size_bytes=0,
            )

        return SourceEnvironment(
            name=name,
            python_version=python_version,
            path=env_path,
            source_type=SourceType.PYENV,
            status=classify_status(name, python_version),
        )

    @override
    def scan(self) -> list[SourceEnvironment]:
        environments: dict[str, SourceEnvironment] = {}

        # top-level symlinks in versions/ point at virtualenvs and would double-count
        for version_dir in iter_candidate_dirs(self.versions_dir):
            envs_dir = version_dir.joinpath("envs")
            if not envs_dir.is_dir():
                continue

            for env_path in iter_candidate_dirs(envs_dir):
                if env_path.name in environments:
                    logger.debug("skipping duplicate pyenv environment %s", env_path)
                    continue
                environments[env_path.name] = self._parse_environment(env_path, version_dir.name)

        return sorted(environments.values(), key=lambda e: e.name)

    @override
    def find(self, name: str) -> SourceEnvironment:
        if not is_lookup_name(name):
            raise PyenvEnvNotFound(name)

        for version_dir in iter_candidate_dirs(self.versions_dir):
            env_path = version_dir.joinpath("envs", name)
            if env_path.is_dir() and not env_path.is_symlink():
                return self._parse_environment(env_path, version_dir.name)

        raise PyenvEnvNotFound(name)
