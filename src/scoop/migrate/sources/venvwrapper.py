"""
virtualenvwrapper environment discovery.

environments are the direct children of `$WORKON_HOME` (default
`~/.virtualenvs`).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import final

from typing_extensions import override

from ...errors import VenvWrapperEnvNotFound
from ...paths import home_dir
from ..models import SourceEnvironment, SourceType
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


def default_workon_home() -> Path:
    """return `$WORKON_HOME` if set, else `~/.virtualenvs`."""
    if root := os.environ.get("WORKON_HOME"):
        return Path(root).expanduser()
    return home_dir().joinpath(".virtualenvs")


def venvwrapper_python_version(env_path: Path) -> str | None:
    """
    read the python version of a virtualenvwrapper environment.

    besides the `version` key, the `home` key is searched for interpreter
    paths such as `/usr/local/opt/python@3.11/bin`,
    `/Library/Frameworks/Python.framework/Versions/3.11/bin` and
    `~/.pyenv/versions/3.11.0/bin`.
    """
    lines = read_pyvenv_cfg(env_path)
    if lines is None:
        return None

    if version := cfg_version(lines):
        return version

    home = cfg_home(lines)
    if home is None:
        return None

    for marker in ("python@", "Versions/", "versions/"):
        if segment := segment_after(home, marker):
            return segment

    return None


@final
class VenvWrapperSource(EnvironmentSource):
    """
    discovers virtualenvwrapper environments.

    attributes:
        `root: Path`
            the workon home directory
    """

    source_type = SourceType.VENVWRAPPER
    root: Path

    def __init__(self, root: Path) -> None:
        self.root = root

    @classmethod
    def from_environment(cls) -> VenvWrapperSource:
        return cls(default_workon_home())

    def _parse_environment(self, env_path: Path) -> SourceEnvironment | None:
        # directories without an interpreter are not virtualenvs
        if not has_python(env_path):
            logger.debug("skipping %s: no python binary", env_path)
            return None

        name = env_path.name
        python_version = venvwrapper_python_version(env_path) or UNKNOWN_VERSION
        return SourceEnvironment(
            name=name,
            python_version=python_version,
            path=env_path,
            source_type=SourceType.VENVWRAPPER,
            status=classify_status(name, python_version),
        )

    @override
    def scan(self) -> list[SourceEnvironment]:
        environments: list[SourceEnvironment] = []
        for env_path in iter_candidate_dirs(self.root):
            if env := self._parse_environment(env_path):
                environments.append(env)
        return sorted(environments, key=lambda e: e.name)

    @override
    def find(self, name: str) -> SourceEnvironment:
        if not is_lookup_name(name):
            raise VenvWrapperEnvNotFound(name)

        env_path = self.root.joinpath(name)
        if not env_path.is_dir() or env_path.is_symlink():
            raise VenvWrapperEnvNotFound(name)

        if env := self._parse_environment(env_path):
            return env
        raise VenvWrapperEnvNotFound(name)
