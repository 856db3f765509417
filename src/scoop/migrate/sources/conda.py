"""
conda environment discovery.

several conda installations may coexist, so a list of `envs/` roots is
searched in order and the first environment seen for a name wins.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import final

from typing_extensions import override

from ...errors import CondaEnvNotFound
from ...paths import home_dir
from ..models import SourceEnvironment, SourceType
from ..status import classify_status
from .base import (
    UNKNOWN_VERSION,
    EnvironmentSource,
    cfg_version,
    has_python,
    is_lookup_name,
    iter_candidate_dirs,
    read_pyvenv_cfg,
)

logger = logging.getLogger(__name__)

CONDA_INSTALL_DIRS = (".conda", "anaconda3", "miniconda3", "miniforge3")


def default_conda_roots() -> list[Path]:
    """
    return the candidate conda `envs/` directories, deduplicated, in order.

    `$CONDA_PREFIX/envs` comes first, followed by the `envs/` directory of
    each standard installation under the home directory.
    """
    candidates: list[Path] = []
    if prefix := os.environ.get("CONDA_PREFIX"):
        candidates.append(Path(prefix).expanduser().joinpath("envs"))

    home = home_dir()
    candidates.extend(home.joinpath(d, "envs") for d in CONDA_INSTALL_DIRS)

    roots: list[Path] = []
    for candidate in candidates:
        if candidate not in roots:
            roots.append(candidate)
    return roots


def conda_meta_python_version(env_path: Path) -> str | None:
    """
    read the python version from `conda-meta/python-{version}-{build}.json`.

    the version is the text between `python-` and the next `-`. records of
    other packages whose names merely start with `python-` (for example
    `python-dateutil`) are ignored because their segment does not start
    with a digit.
    """
    try:
        entries = sorted(p.name for p in env_path.joinpath("conda-meta").iterdir())
    except OSError:
        return None

    for file_name in entries:
        if not (file_name.startswith("python-") and file_name.endswith(".json")):
            continue
        version, dash, _build = file_name[len("python-") :].partition("-")
        if dash and version[:1].isdigit():
            return version

    return None


def conda_python_version(env_path: Path) -> str | None:
    if version := conda_meta_python_version(env_path):
        return version

    lines = read_pyvenv_cfg(env_path)
    return cfg_version(lines) if lines is not None else None


def is_conda_env(env_path: Path) -> bool:
    """a python conda environment has `conda-meta/` and `bin/python`."""
    return env_path.joinpath("conda-meta").is_dir() and has_python(env_path)


@final
class CondaSource(EnvironmentSource):
    """
    discovers conda environments.

    attributes:
        `roots: list[Path]`
            `envs/` directories to search, in priority order
    """

    source_type = SourceType.CONDA
    roots: list[Path]

    def __init__(self, roots: Sequence[Path]) -> None:
        self.roots = list(roots)

    @classmethod
    def from_environment(cls) -> CondaSource:
        return cls(default_conda_roots())

    def _parse_environment(self, env_path: Path) -> SourceEnvironment | None:
        # non-python conda environments are skipped silently
        if not is_conda_env(env_path):
            logger.debug("skipping %s: not a python conda environment", env_path)
            return None

        name = env_path.name
        python_version = conda_python_version(env_path) or UNKNOWN_VERSION
        return SourceEnvironment(
            name=name,
            python_version=python_version,
            path=env_path,
            source_type=SourceType.CONDA,
            status=classify_status(name, python_version),
        )

    @override
    def scan(self) -> list[SourceEnvironment]:
        environments: dict[str, SourceEnvironment] = {}

        for root in self.roots:
            for env_path in iter_candidate_dirs(root):
                if env_path.name in environments:
                    logger.debug("skipping duplicate conda environment %s", env_path)
                    continue
                if env := self._parse_environment(env_path):
                    environments[env.name] = env

        return sorted(environments.values(), key=lambda e: e.name)

    @override
    def find(self, name: str) -> SourceEnvironment:
        if not is_lookup_name(name):
            raise CondaEnvNotFound(name)

        for root in self.roots:
            env_path = root.joinpath(name)
            if not env_path.is_dir() or env_path.is_symlink():
                continue
            if env := self._parse_environment(env_path):
                return env

        raise CondaEnvNotFound(name)
