"""
migratability classification shared by all source adapters.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Final

from packaging.version import InvalidVersion, Version

from .. import paths
from ..errors import HomeNotFound
from .models import EnvironmentStatus, NameConflict, PythonEol, Ready

logger = logging.getLogger(__name__)

# python 3.8 and earlier no longer receive security fixes
EOL_PYTHON_MINOR: Final = 8


def dir_size(path: Path) -> int:
    """
    compute the recursive size of the regular files under a directory.

    symlinks are neither followed nor counted, and unreadable entries are
    skipped.

    arguments:
        `path: Path`
            directory to measure

    returns: `int`
        total size in bytes
    """
    total = 0
    for root, _dirs, files in os.walk(path, followlinks=False):
        for file_name in files:
            try:
                st = os.lstat(os.path.join(root, file_name))
            except OSError:
                continue
            if stat.S_ISREG(st.st_mode):
                total += st.st_size
    return total


def check_name_conflict(name: str) -> Path | None:
    """return the path of an existing native environment called `name`, if any."""
    try:
        native = paths.virtualenv_path(name)
    except HomeNotFound:
        return None
    return native if native.exists() else None


def _leading_integers(python_version: str) -> tuple[int, ...]:
    parts: list[int] = []
    for part in python_version.split(".")[:2]:
        try:
            parts.append(int(part))
        except ValueError:
            break
    return tuple(parts)


def is_eol_python(python_version: str) -> bool:
    """
    return true for python 2.x and python 3.0 through 3.8.

    strings that are not pep 440 versions (e.g. `3.7.17.final.0`) fall back
    to the leading integer components. versions without both a major and a
    minor component are never considered end-of-life.
    """
    try:
        release = Version(python_version).release
    except InvalidVersion:
        release = _leading_integers(python_version)

    if len(release) < 2:
        return False

    major, minor = release[0], release[1]
    return major == 2 or (major == 3 and minor <= EOL_PYTHON_MINOR)


def classify_status(name: str, python_version: str) -> EnvironmentStatus:
    """
    decide whether an environment can be migrated.

    priority is fixed: a name conflict wins over an end-of-life python,
    which wins over ready.

    arguments:
        `name: str`
            environment name (the prospective native name)
        `python_version: str`
            python version string of the source environment

    returns: `EnvironmentStatus`
        `NameConflict`, `PythonEol` or `Ready`
    """
    if existing := check_name_conflict(name):
        logger.debug("'%s' conflicts with native environment at %s", name, existing)
        return NameConflict(existing=existing)

    if is_eol_python(python_version):
        return PythonEol(version=python_version)

    return Ready()
