"""
shared behaviour for source adapters.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path
from typing import Final

from ..models import SourceEnvironment, SourceType

logger = logging.getLogger(__name__)

_VERSION_LINE_RE: Final = re.compile(r"^version(?:_info)?\s*[=\s]\s*(\S+)")
_HOME_LINE_RE: Final = re.compile(r"^home\s*[=\s]\s*(.+)$")
# virtualenv writes `version_info = 3.7.17.final.0`
_RELEASE_RE: Final = re.compile(r"^\d+(?:\.\d+){0,2}")

UNKNOWN_VERSION: Final = "unknown"


def python_executable(env_path: Path) -> Path:
    return env_path.joinpath("bin", "python")


def has_python(env_path: Path) -> bool:
    return python_executable(env_path).exists()


def read_pyvenv_cfg(env_path: Path) -> list[str] | None:
    """return the stripped lines of `pyvenv.cfg`, or none if it cannot be read."""
    try:
        content = env_path.joinpath("pyvenv.cfg").read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
    return [line.strip() for line in content.splitlines()]


def cfg_version(lines: list[str]) -> str | None:
    """
    extract the python version from pyvenv.cfg lines.

    both `version` and `version_info` are accepted; the value is cut down to
    its leading `X.Y.Z` release so that suffixes like `.final.0` are dropped.
    """
    for line in lines:
        if match := _VERSION_LINE_RE.match(line):
            value = match.group(1)
            release = _RELEASE_RE.match(value)
            return release.group(0) if release else value
    return None


def cfg_home(lines: list[str]) -> str | None:
    """extract the value of the `home` key from pyvenv.cfg lines."""
    for line in lines:
        if match := _HOME_LINE_RE.match(line):
            return match.group(1).strip()
    return None


def segment_after(text: str, marker: str) -> str | None:
    """
    return the path segment that follows `marker`, up to the next '/'.

    arguments:
        `text: str`
            path-like string to search
        `marker: str`
            literal that precedes the wanted segment, e.g. 'versions/'

    returns: `str | None`
        the segment, or none if the marker is absent or nothing follows it
    """
    index = text.find(marker)
    if index < 0:
        return None
    segment = text[index + len(marker) :].split("/", 1)[0]
    return segment or None


def iter_candidate_dirs(root: Path) -> Iterator[Path]:
    """
    yield the directories directly inside `root` that may be environments.

    symlinks, hidden entries and non-directories are skipped. an unreadable
    or missing root yields nothing.
    """
    try:
        entries = sorted(root.iterdir())
    except OSError as e:
        logger.debug("cannot read %s: %s", root, e)
        return

    for entry in entries:
        if entry.name.startswith("."):
            continue
        try:
            if entry.is_symlink() or not entry.is_dir():
                continue
        except OSError:
            continue
        yield entry


def is_lookup_name(name: str) -> bool:
    """reject names that could escape the root or refer to hidden entries."""
    return bool(name) and not name.startswith(".") and "/" not in name and "\\" not in name


class EnvironmentSource(ABC):
    """
    a foreign tool whose environments can be discovered.

    subclasses are a closed set: pyenv, virtualenvwrapper and conda.
    """

    source_type: SourceType

    @abstractmethod
    def scan(self) -> list[SourceEnvironment]:
        """
        discover every environment owned by the tool.

        returns: `list[SourceEnvironment]`
            environments sorted by name, without duplicates
        """

    @abstractmethod
    def find(self, name: str) -> SourceEnvironment:
        """
        look up one environment by name.

        raises: `SourceEnvNotFound`
            the tool-specific subclass, if no such environment exists
        """
