"""
thin client around the `uv` command-line tool.

this is the only module that spawns `uv`. every call is synchronous and its
output is read to completion before returning.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import final

from packaging.version import InvalidVersion, Version

from .errors import UvCommandFailed, UvNotFound

logger = logging.getLogger(__name__)

_MISSING_INTERPRETER_MARKERS = (
    "no interpreter found",
    "no python installation",
    "no download found",
)


@final
@dataclass
class PythonInfo:
    """
    a python interpreter known to uv.

    attributes:
        `version: str`
            the version string (e.g., "3.12.0")
        `path: Path | None`
            interpreter path, none when only a download is available
        `installed: bool`
            whether the interpreter is present locally
        `implementation: str`
            implementation name (cpython, pypy, ...)
    """

    version: str
    path: Path | None
    installed: bool
    implementation: str


def parse_python_list(output: str) -> list[PythonInfo]:
    """
    parse the output of `uv python list`.

    lines look like `cpython-3.12.0-macos-aarch64-none    /path/to/python`
    or `cpython-3.12.0-linux-x86_64-gnu    <download available>`.

    arguments:
        `output: str`
            raw stdout of the command

    returns: `list[PythonInfo]`
        one entry per non-empty line
    """
    pythons: list[PythonInfo] = []

    for raw_line in output.splitlines():
        parts = raw_line.split()
        if not parts:
            continue

        key = parts[0]
        path = Path(parts[1]) if len(parts) > 1 and not parts[1].startswith("<") else None

        segments = key.split("-")
        implementation = segments[0]
        version = segments[1] if len(segments) > 1 else key

        pythons.append(
            PythonInfo(
                version=version,
                path=path,
                installed=path is not None,
                implementation=implementation,
            )
        )

    return pythons


def version_matches(pattern: str, version: str) -> bool:
    """
    check whether `version` satisfies a version prefix such as "3.12".

    unparseable inputs never match.
    """
    try:
        wanted = Version(pattern).release
        actual = Version(version).release
    except InvalidVersion:
        return False
    return actual[: len(wanted)] == wanted


def is_missing_interpreter(error: UvCommandFailed) -> bool:
    """return true if a uv failure means the requested interpreter is absent."""
    stderr = error.stderr.lower()
    return any(marker in stderr for marker in _MISSING_INTERPRETER_MARKERS)


@final
class UvClient:
    """
    client for the uv executable.

    attributes:
        `path: Path`
            path to the uv binary
    """

    path: Path

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def locate(cls, uv_path: str = "auto") -> UvClient:
        """
        find uv and build a client for it.

        arguments:
            `uv_path: str`
                explicit binary path, or 'auto' to search PATH

        returns: `UvClient`
            a client bound to the found binary

        raises: `UvNotFound`
            if the binary does not exist
        """
        if uv_path != "auto":
            explicit = Path(uv_path).expanduser()
            if explicit.is_file():
                return cls(explicit)
            raise UvNotFound()

        found = shutil.which("uv")
        if found is None:
            raise UvNotFound()
        return cls(Path(found))

    def _run(self, args: Sequence[str | Path], display: str | None = None) -> str:
        command = [str(self.path), *(str(a) for a in args)]
        display = display or " ".join(["uv", *command[1:]])
        logger.debug("running: %s", display)

        try:
            result = subprocess.run(command, capture_output=True, text=True, check=False)
        except OSError as e:
            raise UvCommandFailed(display, str(e)) from e

        if result.returncode != 0:
            logger.debug("command failed with exit code %d: %s", result.returncode, display)
            raise UvCommandFailed(display, result.stderr)

        return result.stdout

    def version(self) -> str:
        """return the output of `uv --version`, e.g. 'uv 0.5.0'."""
        return self._run(["--version"]).strip()

    def create_venv(self, path: Path, python_version: str) -> None:
        _ = self._run(["venv", path, "--python", python_version])

    def install_python(self, version: str) -> None:
        _ = self._run(["python", "install", version])

    def pip_install(self, venv_path: Path, packages: Sequence[str]) -> None:
        """
        install packages into an environment in a single uv call.

        arguments:
            `venv_path: Path`
                root of the target environment
            `packages: Sequence[str]`
                requirement strings, e.g. 'requests==2.31.0'

        raises: `UvCommandFailed`
            if uv exits unsuccessfully
        """
        if not packages:
            return

        python = venv_path.joinpath("bin", "python")
        _ = self._run(
            ["pip", "install", "--python", python, "--", *packages],
            display=f"uv pip install (into {venv_path})",
        )

    def list_pythons(self) -> list[PythonInfo]:
        return parse_python_list(self._run(["python", "list"]))

    def list_installed_pythons(self) -> list[PythonInfo]:
        return parse_python_list(self._run(["python", "list", "--only-installed"]))

    def find_python(self, version_pattern: str) -> PythonInfo | None:
        """return the first installed interpreter matching a version prefix."""
        for info in self.list_installed_pythons():
            if version_matches(version_pattern, info.version):
                return info
        return None
