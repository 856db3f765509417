"""
package extraction from source environments.

packages are enumerated by running `pip freeze` inside the source environment
and parsing its output line by line.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import final

from ..errors import PackageExtractionFailed

logger = logging.getLogger(__name__)

FreezeRunner = Callable[[Sequence[str]], "subprocess.CompletedProcess[str]"]


@final
@dataclass(frozen=True)
class PackageSpec:
    """
    one installed package.

    attributes:
        `name: str`
            package name as printed by pip
        `version: str`
            installed version, or one of the literals 'editable', 'git',
            'local' and 'unknown' for non-pinned installs
        `editable: bool`
            whether this is an editable (development mode) install
        `editable_source: str | None`
            original `-e` argument, kept verbatim for rendering
        `url: str | None`
            target of a direct reference (`name @ url`)
    """

    name: str
    version: str
    editable: bool = False
    editable_source: str | None = None
    url: str | None = None

    def to_requirement(self) -> str:
        """render this spec as a single requirements.txt line."""
        if self.editable and self.editable_source is not None:
            return f"-e {self.editable_source}"
        if self.url is not None:
            return f"{self.name} @ {self.url}"
        return f"{self.name}=={self.version}"


@dataclass
class ExtractionResult:
    """
    parsed `pip freeze` output.

    attributes:
        `packages: list[PackageSpec]`
            packages in the order pip printed them
        `failed: list[str]`
            raw lines that could not be parsed
        `total_found: int`
            number of non-comment, non-empty lines seen
    """

    packages: list[PackageSpec] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    total_found: int = 0

    def regular_packages(self) -> list[PackageSpec]:
        return [p for p in self.packages if not p.editable]

    def editable_packages(self) -> list[PackageSpec]:
        return [p for p in self.packages if p.editable]

    def to_requirements(self, include_editable: bool = True) -> str:
        """
        render a requirements stream that pip can consume.

        arguments:
            `include_editable: bool`
                whether to keep `-e` entries

        returns: `str`
            one requirement per line
        """
        return "\n".join(
            p.to_requirement() for p in self.packages if include_editable or not p.editable
        )


def _parse_editable(source: str) -> PackageSpec:
    if source.startswith("git+") and "#egg=" in source:
        head, _, fragment = source.partition("#egg=")
        name = fragment.split("&", 1)[0]
        _, at, ref = head.rpartition("@")
        version = ref if at and "/" not in ref else "git"
        return PackageSpec(name=name, version=version, editable=True, editable_source=source)

    name = PurePosixPath(source).name or "unknown"
    return PackageSpec(name=name, version="editable", editable=True, editable_source=source)


def parse_freeze_line(line: str) -> PackageSpec | None:
    """
    parse a single line of `pip freeze` output.

    arguments:
        `line: str`
            a stripped, non-empty, non-comment line

    returns: `PackageSpec | None`
        the parsed spec, or none if the line has no recognised shape
    """
    if line.startswith("-e "):
        source = line[3:].strip()
        return _parse_editable(source) if source else None

    if "==" in line:
        name, _, version = line.partition("==")
        name, version = name.strip(), version.strip()
        if name and version:
            return PackageSpec(name=name, version=version)
        return None

    if " @ " in line:
        name, _, url = line.partition(" @ ")
        name, url = name.strip(), url.strip()
        if not name:
            return None
        version = "local" if url.startswith("file://") else "unknown"
        return PackageSpec(name=name, version=version, url=url)

    return None


def parse_freeze_output(output: str) -> ExtractionResult:
    """
    parse the full output of `pip freeze`.

    empty lines and comments are ignored; every other line either becomes a
    package or is recorded as failed.
    """
    result = ExtractionResult()

    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        result.total_found += 1
        spec = parse_freeze_line(line)
        if spec is None:
            logger.debug("could not parse freeze line: %s", line)
            result.failed.append(line)
        else:
            result.packages.append(spec)

    return result


def _run_subprocess(command: Sequence[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(list(command), capture_output=True, text=True, check=False)


@final
class PackageExtractor:
    """
    extracts the installed packages of a source environment.

    attributes:
        `runner: FreezeRunner`
            callable that runs a command and returns the completed process
    """

    runner: FreezeRunner

    def __init__(self, runner: FreezeRunner | None = None) -> None:
        self.runner = runner or _run_subprocess

    def extract(self, env_path: Path) -> ExtractionResult:
        """
        run `pip freeze` in an environment and parse the result.

        arguments:
            `env_path: Path`
                root of the source environment

        returns: `ExtractionResult`
            the parsed packages

        raises: `PackageExtractionFailed`
            if pip is missing, cannot be spawned, or exits unsuccessfully
        """
        pip_path = env_path.joinpath("bin", "pip")
        if not pip_path.exists():
            raise PackageExtractionFailed(f"pip not found at {pip_path}")

        logger.debug("running: %s freeze", pip_path)
        try:
            completed = self.runner([str(pip_path), "freeze"])
        except OSError as e:
            raise PackageExtractionFailed(f"failed to run pip freeze: {e}") from e

        if completed.returncode != 0:
            raise PackageExtractionFailed(f"pip freeze failed: {completed.stderr.strip()}")

        result = parse_freeze_output(completed.stdout)
        logger.debug(
            "extracted %d packages (%d unparseable) from %s",
            len(result.packages),
            len(result.failed),
            env_path,
        )
        return result
