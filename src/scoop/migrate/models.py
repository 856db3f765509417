"""
models for the migration engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any, final


class SourceType(Enum):
    """
    enumeration of foreign tools environments can be migrated from.

    attributes:
        `PYENV: str`
            pyenv-virtualenv
        `VENVWRAPPER: str`
            virtualenvwrapper
        `CONDA: str`
            conda (anaconda, miniconda, miniforge)
    """

    PYENV = "pyenv"
    VENVWRAPPER = "virtualenvwrapper"
    CONDA = "conda"

    @property
    def order(self) -> int:
        """position used when sorting mixed scan results."""
        return _SOURCE_ORDER[self]

    def __str__(self) -> str:
        return self.value


_SOURCE_ORDER = {
    SourceType.PYENV: 0,
    SourceType.VENVWRAPPER: 1,
    SourceType.CONDA: 2,
}


class EnvironmentStatus:
    """
    migratability verdict for a source environment.

    this is a closed set: `Ready`, `NameConflict`, `PythonEol` and `Corrupted`.
    """

    kind: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind}


@final
@dataclass(frozen=True)
class Ready(EnvironmentStatus):
    kind = "ready"


@final
@dataclass(frozen=True)
class NameConflict(EnvironmentStatus):
    """a native environment with the same name already exists at `existing`."""

    existing: Path
    kind = "name_conflict"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "existing": str(self.existing)}


@final
@dataclass(frozen=True)
class PythonEol(EnvironmentStatus):
    """the environment's python has reached end-of-life."""

    version: str
    kind = "python_eol"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "version": self.version}


@final
@dataclass(frozen=True)
class Corrupted(EnvironmentStatus):
    """the environment is missing something it needs; never migratable."""

    reason: str
    kind = "corrupted"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "reason": self.reason}


@final
@dataclass(frozen=True)
class SourceEnvironment:
    """
    an environment discovered in a foreign tool's directory.

    attributes:
        `name: str`
            environment name (directory name)
        `python_version: str`
            python version string, or 'unknown'
        `path: Path`
            absolute path to the environment directory
        `source_type: SourceType`
            the tool that owns the environment
        `status: EnvironmentStatus`
            migratability verdict computed at scan time
        `size_bytes: int | None`
            recursive size of the environment, none if not computed
    """

    name: str
    python_version: str
    path: Path
    source_type: SourceType
    status: EnvironmentStatus
    size_bytes: int | None = None

    def with_size(self) -> SourceEnvironment:
        """return a copy with `size_bytes` computed."""
        from .status import dir_size

        return replace(self, size_bytes=dir_size(self.path))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "python_version": self.python_version,
            "path": str(self.path),
            "source_type": self.source_type.value,
            "size_bytes": self.size_bytes,
            "status": self.status.to_dict(),
        }


@dataclass
class MigrateOptions:
    """
    caller policy for a single migration.

    attributes:
        `dry_run: bool`
            extract only, create nothing
        `force: bool`
            override name conflicts and end-of-life pythons
        `skip_packages: bool`
            create the target environment without packages
        `rename_to: str | None`
            target name, if different from the source name
        `strict: bool`
            report the migration as failed if any package failed
        `delete_source: bool`
            remove the source environment after a successful migration
        `auto_install_python: bool`
            install a missing interpreter with uv and retry the build once
    """

    dry_run: bool = False
    force: bool = False
    skip_packages: bool = False
    rename_to: str | None = None
    strict: bool = False
    delete_source: bool = False
    auto_install_python: bool = False


class MigrationExitCode(IntEnum):
    SUCCESS = 0
    FAILED = 1
    PARTIAL_SUCCESS = 3


@dataclass
class MigrationResult:
    """
    outcome of one migration.

    attributes:
        `name: str`
            name of the target environment
        `python_version: str`
            requested python version
        `packages_migrated: int`
            number of packages installed (or that would be, for a dry run)
        `packages_failed: list[str]`
            requirement strings that could not be installed or parsed
        `dry_run: bool`
            whether this was a preview
        `path: Path`
            final path of the target environment
        `source_deleted: bool`
            whether the source environment was removed
        `actual_python_version: str`
            interpreter version actually used
        `strict: bool`
            whether strict mode was requested
    """

    name: str
    python_version: str
    packages_migrated: int
    packages_failed: list[str] = field(default_factory=list)
    dry_run: bool = False
    path: Path = field(default_factory=Path)
    source_deleted: bool = False
    actual_python_version: str = ""
    strict: bool = False

    def __post_init__(self) -> None:
        if not self.actual_python_version:
            self.actual_python_version = self.python_version

    @property
    def ok(self) -> bool:
        """false when strict mode was requested and any package failed."""
        return not (self.strict and self.packages_failed)

    def exit_code(self) -> MigrationExitCode:
        if not self.ok:
            return MigrationExitCode.FAILED
        if self.packages_failed:
            return MigrationExitCode.PARTIAL_SUCCESS
        return MigrationExitCode.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "python_version": self.python_version,
            "packages_migrated": self.packages_migrated,
            "packages_failed": list(self.packages_failed),
            "dry_run": self.dry_run,
            "path": str(self.path),
            "source_deleted": self.source_deleted,
            "actual_python_version": self.actual_python_version,
        }
