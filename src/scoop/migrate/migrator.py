"""
migration orchestration.

a migration moves through a fixed sequence of steps:

    validate -> extract -> build -> install -> write metadata -> done

from the moment the target directory is built until the metadata has been
written, the target is owned by a rollback guard that deletes it on any exit
path that does not reach `done`.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import final

from .. import paths
from ..errors import (
    CorruptedEnvironment,
    MigrationFailed,
    MigrationNameConflict,
    UvCommandFailed,
)
from ..uv import PythonInfo, UvClient, is_missing_interpreter, version_matches
from ..validate import validate_env_name
from .builder import TargetBuilder
from .extractor import ExtractionResult, PackageExtractor
from .installer import PackageInstaller
from .models import (
    Corrupted,
    EnvironmentStatus,
    MigrateOptions,
    MigrationResult,
    NameConflict,
    PythonEol,
    SourceEnvironment,
)
from .status import classify_status

logger = logging.getLogger(__name__)


@final
class RollbackGuard:
    """
    deletes a directory on scope exit unless disarmed.

    use as a context manager around the window in which a freshly created
    target may be left half-built::

        with RollbackGuard(target) as guard:
            ...
            guard.disarm()

    attributes:
        `path: Path`
            directory to remove
        `armed: bool`
            whether the directory will be removed on exit
    """

    path: Path
    armed: bool

    def __init__(self, path: Path) -> None:
        self.path = path
        self.armed = True

    def disarm(self) -> None:
        self.armed = False

    def __enter__(self) -> RollbackGuard:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.armed:
            logger.debug("rolling back %s", self.path)
            shutil.rmtree(self.path, ignore_errors=True)


@final
@dataclass(frozen=True)
class Available:
    info: PythonInfo


@final
@dataclass(frozen=True)
class Compatible:
    requested: str
    available: PythonInfo


@final
@dataclass(frozen=True)
class CanInstall:
    version: str


@final
@dataclass(frozen=True)
class Unavailable:
    reason: str


PythonAvailability = Available | Compatible | CanInstall | Unavailable


def extract_major_minor(version: str) -> str:
    """reduce a version to its first two components, e.g. '3.12.1' -> '3.12'."""
    return ".".join(version.split(".")[:2])


@final
class Migrator:
    """
    orchestrates migration of one source environment into the native layout.

    attributes:
        `uv: UvClient`
            uv client shared by the builder and installer
        `extractor: PackageExtractor`
            runs `pip freeze` in source environments
        `builder: TargetBuilder`
            creates target environments and writes metadata
        `installer: PackageInstaller`
            installs extracted packages
    """

    uv: UvClient
    extractor: PackageExtractor
    builder: TargetBuilder
    installer: PackageInstaller

    def __init__(
        self,
        uv: UvClient | None = None,
        extractor: PackageExtractor | None = None,
    ) -> None:
        self.uv = uv or UvClient.locate()
        self.extractor = extractor or PackageExtractor()
        self.builder = TargetBuilder(self.uv)
        self.installer = PackageInstaller(self.uv)

    def check_python_availability(self, version: str) -> PythonAvailability:
        """
        check whether an interpreter for `version` can be used.

        arguments:
            `version: str`
                requested python version

        returns: `PythonAvailability`
            exact match, compatible major.minor match, installable, or
            unavailable

        raises: `UvCommandFailed`
            if listing interpreters fails
        """
        if info := self.uv.find_python(version):
            return Available(info)

        major_minor = extract_major_minor(version)
        if info := self.uv.find_python(major_minor):
            return Compatible(requested=version, available=info)

        if any(version_matches(major_minor, p.version) for p in self.uv.list_pythons()):
            return CanInstall(version=major_minor)

        return Unavailable(reason=f"Python {version} is not available and cannot be installed")

    def effective_status(self, source: SourceEnvironment, target_name: str) -> EnvironmentStatus:
        """
        return the status that applies to migrating `source` as `target_name`.

        a rename re-runs the conflict check against the new name; corrupted
        sources stay corrupted.
        """
        if isinstance(source.status, Corrupted) or target_name == source.name:
            return source.status
        return classify_status(target_name, source.python_version)

    def validate(self, source: SourceEnvironment, options: MigrateOptions) -> None:
        """
        refuse to migrate sources whose status forbids it.

        raises: `MigrationNameConflict`
            on a conflict without `force`
        raises: `MigrationFailed`
            on an end-of-life python without `force`
        raises: `CorruptedEnvironment`
            always, for corrupted sources
        """
        target_name = options.rename_to or source.name
        status = self.effective_status(source, target_name)

        if isinstance(status, Corrupted):
            raise CorruptedEnvironment(source.name, status.reason)

        if isinstance(status, NameConflict) and not options.force:
            raise MigrationNameConflict(target_name, status.existing)

        if isinstance(status, PythonEol):
            if not options.force:
                raise MigrationFailed(
                    f"Python {status.version} is end-of-life. Use --force to migrate anyway."
                )
            logger.warning("migrating '%s' on end-of-life Python %s", source.name, status.version)

    def _extract(self, source: SourceEnvironment, options: MigrateOptions) -> ExtractionResult:
        if options.skip_packages:
            return ExtractionResult()
        return self.extractor.extract(source.path)

    def _build_once(self, name: str, python_version: str, force: bool) -> Path:
        target = paths.virtualenv_path(name)
        existed = target.exists()

        try:
            return self.builder.build(name, python_version, force=force)
        except UvCommandFailed:
            # a failed `uv venv` may leave a partial directory behind
            if not existed and target.exists():
                shutil.rmtree(target, ignore_errors=True)
            raise

    def _build(self, name: str, python_version: str, options: MigrateOptions) -> Path:
        try:
            return self._build_once(name, python_version, options.force)
        except UvCommandFailed as e:
            if not (options.auto_install_python and is_missing_interpreter(e)):
                raise

        logger.info("installing Python %s with uv", python_version)
        self.uv.install_python(python_version)
        return self._build_once(name, python_version, options.force)

    def delete_source(self, source: SourceEnvironment) -> None:
        """
        remove a source environment after a successful migration.

        raises: `MigrationFailed`
            if the directory cannot be removed
        """
        if not source.path.exists():
            return
        try:
            shutil.rmtree(source.path)
        except OSError as e:
            raise MigrationFailed(f"failed to delete source at {source.path}: {e}") from e

    def migrate(self, source: SourceEnvironment, options: MigrateOptions) -> MigrationResult:
        """
        migrate a single environment.

        arguments:
            `source: SourceEnvironment`
                environment to migrate
            `options: MigrateOptions`
                caller policy

        returns: `MigrationResult`
            what happened; for a dry run, what would happen

        raises: `ScoopError`
            if the migration fails; any target created by this call has been
            removed by the time the error propagates
        """
        target_name = options.rename_to or source.name
        validate_env_name(target_name)
        self.validate(source, options)

        if options.dry_run:
            preview = self._extract(source, options)
            logger.debug("dry run for '%s': %d packages", source.name, len(preview.packages))
            return MigrationResult(
                name=target_name,
                python_version=source.python_version,
                packages_migrated=len(preview.packages),
                packages_failed=list(preview.failed),
                dry_run=True,
                path=paths.virtualenv_path(target_name),
                strict=options.strict,
            )

        packages = self._extract(source, options)
        target = self._build(target_name, source.python_version, options)

        with RollbackGuard(target) as guard:
            failed = self.installer.install(target, packages) if packages.packages else []

            try:
                _ = self.builder.write_metadata(target, target_name, source.python_version)
            except OSError as e:
                raise MigrationFailed(f"failed to write metadata: {e}") from e

            guard.disarm()

        logger.debug("migrated '%s' to %s", source.name, target)

        source_deleted = False
        if options.delete_source:
            self.delete_source(source)
            source_deleted = True

        return MigrationResult(
            name=target_name,
            python_version=source.python_version,
            packages_migrated=len(packages.packages) - len(failed),
            packages_failed=failed,
            dry_run=False,
            path=target,
            source_deleted=source_deleted,
            strict=options.strict,
        )
