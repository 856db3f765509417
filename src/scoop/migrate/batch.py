"""
multi-source discovery and batch migration.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, final

from ..errors import PyenvEnvNotFound, ScoopError, SourceEnvNotFound
from .migrator import Migrator
from .models import (
    Corrupted,
    EnvironmentStatus,
    MigrateOptions,
    MigrationResult,
    NameConflict,
    PythonEol,
    Ready,
    SourceEnvironment,
    SourceType,
)
from .sources import EnvironmentSource, default_source

logger = logging.getLogger(__name__)


def select_sources(source_filter: SourceType | None = None) -> list[EnvironmentSource]:
    """build the adapters to consult, in source order."""
    types = [source_filter] if source_filter else sorted(SourceType, key=lambda s: s.order)
    return [default_source(t) for t in types]


def scan_all_environments(
    source_filter: SourceType | None = None,
    sources: Sequence[EnvironmentSource] | None = None,
) -> list[SourceEnvironment]:
    """
    scan every selected source and merge the results.

    arguments:
        `source_filter: SourceType | None`
            only scan this tool (default: all tools)
        `sources: Sequence[EnvironmentSource] | None`
            adapters to scan instead of the default ones

    returns: `list[SourceEnvironment]`
        environments sorted by source order, then name
    """
    if sources is None:
        sources = select_sources(source_filter)

    environments: list[SourceEnvironment] = []
    for source in sources:
        found = source.scan()
        logger.debug("%s: found %d environments", source.source_type, len(found))
        environments.extend(found)

    return sorted(environments, key=lambda e: (e.source_type.order, e.name))


def find_environment_by_name(
    name: str,
    source_filter: SourceType | None = None,
    sources: Sequence[EnvironmentSource] | None = None,
) -> SourceEnvironment:
    """
    find an environment by name, trying each source in order.

    raises: `SourceEnvNotFound`
        the filtered tool's not-found error, or the pyenv one when no
        filter was given
    """
    if sources is None:
        sources = select_sources(source_filter)

    last_error: SourceEnvNotFound | None = None
    for source in sources:
        try:
            return source.find(name)
        except SourceEnvNotFound as e:
            last_error = e

    if source_filter is None or last_error is None:
        raise PyenvEnvNotFound(name)
    raise last_error


def is_migratable(status: EnvironmentStatus, force: bool) -> bool:
    if isinstance(status, Ready):
        return True
    return force and isinstance(status, (PythonEol, NameConflict))


def skip_reason(status: EnvironmentStatus) -> str:
    """human-readable reason an environment was left out of a batch."""
    if isinstance(status, Corrupted):
        return f"corrupted: {status.reason}"
    if isinstance(status, PythonEol):
        return f"Python {status.version} is EOL (use --force)"
    if isinstance(status, NameConflict):
        return "name conflict (use --force)"
    return "unknown"


@final
@dataclass
class SkippedEnvironment:
    name: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "reason": self.reason}


@final
@dataclass
class FailedMigration:
    name: str
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "error": self.error}


@final
@dataclass
class BatchPlan:
    """scan results split into what will be migrated and what will not."""

    migratable: list[SourceEnvironment] = field(default_factory=list)
    skipped: list[SkippedEnvironment] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.migratable) + len(self.skipped)


@final
@dataclass
class BatchReport:
    """
    outcome of a batch migration.

    attributes:
        `total: int`
            number of environments scanned
        `migrated: list[MigrationResult]`
            results of migrations that completed
        `failed: list[FailedMigration]`
            migrations that raised, or that failed under strict mode
        `skipped: list[SkippedEnvironment]`
            environments that were not attempted
    """

    total: int = 0
    migrated: list[MigrationResult] = field(default_factory=list)
    failed: list[FailedMigration] = field(default_factory=list)
    skipped: list[SkippedEnvironment] = field(default_factory=list)

    def summary(self) -> dict[str, int]:
        return {
            "total": self.total,
            "success": len(self.migrated),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "migrated": [r.to_dict() for r in self.migrated],
            "failed": [f.to_dict() for f in self.failed],
            "skipped": [s.to_dict() for s in self.skipped],
            "summary": self.summary(),
        }


# called after each environment with either a result or the error it raised
BatchCallback = Callable[[SourceEnvironment, MigrationResult | ScoopError], None]


@final
class BatchDriver:
    """
    migrates many environments one after another.

    a failing environment never stops the batch; its error is recorded and
    the next environment is attempted.

    attributes:
        `migrator: Migrator`
            migrator invoked for each environment
    """

    migrator: Migrator

    def __init__(self, migrator: Migrator) -> None:
        self.migrator = migrator

    @staticmethod
    def partition(environments: Sequence[SourceEnvironment], force: bool) -> BatchPlan:
        plan = BatchPlan()
        for env in environments:
            if is_migratable(env.status, force):
                plan.migratable.append(env)
            else:
                plan.skipped.append(SkippedEnvironment(env.name, skip_reason(env.status)))
        return plan

    def run(
        self,
        plan: BatchPlan,
        options: MigrateOptions,
        on_result: BatchCallback | None = None,
    ) -> BatchReport:
        """
        migrate every environment in the plan, in order.

        arguments:
            `plan: BatchPlan`
                output of `partition()`
            `options: MigrateOptions`
                options applied to every migration; `rename_to` is ignored
            `on_result: BatchCallback | None`
                progress hook called after each environment

        returns: `BatchReport`
            collected results
        """
        report = BatchReport(total=plan.total, skipped=list(plan.skipped))
        env_options = MigrateOptions(
            dry_run=options.dry_run,
            force=options.force,
            skip_packages=options.skip_packages,
            strict=options.strict,
            delete_source=options.delete_source,
            auto_install_python=options.auto_install_python,
        )

        for env in plan.migratable:
            logger.debug("batch: migrating %s (%s)", env.name, env.source_type)
            try:
                result = self.migrator.migrate(env, env_options)
            except ScoopError as e:
                report.failed.append(FailedMigration(env.name, str(e)))
                if on_result:
                    on_result(env, e)
                continue

            if result.ok:
                report.migrated.append(result)
            else:
                report.failed.append(
                    FailedMigration(
                        env.name,
                        f"{len(result.packages_failed)} package(s) failed in strict mode",
                    )
                )
            if on_result:
                on_result(env, result)

        return report
