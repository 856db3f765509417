"""
single-environment migration: status handling, renaming and the conflict
dialog that sit in front of the migrator.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from .. import paths
from ..errors import CorruptedEnvironment, MigrationFailed, MigrationNameConflict, UvCommandFailed
from ..output import Output, format_size, stdin_is_tty
from .batch import find_environment_by_name
from .conflict import (
    ConflictResolution,
    generate_unique_name,
    prompt_conflict_resolution,
    prompt_rename,
)
from .migrator import Available, CanInstall, Compatible, Migrator, Unavailable
from .models import (
    Corrupted,
    MigrateOptions,
    MigrationResult,
    NameConflict,
    PythonEol,
    SourceEnvironment,
    SourceType,
)
from .sources import EnvironmentSource
from .sources.base import UNKNOWN_VERSION

logger = logging.getLogger(__name__)

ConflictPrompt = Callable[[str, Path], ConflictResolution]
RenamePrompt = Callable[[str], str]


@dataclass
class SingleMigrateOptions:
    """
    cli-level options for `scoop migrate env`.

    attributes:
        `dry_run: bool`
            preview only
        `force: bool`
            overwrite conflicts and accept end-of-life pythons
        `yes: bool`
            never prompt
        `json: bool`
            machine-readable output; implies no prompts
        `strict: bool`
            treat any failed package as a failed migration
        `rename: str | None`
            explicit target name
        `auto_rename: bool`
            pick a free target name on conflict
        `delete_source: bool`
            remove the source after a successful migration
        `auto_install_python: bool`
            install a missing interpreter with uv
        `source_filter: SourceType | None`
            only look in this tool's environments
    """

    dry_run: bool = False
    force: bool = False
    yes: bool = False
    json: bool = False
    strict: bool = False
    rename: str | None = None
    auto_rename: bool = False
    delete_source: bool = False
    auto_install_python: bool = False
    source_filter: SourceType | None = None

    @property
    def interactive(self) -> bool:
        """prompts are shown only to a terminal, and never with --json or --yes."""
        return not (self.json or self.yes) and stdin_is_tty()


def resolve_options(
    source: SourceEnvironment,
    opts: SingleMigrateOptions,
    output: Output,
    ask_resolution: ConflictPrompt = prompt_conflict_resolution,
    ask_rename: RenamePrompt = prompt_rename,
) -> MigrateOptions | None:
    """
    turn cli options and the source status into migrator options.

    arguments:
        `source: SourceEnvironment`
            environment to migrate
        `opts: SingleMigrateOptions`
            cli options
        `output: Output`
            where to report decisions
        `ask_resolution: ConflictPrompt`
            asks how to resolve a conflict (interactive mode only)
        `ask_rename: RenamePrompt`
            asks for a new name (interactive mode only)

    returns: `MigrateOptions | None`
        options for the migrator, or none if the user chose to skip

    raises: `MigrationNameConflict`
        on an unresolved conflict
    raises: `MigrationFailed`
        on an end-of-life python without `force`
    raises: `CorruptedEnvironment`
        for corrupted sources
    """
    name = source.name
    final_name = opts.rename or name
    force = opts.force
    status = source.status

    if isinstance(status, Corrupted):
        output.error(f"Corrupted: {status.reason}")
        raise CorruptedEnvironment(name, status.reason)

    if isinstance(status, PythonEol):
        if not force:
            output.warn(f"Python {status.version} reached end-of-life")
            output.info("→ Use --force to proceed anyway")
            raise MigrationFailed(f"Python {status.version} is EOL")
        output.warn(f"Python {status.version} is EOL, proceeding anyway")

    if isinstance(status, NameConflict):
        if opts.auto_rename:
            final_name = generate_unique_name(name)
            output.info(f"Auto-renaming to '{final_name}'")
        elif opts.rename:
            renamed = paths.virtualenv_path(final_name)
            if renamed.exists() and not force:
                raise MigrationNameConflict(final_name, renamed)
        elif force:
            output.warn("Overwriting existing environment")
        elif opts.interactive:
            resolution = ask_resolution(name, status.existing)
            if resolution is ConflictResolution.SKIP:
                output.info("Skipped")
                return None
            if resolution is ConflictResolution.OVERWRITE:
                force = True
                output.warn("Will overwrite existing environment")
            else:
                final_name = ask_rename(name)
                output.info(f"Will migrate as '{final_name}'")
        else:
            output.warn(
                f"'{name}' already exists at {paths.abbreviate_home(status.existing)}"
            )
            output.info("→ Use --force, --rename, or --auto-rename")
            raise MigrationNameConflict(name, status.existing)

    return MigrateOptions(
        dry_run=opts.dry_run,
        force=force,
        rename_to=final_name if final_name != name else None,
        strict=opts.strict,
        delete_source=opts.delete_source,
        auto_install_python=opts.auto_install_python,
    )


def report_python_availability(
    migrator: Migrator,
    version: str,
    auto_install: bool,
    output: Output,
) -> None:
    """warn early about interpreters uv does not have; never fatal."""
    if version == UNKNOWN_VERSION:
        return

    try:
        availability = migrator.check_python_availability(version)
    except UvCommandFailed as e:
        logger.debug("could not check python availability: %s", e)
        return

    if isinstance(availability, Available):
        return
    if isinstance(availability, Compatible):
        output.info(f"  Python {version} not installed, {availability.available.version} is")
    elif isinstance(availability, CanInstall):
        if auto_install:
            output.info(f"  Python {availability.version} will be installed with uv")
        else:
            output.warn(f"Python {version} is not installed")
            output.info("→ Use --auto-install-python to install it with uv")
    elif isinstance(availability, Unavailable):
        output.warn(availability.reason)


def print_source(output: Output, source: SourceEnvironment) -> None:
    output.info(f"Source: {source.name} ({source.source_type}, Python {source.python_version})")
    output.info(f"  Path: {paths.abbreviate_home(source.path)}")
    if source.size_bytes is not None:
        output.info(f"  Size: {format_size(source.size_bytes)}")


def print_migration_result(output: Output, result: MigrationResult) -> None:
    """render a migration result in human-readable form."""
    if result.dry_run:
        output.info("")
        output.info("[DRY-RUN] Migration preview:")
        output.info(f"  Would create: {paths.abbreviate_home(result.path)}")
        output.info(f"  Python: {result.python_version}")
        output.info(f"  Packages: {result.packages_migrated}")
        if result.packages_failed:
            output.warn(f"  May fail: {len(result.packages_failed)} packages")
            for pkg in result.packages_failed:
                output.info(f"    - {pkg}")
        output.info("")
        output.info("→ Run without --dry-run to migrate")
        return

    if result.ok:
        output.success(f"Migrated '{result.name}'")
    else:
        output.error(f"Migrated '{result.name}' with failures (strict mode)")
    output.info(f"  Path: {paths.abbreviate_home(result.path)}")
    output.info(f"  Python: {result.actual_python_version}")
    output.info(f"  Packages: {result.packages_migrated} installed")
    if result.packages_failed:
        output.warn(
            f"  Failed: {len(result.packages_failed)} packages (may need manual install)"
        )
        for pkg in result.packages_failed:
            output.info(f"    - {pkg}")
    if result.source_deleted:
        output.info("  Source environment deleted")
    output.info("")
    output.info(f"→ Activate: scoop use {result.name}")


def migrate_environment(
    name: str,
    opts: SingleMigrateOptions,
    output: Output,
    migrator: Migrator,
    sources: Sequence[EnvironmentSource] | None = None,
    ask_resolution: ConflictPrompt = prompt_conflict_resolution,
    ask_rename: RenamePrompt = prompt_rename,
) -> MigrationResult | None:
    """
    find, check and migrate one environment.

    returns: `MigrationResult | None`
        the result, or none if the user skipped the migration
    """
    source = find_environment_by_name(name, opts.source_filter, sources).with_size()
    print_source(output, source)

    options = resolve_options(source, opts, output, ask_resolution, ask_rename)
    if options is None:
        return None

    if not opts.dry_run:
        report_python_availability(
            migrator, source.python_version, opts.auto_install_python, output
        )

    output.info("[DRY-RUN] Simulating..." if opts.dry_run else "Migrating...")
    return migrator.migrate(source, options)
