"""
command-line interface for scoop.

provides the `migrate` commands that move environments from pyenv-virtualenv,
virtualenvwrapper and conda into scoop's own layout.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from rich.prompt import Confirm

from . import __version__
from .config import Config
from .errors import ScoopError
from .migrate.batch import BatchCallback, BatchDriver, BatchReport, scan_all_environments
from .migrate.migrator import Migrator
from .migrate.models import (
    Corrupted,
    MigrateOptions,
    MigrationExitCode,
    MigrationResult,
    NameConflict,
    PythonEol,
    Ready,
    SourceEnvironment,
    SourceType,
)
from .migrate.single import SingleMigrateOptions, migrate_environment, print_migration_result
from .output import Output, format_size, stdin_is_tty
from .paths import abbreviate_home
from .uv import UvClient

SOURCE_CHOICES = [s.value for s in SourceType]


def create_parser() -> argparse.ArgumentParser:
    """
    create the argument parser for the cli.

    returns: `argparse.ArgumentParser`
        configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="scoop",
        description="python virtual environment manager powered by uv",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  scoop migrate list                       # show migratable environments
  scoop migrate env myproject --dry-run    # preview a migration
  scoop migrate env myproject              # migrate one environment
  scoop migrate all --source pyenv --yes   # migrate every pyenv environment
        """,
    )
    _ = parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    _ = parser.add_argument(
        "--debug",
        action="store_true",
        help="enable debug logging for troubleshooting",
    )
    _ = parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="only print warnings and errors",
    )
    _ = parser.add_argument(
        "--no-color",
        action="store_true",
        help="disable coloured output",
    )

    subparsers = parser.add_subparsers(dest="command", help="available commands")

    # migrate command
    migrate_parser = subparsers.add_parser(
        "migrate",
        help="migrate environments from pyenv, virtualenvwrapper or conda",
    )
    migrate_subparsers = migrate_parser.add_subparsers(dest="migrate_command")

    # options shared by every migrate subcommand
    common = argparse.ArgumentParser(add_help=False)
    _ = common.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="output in json format",
    )
    _ = common.add_argument(
        "--source",
        choices=SOURCE_CHOICES,
        help="only consider environments from this tool",
    )

    # options shared by the migrating subcommands
    migrating = argparse.ArgumentParser(add_help=False)
    _ = migrating.add_argument(
        "--dry-run",
        action="store_true",
        help="show what would happen without changing anything",
    )
    _ = migrating.add_argument(
        "--force",
        "-f",
        action="store_true",
        help="overwrite existing environments and accept end-of-life pythons",
    )
    _ = migrating.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="do not ask for confirmation",
    )
    _ = migrating.add_argument(
        "--strict",
        action="store_true",
        help="treat any package that fails to install as a failed migration",
    )
    _ = migrating.add_argument(
        "--delete-source",
        action="store_true",
        help="delete the original environment after a successful migration",
    )

    list_parser = migrate_subparsers.add_parser(
        "list",
        parents=[common],
        help="list environments available for migration",
    )
    _ = list_parser.add_argument(
        "--size",
        action="store_true",
        help="compute the size of each environment",
    )

    _ = migrate_subparsers.add_parser(
        "all",
        parents=[common, migrating],
        help="migrate every eligible environment",
    )

    env_parser = migrate_subparsers.add_parser(
        "env",
        parents=[common, migrating],
        help="migrate a single environment",
    )
    _ = env_parser.add_argument("name", help="name of the environment to migrate")
    rename_group = env_parser.add_mutually_exclusive_group()
    _ = rename_group.add_argument(
        "--rename",
        metavar="NEW",
        help="migrate under a different name",
    )
    _ = rename_group.add_argument(
        "--auto-rename",
        action="store_true",
        help="pick a free name automatically on conflict",
    )
    _ = env_parser.add_argument(
        "--auto-install-python",
        action="store_true",
        help="install a missing python interpreter with uv",
    )

    return parser


def _source_filter(args: argparse.Namespace) -> SourceType | None:
    source_raw = getattr(args, "source", None)
    return SourceType(str(source_raw)) if source_raw else None  # pyright: ignore[reportAny]


def _status_display(env: SourceEnvironment) -> tuple[str, str]:
    status = env.status
    if isinstance(status, NameConflict):
        return "⚠", f" (conflicts with {abbreviate_home(status.existing)})"
    if isinstance(status, PythonEol):
        return "⚠", f" (Python {status.version} is EOL)"
    if isinstance(status, Corrupted):
        return "✗", f" ({status.reason})"
    return "✓", ""


def list_summary(environments: Sequence[SourceEnvironment]) -> dict[str, int]:
    """count environments per status."""
    summary = {"total": len(environments), "ready": 0, "conflict": 0, "eol": 0, "corrupted": 0}
    for env in environments:
        if isinstance(env.status, Ready):
            summary["ready"] += 1
        elif isinstance(env.status, NameConflict):
            summary["conflict"] += 1
        elif isinstance(env.status, PythonEol):
            summary["eol"] += 1
        elif isinstance(env.status, Corrupted):
            summary["corrupted"] += 1
    return summary


def handle_migrate_list(args: argparse.Namespace, config: Config, output: Output) -> int:
    """
    handle `scoop migrate list`.

    arguments:
        `args: argparse.Namespace`
            parsed arguments
        `config: Config`
            configuration
        `output: Output`
            output handler

    returns: `int`
        exit code
    """
    source = _source_filter(args)
    compute_size = bool(getattr(args, "size", False)) or config.migrate.compute_size

    output.info(f"Scanning {source or 'all sources'} for environments...")
    environments = scan_all_environments(source)
    if compute_size:
        environments = [env.with_size() for env in environments]

    if output.json:
        output.json_success(
            "migrate list",
            {
                "source": str(source) if source else "all",
                "environments": [env.to_dict() for env in environments],
                "summary": list_summary(environments),
            },
        )
        return 0

    if not environments:
        output.info(f"No {f'{source} ' if source else ''}environments found.")
        return 0

    output.success(f"Found {len(environments)} environment(s):")

    current: SourceType | None = None
    for env in environments:
        if env.source_type is not current:
            print(f"\n  [{env.source_type}]")
            current = env.source_type

        icon, hint = _status_display(env)
        size = format_size(env.size_bytes) if env.size_bytes is not None else "-"
        print(f"    {icon} {env.name:<20} Python {env.python_version:<10} {size:>10}{hint}")

    print()
    output.info("To migrate: scoop migrate env <name>")
    output.info("To preview: scoop migrate env <name> --dry-run")
    return 0


def _report_batch_item(output: Output, dry_run: bool) -> BatchCallback:
    def report(env: SourceEnvironment, outcome: MigrationResult | ScoopError) -> None:
        if isinstance(outcome, ScoopError):
            output.error(f"'{env.name}' failed: {outcome}")
            return

        if dry_run:
            output.info(f"  [DRY-RUN] Would create: {abbreviate_home(outcome.path)}")
            output.info(f"  Packages: {outcome.packages_migrated}")
            return

        if outcome.ok:
            output.success(f"'{outcome.name}' migrated ({outcome.packages_migrated} packages)")
        else:
            output.error(f"'{outcome.name}' migrated with failures (strict mode)")
        if outcome.packages_failed:
            output.warn(f"  {len(outcome.packages_failed)} package(s) failed")

    return report


def batch_exit_code(report: BatchReport) -> int:
    """0 if everything succeeded, 3 if anything partially failed, 1 if nothing succeeded."""
    if report.failed:
        return MigrationExitCode.PARTIAL_SUCCESS if report.migrated else MigrationExitCode.FAILED
    if any(r.packages_failed for r in report.migrated):
        return MigrationExitCode.PARTIAL_SUCCESS
    return MigrationExitCode.SUCCESS


def handle_migrate_all(args: argparse.Namespace, config: Config, output: Output) -> int:
    """
    handle `scoop migrate all`.

    arguments:
        `args: argparse.Namespace`
            parsed arguments
        `config: Config`
            configuration
        `output: Output`
            output handler

    returns: `int`
        exit code (0 = all migrated, 1 = all failed, 3 = partial success)
    """
    source = _source_filter(args)
    dry_run = bool(getattr(args, "dry_run", False))
    force = bool(getattr(args, "force", False))
    yes = bool(getattr(args, "yes", False))
    strict = bool(getattr(args, "strict", False)) or config.migrate.strict
    delete_source = bool(getattr(args, "delete_source", False))

    output.info(f"Scanning {source or 'all sources'} for environments...")
    environments = scan_all_environments(source)
    plan = BatchDriver.partition(environments, force)

    if not plan.migratable:
        if output.json:
            report = BatchReport(total=plan.total, skipped=plan.skipped)
            output.json_success("migrate all", report.to_dict())
        elif not environments:
            output.info(f"No {f'{source} ' if source else ''}environments found.")
        else:
            output.info("No environments eligible for migration.")
            output.info(f"{len(plan.skipped)} environment(s) skipped")
        return 0

    output.info(f"Found {len(plan.migratable)} environment(s) to migrate:")
    for env in plan.migratable:
        hint = ""
        if isinstance(env.status, NameConflict):
            hint = " (will overwrite)"
        elif isinstance(env.status, PythonEol):
            hint = f" (Python {env.status.version} EOL)"
        output.info(f"  - {env.name} (Python {env.python_version}){hint}")

    for skipped in plan.skipped:
        output.warn(f"skipping '{skipped.name}': {skipped.reason}")

    if not (yes or dry_run or output.json):
        if not stdin_is_tty():
            output.warn("Not running in a terminal; use --yes to migrate without confirmation")
            output.info("Migration cancelled.")
            return 0

        confirmed = Confirm.ask(
            f"Migrate {len(plan.migratable)} environment(s)?",
            default=False,
            console=output.console,
        )
        if not confirmed:
            output.info("Migration cancelled.")
            return 0

    migrator = Migrator(UvClient.locate(config.uv_path))
    options = MigrateOptions(
        dry_run=dry_run,
        force=force,
        strict=strict,
        delete_source=delete_source,
        auto_install_python=config.migrate.auto_install_python,
    )

    output.info("[DRY-RUN] Simulating..." if dry_run else "Migrating...")
    report = BatchDriver(migrator).run(plan, options, _report_batch_item(output, dry_run))

    if output.json:
        output.json_success("migrate all", report.to_dict())
        return batch_exit_code(report)

    output.info("")
    output.info("─" * 40)
    if dry_run:
        output.info(f"[DRY-RUN] {len(report.migrated)} environment(s) would be migrated")
        output.info("No changes were made.")
    else:
        output.success(
            f"Migrated {len(report.migrated)}/{len(plan.migratable)} environment(s)"
        )
    if report.failed:
        output.warn(f"Failed: {', '.join(f.name for f in report.failed)}")

    return batch_exit_code(report)


def handle_migrate_env(args: argparse.Namespace, config: Config, output: Output) -> int:
    """
    handle `scoop migrate env NAME`.

    arguments:
        `args: argparse.Namespace`
            parsed arguments
        `config: Config`
            configuration
        `output: Output`
            output handler

    returns: `int`
        exit code (0 = success, 1 = failed, 3 = some packages failed)
    """
    rename_raw = getattr(args, "rename", None)
    opts = SingleMigrateOptions(
        dry_run=bool(getattr(args, "dry_run", False)),
        force=bool(getattr(args, "force", False)),
        yes=bool(getattr(args, "yes", False)),
        json=output.json,
        strict=bool(getattr(args, "strict", False)) or config.migrate.strict,
        rename=str(rename_raw) if rename_raw else None,  # pyright: ignore[reportAny]
        auto_rename=bool(getattr(args, "auto_rename", False)),
        delete_source=bool(getattr(args, "delete_source", False)),
        auto_install_python=bool(getattr(args, "auto_install_python", False))
        or config.migrate.auto_install_python,
        source_filter=_source_filter(args),
    )
    name = str(getattr(args, "name", ""))  # pyright: ignore[reportAny]

    migrator = Migrator(UvClient.locate(config.uv_path))
    result = migrate_environment(name, opts, output, migrator)
    if result is None:
        return 0

    if output.json:
        output.json_success("migrate", result.to_dict())
    else:
        print_migration_result(output, result)

    return int(result.exit_code())


def handle_migrate(args: argparse.Namespace, config: Config, output: Output) -> int:
    """dispatch `scoop migrate` subcommands; no subcommand lists environments."""
    sub_raw = getattr(args, "migrate_command", None)
    subcommand = str(sub_raw) if sub_raw is not None else "list"  # pyright: ignore[reportAny]

    if subcommand == "all":
        return handle_migrate_all(args, config, output)
    if subcommand == "env":
        return handle_migrate_env(args, config, output)
    return handle_migrate_list(args, config, output)


def _command_name(args: argparse.Namespace) -> str:
    sub_raw = getattr(args, "migrate_command", None)
    if sub_raw == "env":
        return "migrate"
    return f"migrate {sub_raw or 'list'}"  # pyright: ignore[reportAny]


def main(argv: Sequence[str] | None = None) -> int:
    """
    run the cli main entry point.

    arguments:
        `argv: Sequence[str] | None`
            command-line arguments (default: sys.argv[1:])

    returns: `int`
        exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    cmd_raw = getattr(args, "command", None)
    command = str(cmd_raw) if cmd_raw is not None else None  # pyright: ignore[reportAny]

    if bool(getattr(args, "debug", False)):
        logging.basicConfig(
            level=logging.DEBUG,
            format="[%(name)s] %(message)s",
        )

    if not command:
        parser.print_help()
        return 2

    json_output = bool(getattr(args, "json_output", False))

    try:
        config = Config.load()
        output = Output(
            quiet=bool(getattr(args, "quiet", False)),
            no_color=bool(getattr(args, "no_color", False)) or config.no_color,
            json=json_output,
        )

        if command == "migrate":
            return handle_migrate(args, config, output)

    except ScoopError as e:
        if json_output:
            Output(json=True).json_error(_command_name(args), e.code, str(e))
        else:
            print(f"scoop: error: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 2


def entry() -> None:
    sys.exit(main())


if __name__ == "__main__":
    entry()
