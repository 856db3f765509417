"""
name conflict resolution for single-environment migrations.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from .. import paths
from ..errors import InvalidEnvName, MigrationFailed
from ..validate import validate_env_name

MAX_RENAME_ATTEMPTS = 100


class ConflictResolution(Enum):
    """what to do when the target name is already taken."""

    OVERWRITE = "overwrite"
    RENAME = "rename"
    SKIP = "skip"


_CHOICES: dict[str, tuple[ConflictResolution, str]] = {
    "1": (ConflictResolution.OVERWRITE, "Overwrite - Delete existing and migrate fresh"),
    "2": (ConflictResolution.RENAME, "Rename - Migrate with a different name"),
    "3": (ConflictResolution.SKIP, "Skip - Don't migrate this environment"),
}


def prompt_conflict_resolution(
    name: str,
    existing: Path,
    console: Console | None = None,
) -> ConflictResolution:
    """
    ask how to resolve a name conflict.

    arguments:
        `name: str`
            conflicting environment name
        `existing: Path`
            path of the environment that already uses the name
        `console: Console | None`
            console to render on (default: a stderr console)

    returns: `ConflictResolution`
        the chosen resolution; skip when the prompt is accepted as-is
    """
    console = console or Console(stderr=True)
    console.print(
        f"[yellow]Name conflict:[/yellow] '{name}' already exists at "
        + paths.abbreviate_home(existing)
    )
    for key, (_, label) in _CHOICES.items():
        console.print(f"  {key}. {label}")

    choice = Prompt.ask(
        "How would you like to resolve this conflict?",
        choices=list(_CHOICES),
        default="3",
        console=console,
    )
    return _CHOICES.get(choice, (ConflictResolution.SKIP, ""))[0]


def prompt_rename(name: str, console: Console | None = None) -> str:
    """
    ask for a new environment name, suggesting `{name}-pyenv`.

    the prompt repeats until the answer passes environment name validation.

    arguments:
        `name: str`
            original environment name
        `console: Console | None`
            console to render on (default: a stderr console)

    returns: `str`
        the validated new name
    """
    console = console or Console(stderr=True)
    suggested = f"{name}-pyenv"

    while True:
        new_name = Prompt.ask(
            "Enter new name for the environment",
            default=suggested,
            console=console,
        ).strip()
        try:
            validate_env_name(new_name)
        except InvalidEnvName as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            continue
        return new_name


def generate_unique_name(base_name: str) -> str:
    """
    pick a free target name derived from `base_name`.

    tries `{base_name}-pyenv` first, then `{base_name}-1` up to
    `{base_name}-99`.

    raises: `MigrationFailed`
        if every candidate is taken
    """
    candidates = [f"{base_name}-pyenv"]
    candidates.extend(f"{base_name}-{i}" for i in range(1, MAX_RENAME_ATTEMPTS))

    for candidate in candidates:
        if not paths.virtualenv_path(candidate).exists():
            return candidate

    raise MigrationFailed(f"Could not find unique name for '{base_name}'")
