"""tests for the single-environment migration flow."""

from __future__ import annotations

import io
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from rich.console import Console

from scoop.errors import CorruptedEnvironment, MigrationFailed, MigrationNameConflict
from scoop.migrate.conflict import ConflictResolution
from scoop.migrate.extractor import PackageExtractor
from scoop.migrate.migrator import Migrator
from scoop.migrate.models import (
    Corrupted,
    EnvironmentStatus,
    NameConflict,
    PythonEol,
    Ready,
    SourceEnvironment,
    SourceType,
)
from scoop.migrate.single import (
    SingleMigrateOptions,
    migrate_environment,
    print_migration_result,
    resolve_options,
)
from scoop.migrate.sources import PyenvSource
from scoop.output import Output
from scoop.paths import virtualenv_path

if TYPE_CHECKING:
    from conftest import FakeFreeze, FakeUv


@pytest.fixture
def output() -> Output:
    return Output(console=Console(file=io.StringIO(), no_color=True, width=200))


def _captured(output: Output) -> str:
    file = output.console.file
    assert isinstance(file, io.StringIO)
    return file.getvalue()


def _source(status: EnvironmentStatus, name: str = "myenv") -> SourceEnvironment:
    return SourceEnvironment(
        name=name,
        python_version="3.12.0",
        path=Path("/src") / name,
        source_type=SourceType.PYENV,
        status=status,
    )


def _never_asked(*_args: object) -> ConflictResolution:
    raise AssertionError("prompt should not be shown")


class TestResolveOptions:
    """tests for resolve_options."""

    def test_ready(self, output: Output) -> None:
        """a ready source migrates under its own name."""
        options = resolve_options(_source(Ready()), SingleMigrateOptions(), output)

        assert options is not None
        assert options.rename_to is None
        assert options.force is False

    def test_auto_rename(self, output: Output, native_env: Callable[[str], Path]) -> None:
        """auto-rename picks {name}-pyenv, then a numbered name."""
        existing = native_env("myenv")
        opts = SingleMigrateOptions(auto_rename=True)

        first = resolve_options(_source(NameConflict(existing)), opts, output)
        _ = native_env("myenv-pyenv")
        second = resolve_options(_source(NameConflict(existing)), opts, output)

        assert first is not None and first.rename_to == "myenv-pyenv"
        assert second is not None and second.rename_to == "myenv-1"
        assert "Auto-renaming to 'myenv-pyenv'" in _captured(output)

    def test_explicit_rename_conflict(
        self, output: Output, native_env: Callable[[str], Path]
    ) -> None:
        """an explicit rename onto an existing environment fails without force."""
        existing = native_env("myenv")
        _ = native_env("other")
        opts = SingleMigrateOptions(rename="other")

        with pytest.raises(MigrationNameConflict):
            _ = resolve_options(_source(NameConflict(existing)), opts, output)

    def test_non_interactive_conflict(self, output: Output) -> None:
        """without a way to ask, a conflict is an error."""
        opts = SingleMigrateOptions(yes=True)

        with pytest.raises(MigrationNameConflict):
            _ = resolve_options(
                _source(NameConflict(Path("/x/myenv"))), opts, output, _never_asked
            )

    @pytest.mark.usefixtures("piped_stdin")
    def test_conflict_without_terminal(self, output: Output) -> None:
        """without a terminal on stdin, a conflict is an error rather than a prompt."""
        with pytest.raises(MigrationNameConflict):
            _ = resolve_options(
                _source(NameConflict(Path("/x/myenv"))), SingleMigrateOptions(), output
            )

    @pytest.mark.usefixtures("piped_stdin")
    def test_not_interactive_without_terminal(self) -> None:
        assert SingleMigrateOptions().interactive is False

    @pytest.mark.usefixtures("tty_stdin")
    def test_interactive_with_terminal(self) -> None:
        assert SingleMigrateOptions().interactive is True
        assert SingleMigrateOptions(json=True).interactive is False
        assert SingleMigrateOptions(yes=True).interactive is False

    @pytest.mark.usefixtures("tty_stdin")
    def test_interactive_skip(self, output: Output) -> None:
        """choosing skip returns no options."""
        options = resolve_options(
            _source(NameConflict(Path("/x/myenv"))),
            SingleMigrateOptions(),
            output,
            lambda _name, _existing: ConflictResolution.SKIP,
        )

        assert options is None

    @pytest.mark.usefixtures("tty_stdin")
    def test_interactive_overwrite(self, output: Output) -> None:
        """choosing overwrite turns on force."""
        options = resolve_options(
            _source(NameConflict(Path("/x/myenv"))),
            SingleMigrateOptions(),
            output,
            lambda _name, _existing: ConflictResolution.OVERWRITE,
        )

        assert options is not None
        assert options.force is True

    @pytest.mark.usefixtures("tty_stdin")
    def test_interactive_rename(self, output: Output) -> None:
        """choosing rename asks for the new name."""
        options = resolve_options(
            _source(NameConflict(Path("/x/myenv"))),
            SingleMigrateOptions(),
            output,
            lambda _name, _existing: ConflictResolution.RENAME,
            lambda _name: "myenv-two",
        )

        assert options is not None
        assert options.rename_to == "myenv-two"

    def test_eol(self, output: Output) -> None:
        """end-of-life pythons need force."""
        with pytest.raises(MigrationFailed, match="EOL"):
            _ = resolve_options(_source(PythonEol("3.7.0")), SingleMigrateOptions(), output)

        options = resolve_options(
            _source(PythonEol("3.7.0")), SingleMigrateOptions(force=True), output
        )
        assert options is not None and options.force

    def test_corrupted(self, output: Output) -> None:
        """corrupted sources always fail."""
        with pytest.raises(CorruptedEnvironment):
            _ = resolve_options(
                _source(Corrupted("Python binary not found")),
                SingleMigrateOptions(force=True),
                output,
            )


class TestMigrateEnvironment:
    """tests for migrate_environment."""

    def test_end_to_end_auto_rename(
        self,
        output: Output,
        pyenv_root: Path,
        make_pyenv_env: Callable[..., Path],
        native_env: Callable[[str], Path],
        fake_uv: FakeUv,
        fake_freeze: FakeFreeze,
    ) -> None:
        """a conflicting source is migrated under a generated name."""
        _ = make_pyenv_env("myenv", "3.12.0")
        _ = native_env("myenv")
        migrator = Migrator(fake_uv, PackageExtractor(fake_freeze))  # pyright: ignore[reportArgumentType]

        result = migrate_environment(
            "myenv",
            SingleMigrateOptions(auto_rename=True, yes=True),
            output,
            migrator,
            [PyenvSource(pyenv_root)],
        )

        assert result is not None
        assert result.path == virtualenv_path("myenv-pyenv")
        assert result.path.exists()

        print_migration_result(output, result)
        assert "→ Activate: scoop use myenv-pyenv" in _captured(output)

    def test_dry_run_report(
        self,
        output: Output,
        pyenv_root: Path,
        make_pyenv_env: Callable[..., Path],
        fake_uv: FakeUv,
        fake_freeze: FakeFreeze,
    ) -> None:
        """a dry run is reported as a preview."""
        _ = make_pyenv_env("myenv", "3.12.0")
        migrator = Migrator(fake_uv, PackageExtractor(fake_freeze))  # pyright: ignore[reportArgumentType]

        result = migrate_environment(
            "myenv",
            SingleMigrateOptions(dry_run=True),
            output,
            migrator,
            [PyenvSource(pyenv_root)],
        )
        assert result is not None
        print_migration_result(output, result)

        text = _captured(output)
        assert "[DRY-RUN] Migration preview:" in text
        assert "Packages: 2" in text
        assert fake_uv.calls == []
