"""tests for multi-source discovery and batch migration."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from scoop.errors import CondaEnvNotFound, PyenvEnvNotFound, ScoopError
from scoop.migrate.batch import (
    BatchDriver,
    find_environment_by_name,
    scan_all_environments,
    skip_reason,
)
from scoop.migrate.extractor import PackageExtractor
from scoop.migrate.migrator import Migrator
from scoop.migrate.models import (
    Corrupted,
    MigrateOptions,
    MigrationResult,
    NameConflict,
    PythonEol,
    Ready,
    SourceEnvironment,
    SourceType,
)
from scoop.migrate.sources import CondaSource, PyenvSource, VenvWrapperSource

if TYPE_CHECKING:
    from conftest import FakeFreeze, FakeUv


def _env(name: str, status: object, path: Path | None = None) -> SourceEnvironment:
    return SourceEnvironment(
        name=name,
        python_version="3.12.0",
        path=path or Path("/src") / name,
        source_type=SourceType.PYENV,
        status=status,  # pyright: ignore[reportArgumentType]
    )


class TestPartition:
    """tests for BatchDriver.partition and skip reasons."""

    def test_without_force(self) -> None:
        """only ready environments are migrated without force."""
        envs = [
            _env("a", Ready()),
            _env("b", PythonEol("3.7.0")),
            _env("c", NameConflict(Path("/x/c"))),
            _env("d", Corrupted("Python binary not found")),
        ]

        plan = BatchDriver.partition(envs, force=False)

        assert [e.name for e in plan.migratable] == ["a"]
        assert [s.name for s in plan.skipped] == ["b", "c", "d"]
        assert plan.total == 4

    def test_with_force(self) -> None:
        """force admits eol and conflicting environments, never corrupted ones."""
        envs = [
            _env("b", PythonEol("3.7.0")),
            _env("c", NameConflict(Path("/x/c"))),
            _env("d", Corrupted("Python binary not found")),
        ]

        plan = BatchDriver.partition(envs, force=True)

        assert [e.name for e in plan.migratable] == ["b", "c"]
        assert [s.name for s in plan.skipped] == ["d"]

    def test_skip_reasons(self) -> None:
        assert skip_reason(Corrupted("x")) == "corrupted: x"
        assert skip_reason(PythonEol("2.7.18")) == "Python 2.7.18 is EOL (use --force)"
        assert skip_reason(NameConflict(Path("/x"))) == "name conflict (use --force)"


class TestRun:
    """tests for BatchDriver.run."""

    def test_failure_does_not_stop_batch(
        self,
        tmp_path: Path,
        make_env: Callable[..., Path],
        fake_uv: FakeUv,
        fake_freeze: FakeFreeze,
    ) -> None:
        """a failing environment is recorded and the rest still migrate."""
        good = make_env(tmp_path.joinpath("src", "good"))
        broken = make_env(tmp_path.joinpath("src", "broken"), pip=False)
        other = make_env(tmp_path.joinpath("src", "other"))
        plan = BatchDriver.partition(
            [_env("broken", Ready(), broken), _env("good", Ready(), good), _env("other", Ready(), other)],
            force=False,
        )
        seen: list[tuple[str, bool]] = []

        def on_result(env: SourceEnvironment, outcome: MigrationResult | ScoopError) -> None:
            seen.append((env.name, isinstance(outcome, MigrationResult)))

        driver = BatchDriver(Migrator(fake_uv, PackageExtractor(fake_freeze)))  # pyright: ignore[reportArgumentType]
        report = driver.run(plan, MigrateOptions(), on_result)

        assert [r.name for r in report.migrated] == ["good", "other"]
        assert [f.name for f in report.failed] == ["broken"]
        assert "pip not found" in report.failed[0].error
        assert report.summary() == {"total": 3, "success": 2, "failed": 1, "skipped": 0}
        assert seen == [("broken", False), ("good", True), ("other", True)]

    def test_strict_failures_counted_as_failed(
        self,
        tmp_path: Path,
        make_env: Callable[..., Path],
        fake_uv: FakeUv,
        fake_freeze: FakeFreeze,
    ) -> None:
        """under strict mode, partial package failures fail the environment."""
        env = make_env(tmp_path.joinpath("src", "web"))
        fake_uv.failing_packages = {"flask==3.0.0"}
        plan = BatchDriver.partition([_env("web", Ready(), env)], force=False)

        driver = BatchDriver(Migrator(fake_uv, PackageExtractor(fake_freeze)))  # pyright: ignore[reportArgumentType]
        report = driver.run(plan, MigrateOptions(strict=True))

        assert report.migrated == []
        assert report.failed[0].error == "1 package(s) failed in strict mode"

    def test_rename_is_ignored(
        self,
        tmp_path: Path,
        make_env: Callable[..., Path],
        fake_uv: FakeUv,
        fake_freeze: FakeFreeze,
    ) -> None:
        """every environment keeps its own name in a batch."""
        env = make_env(tmp_path.joinpath("src", "web"))
        plan = BatchDriver.partition([_env("web", Ready(), env)], force=False)

        driver = BatchDriver(Migrator(fake_uv, PackageExtractor(fake_freeze)))  # pyright: ignore[reportArgumentType]
        report = driver.run(plan, MigrateOptions(rename_to="other"))

        assert report.migrated[0].name == "web"

    def test_report_dict(self) -> None:
        plan = BatchDriver.partition([_env("old", PythonEol("3.6.15"))], force=False)
        report = BatchDriver(Migrator(object())).run(plan, MigrateOptions())  # pyright: ignore[reportArgumentType]

        assert report.to_dict() == {
            "migrated": [],
            "failed": [],
            "skipped": [{"name": "old", "reason": "Python 3.6.15 is EOL (use --force)"}],
            "summary": {"total": 1, "success": 0, "failed": 0, "skipped": 1},
        }


class TestDiscovery:
    """tests for scan_all_environments and find_environment_by_name."""

    def test_scan_order(
        self,
        pyenv_root: Path,
        workon_home: Path,
        conda_envs: Path,
        make_pyenv_env: Callable[..., Path],
        make_env: Callable[..., Path],
        make_conda_env: Callable[..., Path],
    ) -> None:
        """results are ordered by source, then by name."""
        _ = make_pyenv_env("zeta")
        _ = make_pyenv_env("alpha")
        _ = make_env(workon_home.joinpath("middle"))
        _ = make_conda_env(conda_envs, "analysis")

        sources = [
            CondaSource([conda_envs]),
            VenvWrapperSource(workon_home),
            PyenvSource(pyenv_root),
        ]
        envs = scan_all_environments(sources=sources)

        assert [(e.source_type, e.name) for e in envs] == [
            (SourceType.PYENV, "alpha"),
            (SourceType.PYENV, "zeta"),
            (SourceType.VENVWRAPPER, "middle"),
            (SourceType.CONDA, "analysis"),
        ]

    def test_find_falls_through_sources(
        self,
        pyenv_root: Path,
        conda_envs: Path,
        make_conda_env: Callable[..., Path],
    ) -> None:
        """a name missing from pyenv is looked up in the next source."""
        _ = make_conda_env(conda_envs, "analysis")
        sources = [PyenvSource(pyenv_root), CondaSource([conda_envs])]

        env = find_environment_by_name("analysis", sources=sources)

        assert env.source_type is SourceType.CONDA

    def test_not_found_without_filter(self, pyenv_root: Path, conda_envs: Path) -> None:
        """an unfiltered miss reports the pyenv error."""
        sources = [PyenvSource(pyenv_root), CondaSource([conda_envs])]

        with pytest.raises(PyenvEnvNotFound):
            _ = find_environment_by_name("ghost", sources=sources)

    def test_not_found_with_filter(self, conda_envs: Path) -> None:
        """a filtered miss reports that tool's error."""
        with pytest.raises(CondaEnvNotFound):
            _ = find_environment_by_name(
                "ghost", SourceType.CONDA, sources=[CondaSource([conda_envs])]
            )
