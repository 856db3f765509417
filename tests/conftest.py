"""shared fixtures for the scoop test suite."""

from __future__ import annotations

import io
import subprocess
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from scoop.errors import UvCommandFailed
from scoop.uv import PythonInfo, version_matches

_ISOLATED_VARS = (
    "PYENV_ROOT",
    "WORKON_HOME",
    "CONDA_PREFIX",
    "SCOOP_UV",
    "NO_COLOR",
    "SCOOP_NO_COLOR",
    "SCOOP_MIGRATE_STRICT",
    "SCOOP_AUTO_INSTALL_PYTHON",
)

EnvFactory = Callable[..., Path]


@pytest.fixture(autouse=True)
def scoop_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """point SCOOP_HOME and HOME at temporary directories for every test."""
    home = tmp_path.joinpath("home")
    home.mkdir()
    native = tmp_path.joinpath("scoop-home")
    native.joinpath("virtualenvs").mkdir(parents=True)

    for var in _ISOLATED_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("SCOOP_HOME", str(native))
    return native


@pytest.fixture
def native_env(scoop_home: Path) -> Callable[[str], Path]:
    """create an existing native environment by name."""

    def create(name: str) -> Path:
        path = scoop_home.joinpath("virtualenvs", name)
        path.joinpath("bin").mkdir(parents=True)
        path.joinpath("bin", "python").touch()
        return path

    return create


@pytest.fixture
def make_env() -> EnvFactory:
    """build a fake virtual environment directory."""

    def create(
        path: Path,
        version: str | None = "3.12.0",
        home: str | None = None,
        python: bool = True,
        pip: bool = True,
    ) -> Path:
        path.joinpath("bin").mkdir(parents=True, exist_ok=True)
        if python:
            path.joinpath("bin", "python").touch()
        if pip:
            path.joinpath("bin", "pip").touch()

        lines: list[str] = []
        if home is not None:
            lines.append(f"home = {home}")
        if version is not None:
            lines.append(f"version = {version}")
        if lines:
            _ = path.joinpath("pyvenv.cfg").write_text("\n".join(lines) + "\n")
        return path

    return create


@pytest.fixture
def pyenv_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path.joinpath("pyenv")
    root.joinpath("versions").mkdir(parents=True)
    monkeypatch.setenv("PYENV_ROOT", str(root))
    return root


@pytest.fixture
def make_pyenv_env(pyenv_root: Path, make_env: EnvFactory) -> EnvFactory:
    """create `{PYENV_ROOT}/versions/{python}/envs/{name}`."""

    def create(name: str, python_version: str = "3.12.0", **kwargs: object) -> Path:
        path = pyenv_root.joinpath("versions", python_version, "envs", name)
        kwargs.setdefault("version", python_version)
        return make_env(path, **kwargs)

    return create


@pytest.fixture
def workon_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path.joinpath("virtualenvs")
    root.mkdir()
    monkeypatch.setenv("WORKON_HOME", str(root))
    return root


@pytest.fixture
def conda_envs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """an `envs/` directory exposed through CONDA_PREFIX."""
    prefix = tmp_path.joinpath("miniconda")
    envs = prefix.joinpath("envs")
    envs.mkdir(parents=True)
    monkeypatch.setenv("CONDA_PREFIX", str(prefix))
    return envs


@pytest.fixture
def make_conda_env(make_env: EnvFactory) -> EnvFactory:
    def create(
        root: Path, name: str, python_version: str | None = "3.11.5", **kwargs: object
    ) -> Path:
        kwargs.setdefault("version", None)
        path = make_env(root.joinpath(name), **kwargs)
        meta = path.joinpath("conda-meta")
        meta.mkdir()
        if python_version is not None:
            _ = meta.joinpath(f"python-{python_version}-h1234_0_cpython.json").write_text("{}")
        return path

    return create


class FakeUv:
    """
    stand-in for `UvClient` that never spawns a process.

    attributes:
        `calls: list[tuple[str, ...]]`
            every call made, as (method, *arguments)
        `failing_packages: set[str]`
            requirement strings whose installation fails
        `fail_all_installs: bool`
            make every `pip_install` call fail
        `venv_errors: list[str]`
            stderr texts raised by successive `create_venv` calls
        `leave_partial: bool`
            make a failing `create_venv` leave its directory behind
        `installed: list[PythonInfo]`
            interpreters reported as installed
        `downloadable: list[PythonInfo]`
            interpreters reported by `uv python list`
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.failing_packages: set[str] = set()
        self.fail_all_installs = False
        self.venv_errors: list[str] = []
        self.leave_partial = False
        self.installed: list[PythonInfo] = []
        self.downloadable: list[PythonInfo] = []

    def version(self) -> str:
        self.calls.append(("version",))
        return "uv 0.5.0"

    def create_venv(self, path: Path, python_version: str) -> None:
        self.calls.append(("create_venv", str(path), python_version))
        if self.venv_errors:
            if self.leave_partial:
                path.mkdir(parents=True, exist_ok=True)
            raise UvCommandFailed(f"uv venv {path}", self.venv_errors.pop(0))
        path.joinpath("bin").mkdir(parents=True)
        path.joinpath("bin", "python").touch()

    def install_python(self, version: str) -> None:
        self.calls.append(("install_python", version))

    def pip_install(self, venv_path: Path, packages: Sequence[str]) -> None:
        self.calls.append(("pip_install", str(venv_path), *packages))
        if self.fail_all_installs or self.failing_packages.intersection(packages):
            raise UvCommandFailed("uv pip install", "resolution failed")

    def list_pythons(self) -> list[PythonInfo]:
        return self.installed + self.downloadable

    def list_installed_pythons(self) -> list[PythonInfo]:
        return list(self.installed)

    def find_python(self, version_pattern: str) -> PythonInfo | None:
        for info in self.installed:
            if version_matches(version_pattern, info.version):
                return info
        return None

    def methods_called(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_uv() -> FakeUv:
    return FakeUv()


class FakeFreeze:
    """freeze runner returning canned output and recording invocations."""

    def __init__(self, stdout: str = "", returncode: int = 0, stderr: str = "") -> None:
        self.stdout = stdout
        self.returncode = returncode
        self.stderr = stderr
        self.commands: list[list[str]] = []

    def __call__(self, command: Sequence[str]) -> subprocess.CompletedProcess[str]:
        self.commands.append(list(command))
        return subprocess.CompletedProcess(
            list(command), self.returncode, stdout=self.stdout, stderr=self.stderr
        )


@pytest.fixture
def fake_freeze() -> FakeFreeze:
    return FakeFreeze("requests==2.31.0\nflask==3.0.0\n")


class TerminalInput(io.StringIO):
    """stdin replacement that claims to be a terminal."""

    def isatty(self) -> bool:
        return True


@pytest.fixture
def tty_stdin(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(sys, "stdin", TerminalInput())


@pytest.fixture
def piped_stdin(monkeypatch: pytest.MonkeyPatch) -> None:
    """an empty, non-terminal stdin, as under a pipe or in ci."""
    monkeypatch.setattr(sys, "stdin", io.StringIO(""))
