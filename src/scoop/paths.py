"""
path helpers for the native scoop layout.

nothing here is cached: `SCOOP_HOME` is read from the environment on every
call so that tests and long-lived callers always see the current value.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

from .errors import HomeNotFound

SCOOP_HOME_ENV: Final = "SCOOP_HOME"
SCOOP_HOME_DIR: Final = ".scoop"
VIRTUALENVS_DIR: Final = "virtualenvs"


def home_dir() -> Path:
    """
    return the user's home directory.

    returns: `Path`
        the home directory

    raises: `HomeNotFound`
        if no home directory can be determined
    """
    try:
        return Path.home()
    except (RuntimeError, KeyError) as e:
        raise HomeNotFound() from e


def scoop_home() -> Path:
    """return `$SCOOP_HOME` if set, else `~/.scoop`."""
    if home := os.environ.get(SCOOP_HOME_ENV):
        return Path(home)
    return home_dir().joinpath(SCOOP_HOME_DIR)


def virtualenvs_dir() -> Path:
    return scoop_home().joinpath(VIRTUALENVS_DIR)


def virtualenv_path(name: str) -> Path:
    """return the native path of the environment called `name`."""
    return virtualenvs_dir().joinpath(name)


def virtualenv_python(name: str) -> Path:
    return virtualenv_path(name).joinpath("bin", "python")


def config_file() -> Path:
    return scoop_home().joinpath("config.toml")


def abbreviate_home(path: Path) -> str:
    """
    replace a leading home directory with `~` for display.

    arguments:
        `path: Path`
            path to abbreviate

    returns: `str`
        the abbreviated path, or the path unchanged if it is not under home
    """
    try:
        home = home_dir()
    except HomeNotFound:
        return str(path)

    try:
        relative = path.relative_to(home)
    except ValueError:
        return str(path)

    if relative == Path("."):
        return "~"
    return str(Path("~").joinpath(relative))
