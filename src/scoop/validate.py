"""
validation of environment names.
"""

from __future__ import annotations

import re
from typing import Final

from .errors import InvalidEnvName

MAX_ENV_NAME_LENGTH: Final = 64

# names used by sibling cli verbs; compared case-insensitively
RESERVED_NAMES: Final = frozenset(
    {
        "activate",
        "base",
        "completions",
        "create",
        "deactivate",
        "default",
        "delete",
        "global",
        "help",
        "init",
        "install",
        "list",
        "local",
        "remove",
        "resolve",
        "root",
        "system",
        "uninstall",
        "use",
        "version",
        "versions",
    }
)

_ENV_NAME_RE: Final = re.compile(r"^[A-Za-z][A-Za-z0-9_-]*$")
_VERSION_RE: Final = re.compile(r"^\d+(\.\d+)*([a-z]\d+)?$")


def validate_env_name(name: str) -> None:
    """
    validate an environment name.

    arguments:
        `name: str`
            the candidate name

    raises: `InvalidEnvName`
        with a reason describing the first rule that was broken
    """
    if not name:
        raise InvalidEnvName(name, "name cannot be empty")

    if len(name) > MAX_ENV_NAME_LENGTH:
        raise InvalidEnvName(
            name, f"name exceeds maximum length of {MAX_ENV_NAME_LENGTH} characters"
        )

    if name.lower() in RESERVED_NAMES:
        raise InvalidEnvName(name, "name is reserved")

    if _VERSION_RE.match(name):
        raise InvalidEnvName(name, "name looks like a version string (must start with a letter)")

    if not _ENV_NAME_RE.match(name):
        raise InvalidEnvName(
            name,
            "name must start with a letter and contain only letters, numbers, "
            + "hyphens, and underscores",
        )


def is_valid_env_name(name: str) -> bool:
    try:
        validate_env_name(name)
    except InvalidEnvName:
        return False
    return True
