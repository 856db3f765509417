"""
error types for scoop.

every error carries its structured fields as attributes so that callers can
render them however they like (plain text, json, localised messages). the
`code` class attribute is a stable identifier used in json error envelopes.
"""

from __future__ import annotations

from pathlib import Path


class ScoopError(Exception):
    """base class for all scoop errors."""

    code: str = "ERROR"


class HomeNotFound(ScoopError):
    """the user's home directory could not be determined."""

    code = "HOME_NOT_FOUND"

    def __init__(self) -> None:
        super().__init__("could not determine home directory")


class VirtualenvNotFound(ScoopError):
    code = "ENV_NOT_FOUND"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"virtual environment '{name}' not found")


class VirtualenvExists(ScoopError):
    code = "ENV_EXISTS"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"virtual environment '{name}' already exists")


class InvalidEnvName(ScoopError):
    code = "INVALID_ENV_NAME"

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"invalid environment name '{name}': {reason}")


class SourceEnvNotFound(ScoopError):
    """
    an environment could not be found in a foreign tool's directory.

    attributes:
        `name: str`
            the environment name that was looked up
        `tool: str`
            display name of the foreign tool
    """

    code = "SOURCE_ENV_NOT_FOUND"
    tool: str = "source"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"{self.tool} environment '{name}' not found")


class PyenvEnvNotFound(SourceEnvNotFound):
    code = "PYENV_ENV_NOT_FOUND"
    tool = "pyenv"


class VenvWrapperEnvNotFound(SourceEnvNotFound):
    code = "VENVWRAPPER_ENV_NOT_FOUND"
    tool = "virtualenvwrapper"


class CondaEnvNotFound(SourceEnvNotFound):
    code = "CONDA_ENV_NOT_FOUND"
    tool = "conda"


class MigrationNameConflict(ScoopError):
    code = "MIGRATION_NAME_CONFLICT"

    def __init__(self, name: str, existing: Path) -> None:
        self.name = name
        self.existing = existing
        super().__init__(f"environment '{name}' already exists at {existing}")


class MigrationFailed(ScoopError):
    code = "MIGRATION_FAILED"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"migration failed: {reason}")


class CorruptedEnvironment(ScoopError):
    code = "CORRUPTED_ENVIRONMENT"

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"environment '{name}' is corrupted: {reason}")


class PackageExtractionFailed(ScoopError):
    code = "PACKAGE_EXTRACTION_FAILED"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"failed to extract packages: {reason}")


class UvCommandFailed(ScoopError):
    """
    a uv subprocess exited unsuccessfully or could not be spawned.

    attributes:
        `command: str`
            the command line that was run, for display
        `stderr: str`
            captured standard error of the command
    """

    code = "UV_COMMAND_FAILED"

    def __init__(self, command: str, stderr: str) -> None:
        self.command = command
        self.stderr = stderr
        super().__init__(f"uv command failed: {command}: {stderr.strip()}")


class UvNotFound(ScoopError):
    code = "UV_NOT_FOUND"

    def __init__(self) -> None:
        super().__init__(
            "uv is not installed. install it with: "
            + "curl -LsSf https://astral.sh/uv/install.sh | sh"
        )
