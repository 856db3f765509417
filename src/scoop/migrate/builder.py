"""
creation of empty native target environments.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import final

from .. import paths
from ..errors import UvCommandFailed, VirtualenvExists
from ..metadata import Metadata
from ..uv import UvClient
from ..validate import validate_env_name

logger = logging.getLogger(__name__)


@final
class TargetBuilder:
    """
    builds native environments with `uv venv` and records their metadata.

    attributes:
        `uv: UvClient`
            client used for `uv venv` and `uv --version`
    """

    uv: UvClient

    def __init__(self, uv: UvClient) -> None:
        self.uv = uv

    def build(self, name: str, python_version: str, force: bool = False) -> Path:
        """
        create an empty environment under the native layout.

        arguments:
            `name: str`
                target environment name
            `python_version: str`
                interpreter version passed to `uv venv --python`
            `force: bool`
                delete an existing environment of the same name first

        returns: `Path`
            path of the new environment

        raises: `InvalidEnvName`
            if the name is not acceptable
        raises: `VirtualenvExists`
            if the target exists and `force` is not set
        raises: `UvCommandFailed`
            if `uv venv` fails
        """
        validate_env_name(name)
        target = paths.virtualenv_path(name)

        if target.exists():
            if not force:
                raise VirtualenvExists(name)
            logger.debug("removing existing environment at %s", target)
            shutil.rmtree(target)

        target.parent.mkdir(parents=True, exist_ok=True)
        self.uv.create_venv(target, python_version)
        logger.debug("created %s with python %s", target, python_version)
        return target

    def uv_version(self) -> str | None:
        """return `uv --version`, or none if it cannot be determined."""
        try:
            return self.uv.version()
        except UvCommandFailed as e:
            logger.debug("could not determine uv version: %s", e)
            return None

    def write_metadata(self, target: Path, name: str, python_version: str) -> Metadata:
        metadata = Metadata.new(name, python_version, self.uv_version())
        _ = metadata.write(target)
        return metadata
