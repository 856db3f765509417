"""
package installation into native target environments.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import final

from ..errors import UvCommandFailed
from ..uv import UvClient
from .extractor import ExtractionResult

logger = logging.getLogger(__name__)

EDITABLE_SKIPPED_SUFFIX = " (editable - skipped)"


@final
class PackageInstaller:
    """
    installs extracted packages with `uv pip install`.

    all regular packages are installed in one batch. if the batch fails, each
    package is retried on its own so that a single bad pin does not sink the
    rest. editable packages are never installed because their source paths
    may not be valid for the rebuilt environment.

    attributes:
        `uv: UvClient`
            client used for `uv pip install`
    """

    uv: UvClient

    def __init__(self, uv: UvClient) -> None:
        self.uv = uv

    def install(self, target: Path, packages: ExtractionResult) -> list[str]:
        """
        install packages into a target environment.

        arguments:
            `target: Path`
                root of the target environment
            `packages: ExtractionResult`
                packages extracted from the source

        returns: `list[str]`
            requirement strings that were not installed, including a
            sentinel entry for every editable package

        raises: `UvCommandFailed`
            the original batch error, if every regular package failed
        """
        failed: list[str] = []
        specs = [p.to_requirement() for p in packages.regular_packages()]

        if specs:
            try:
                self.uv.pip_install(target, specs)
            except UvCommandFailed as batch_error:
                logger.debug("batch install failed, retrying %d packages one by one", len(specs))
                for spec in specs:
                    try:
                        self.uv.pip_install(target, [spec])
                    except UvCommandFailed:
                        logger.debug("failed to install %s", spec)
                        failed.append(spec)

                if len(failed) == len(specs):
                    raise batch_error

        for editable in packages.editable_packages():
            failed.append(editable.to_requirement() + EDITABLE_SKIPPED_SUFFIX)

        return failed
