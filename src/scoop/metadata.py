"""
metadata sidecar written inside every native environment.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Final, final

METADATA_FILE_NAME: Final = ".scoop-metadata.json"


def _creator_tag() -> str:
    from . import __version__

    return f"scoop {__version__}"


@final
@dataclass
class Metadata:
    """
    persisted description of a native environment.

    attributes:
        `name: str`
            environment name
        `python_version: str`
            python version the environment was created with
        `created_at: datetime`
            creation time (utc)
        `created_by: str`
            tool name and version that created the environment
        `uv_version: str | None`
            output of `uv --version` at creation time, if available
    """

    name: str
    python_version: str
    created_at: datetime
    created_by: str
    uv_version: str | None = None

    @classmethod
    def new(cls, name: str, python_version: str, uv_version: str | None = None) -> Metadata:
        """create metadata stamped with the current utc time."""
        return cls(
            name=name,
            python_version=python_version,
            created_at=datetime.now(timezone.utc),
            created_by=_creator_tag(),
            uv_version=uv_version,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "python_version": self.python_version,
            "created_at": self.created_at.isoformat().replace("+00:00", "Z"),
            "created_by": self.created_by,
            "uv_version": self.uv_version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Metadata:
        """
        build metadata from a decoded sidecar.

        arguments:
            `data: dict[str, Any]`
                decoded json object

        returns: `Metadata`
            the metadata

        raises: `KeyError`, `ValueError`
            if required fields are missing or the timestamp is malformed
        """
        created_at_raw = str(data["created_at"])  # pyright: ignore[reportAny]
        created_at = datetime.fromisoformat(created_at_raw.replace("Z", "+00:00"))
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        uv_version = data.get("uv_version")
        return cls(
            name=str(data["name"]),  # pyright: ignore[reportAny]
            python_version=str(data["python_version"]),  # pyright: ignore[reportAny]
            created_at=created_at,
            created_by=str(data.get("created_by", "unknown")),  # pyright: ignore[reportAny]
            uv_version=str(uv_version) if uv_version is not None else None,  # pyright: ignore[reportAny]
        )

    def write(self, env_path: Path) -> Path:
        """
        write the sidecar into an environment directory.

        arguments:
            `env_path: Path`
                root of the environment

        returns: `Path`
            path of the written file
        """
        path = env_path.joinpath(METADATA_FILE_NAME)
        _ = path.write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")
        return path

    @classmethod
    def read(cls, env_path: Path) -> Metadata | None:
        """read the sidecar of an environment, or none if absent or unreadable."""
        path = env_path.joinpath(METADATA_FILE_NAME)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))  # pyright: ignore[reportAny]
            return cls.from_dict(data)  # pyright: ignore[reportAny]
        except (OSError, ValueError, KeyError, TypeError):
            return None
