"""
source adapters for foreign environment managers.
"""

from __future__ import annotations

from ..models import SourceType
from .base import EnvironmentSource
from .conda import CondaSource
from .pyenv import PyenvSource
from .venvwrapper import VenvWrapperSource

__all__ = [
    "EnvironmentSource",
    "PyenvSource",
    "VenvWrapperSource",
    "CondaSource",
    "default_source",
]


def default_source(source_type: SourceType) -> EnvironmentSource:
    """build the adapter for a tool using its environment-derived roots."""
    if source_type is SourceType.PYENV:
        return PyenvSource.from_environment()
    if source_type is SourceType.VENVWRAPPER:
        return VenvWrapperSource.from_environment()
    return CondaSource.from_environment()
