"""
scoop: python virtual environment manager powered by uv.

this package currently provides migration of environments created by
pyenv-virtualenv, virtualenvwrapper and conda into scoop's own layout.
"""

from __future__ import annotations

from .config import Config, MigrateConfig
from .errors import ScoopError
from .metadata import Metadata

__version__ = "0.1.0"
__all__ = [
    "Config",
    "Metadata",
    "MigrateConfig",
    "ScoopError",
]
