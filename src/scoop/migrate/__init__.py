"""
migration of foreign virtual environments into the native scoop layout.
"""

from __future__ import annotations

from .batch import (
    BatchDriver,
    BatchPlan,
    BatchReport,
    find_environment_by_name,
    scan_all_environments,
)
from .builder import TargetBuilder
from .conflict import ConflictResolution, generate_unique_name
from .extractor import ExtractionResult, PackageExtractor, PackageSpec
from .installer import PackageInstaller
from .migrator import Migrator, RollbackGuard
from .models import (
    Corrupted,
    EnvironmentStatus,
    MigrateOptions,
    MigrationExitCode,
    MigrationResult,
    NameConflict,
    PythonEol,
    Ready,
    SourceEnvironment,
    SourceType,
)
from .status import classify_status

__all__ = [
    "BatchDriver",
    "BatchPlan",
    "BatchReport",
    "ConflictResolution",
    "Corrupted",
    "EnvironmentStatus",
    "ExtractionResult",
    "MigrateOptions",
    "MigrationExitCode",
    "MigrationResult",
    "Migrator",
    "NameConflict",
    "PackageExtractor",
    "PackageInstaller",
    "PackageSpec",
    "PythonEol",
    "Ready",
    "RollbackGuard",
    "SourceEnvironment",
    "SourceType",
    "TargetBuilder",
    "classify_status",
    "find_environment_by_name",
    "generate_unique_name",
    "scan_all_environments",
]
