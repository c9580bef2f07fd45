"""
Version lifecycle engine for zigvm.

Classification and URL construction, master resolution, atomic installs,
default/master pointers and retention.
"""

from .classifier import MASTER, VersionClassifier, VersionKind, classify
from .index import DownloadIndexClient
from .installer import InstallResult, Installer
from .manager import VersionManager
from .pointers import (
    DefaultPointer,
    FileMasterPointer,
    MasterPointer,
    StubExecutablePointer,
    SymlinkMasterPointer,
    SymlinkPointer,
    default_pointer_for,
    master_pointer_for,
)
from .retention import CleanupResult, RetentionManager
from .stub import DEFAULT_TEMPLATE, StubTemplate

__all__ = [
    "MASTER",
    "VersionClassifier",
    "VersionKind",
    "classify",
    "DownloadIndexClient",
    "InstallResult",
    "Installer",
    "VersionManager",
    "DefaultPointer",
    "MasterPointer",
    "SymlinkPointer",
    "StubExecutablePointer",
    "SymlinkMasterPointer",
    "FileMasterPointer",
    "default_pointer_for",
    "master_pointer_for",
    "CleanupResult",
    "RetentionManager",
    "StubTemplate",
    "DEFAULT_TEMPLATE",
]
