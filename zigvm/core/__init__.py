"""
Core functionality for zigvm.

This package contains the foundational modules that the version lifecycle
engine depends on: configuration, platform detection, networking,
filesystem primitives, locking and the exception hierarchy.
"""

from .config import (
    ZigvmConfig,
    load_config,
)

from .locking import (
    LockManager,
    LockTimeout,
)

from .platform import (
    PlatformInfo,
    detect_platform,
    clear_platform_cache,
)

from .exceptions import (
    ZigvmError,
    ConfigError,
    UnsupportedPlatformError,
    FilesystemError,
    DownloadFailure,
    DownloadIndexError,
    UnsupportedArchive,
    InvalidVersionName,
    NotInstalled,
    PointerKindMismatch,
    PathTooLong,
    ProtectedVersion,
)

__all__ = [
    "ZigvmConfig",
    "load_config",
    "LockManager",
    "LockTimeout",
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
    "ZigvmError",
    "ConfigError",
    "UnsupportedPlatformError",
    "FilesystemError",
    "DownloadFailure",
    "DownloadIndexError",
    "UnsupportedArchive",
    "InvalidVersionName",
    "NotInstalled",
    "PointerKindMismatch",
    "PathTooLong",
    "ProtectedVersion",
]
