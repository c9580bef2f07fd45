"""
Centralized exception hierarchy for zigvm.

Every engine failure is one of these types. The engine never terminates the
process; the CLI renders these and maps them to a non-zero exit code.
"""

from pathlib import Path
from typing import Union


# ============================================================================
# Base Exceptions
# ============================================================================


class ZigvmError(Exception):
    """Base exception for all zigvm errors."""

    pass


class ConfigError(ZigvmError):
    """Configuration file or value is invalid."""

    pass


class UnsupportedPlatformError(ZigvmError):
    """Raised when the host OS/architecture pair has no published builds."""

    pass


class FilesystemError(ZigvmError):
    """Base exception for filesystem operations (permission, I/O, exhaustion)."""

    pass


# ============================================================================
# Install Exceptions
# ============================================================================


class DownloadFailure(ZigvmError):
    """Network or HTTP-layer failure while fetching an archive."""

    def __init__(self, url: str, cause: Union[str, Exception]):
        self.url = url
        self.cause = str(cause)
        super().__init__(f"download '{url}' failed: {self.cause}")


class DownloadIndexError(ZigvmError):
    """The download index could not be fetched or lacks a required key."""

    pass


class UnsupportedArchive(ZigvmError):
    """Archive extension is not recognized."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown archive extension '{name}'")


class InvalidVersionName(ZigvmError):
    """A version name is not a single path component."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"invalid compiler version '{name}'")


class NotInstalled(ZigvmError):
    """An operation referenced a version or default that does not exist."""

    def __init__(self, name: str, message: str = ""):
        self.name = name
        super().__init__(
            message
            or f"compiler '{name}' is not installed, fetch it first with: "
            f"zigvm fetch {name}"
        )


# ============================================================================
# Pointer Exceptions
# ============================================================================


class PointerKindMismatch(ZigvmError):
    """An existing pointer path is not the expected link/stub shape."""

    def __init__(self, path: Union[str, Path], expected: str):
        self.path = Path(path)
        self.expected = expected
        super().__init__(
            f"unable to update '{self.path}': it already exists and is not a {expected}"
        )


class PathTooLong(ZigvmError):
    """Pointer target does not fit into the stub template path field."""

    def __init__(self, path: Union[str, Path], limit: int):
        self.path = str(path)
        self.limit = limit
        super().__init__(
            f"path '{self.path}' (size {len(self.path)}) is too large (max {limit})"
        )


# ============================================================================
# Retention Exceptions
# ============================================================================


class ProtectedVersion(ZigvmError):
    """Cleanup refused because the version is protected."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"cannot clean '{name}' ({reason})")


__all__ = [
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
