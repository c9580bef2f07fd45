"""
Platform detection for zigvm.

This module maps the running interpreter's OS and CPU architecture onto the
names used by the Zig download server, and decides which pointer mechanism
and archive format the platform uses.

Usage:
    from zigvm.core.platform import detect_platform

    platform_info = detect_platform()
    print(platform_info.url_platform)   # 'linux-x86_64'
    print(platform_info.json_platform)  # 'x86_64-linux'
    print(platform_info.archive_ext)    # 'tar.xz'
"""

import functools
import platform
from dataclasses import dataclass

from .exceptions import UnsupportedPlatformError

# Policy table: normalized platform.system() -> download server OS name
SUPPORTED_OS = {
    "windows": "windows",
    "linux": "linux",
    "darwin": "macos",
}

# Policy table: normalized platform.machine() -> download server arch name
SUPPORTED_ARCH = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "armv7l": "armv7a",
    "armv7a": "armv7a",
    "arm": "armv7a",
    "riscv64": "riscv64",
    "ppc64le": "powerpc64le",
    "powerpc64le": "powerpc64le",
    "ppc": "powerpc",
    "powerpc": "powerpc",
}

COMPILER_NAME = "zig"


@dataclass(frozen=True)
class PlatformInfo:
    """
    Host platform as seen by the download server.

    Attributes:
        os: Operating system ('windows', 'linux', 'macos')
        arch: CPU architecture ('x86_64', 'aarch64', 'armv7a', ...)
    """

    os: str
    arch: str

    def __post_init__(self):
        if self.os not in SUPPORTED_OS.values():
            raise UnsupportedPlatformError(f"Unsupported operating system: {self.os}")
        if self.arch not in SUPPORTED_ARCH.values():
            raise UnsupportedPlatformError(f"Unsupported CPU architecture: {self.arch}")

    @property
    def url_platform(self) -> str:
        """Platform component of archive file names, e.g. 'linux-x86_64'."""
        return f"{self.os}-{self.arch}"

    @property
    def json_platform(self) -> str:
        """Platform key in the download index, e.g. 'x86_64-linux'."""
        return f"{self.arch}-{self.os}"

    @property
    def is_windows(self) -> bool:
        return self.os == "windows"

    @property
    def archive_ext(self) -> str:
        return "zip" if self.is_windows else "tar.xz"

    @property
    def exe_ext(self) -> str:
        return ".exe" if self.is_windows else ""

    @property
    def compiler_binary(self) -> str:
        """File name of the compiler executable, e.g. 'zig' or 'zig.exe'."""
        return f"{COMPILER_NAME}{self.exe_ext}"

    @property
    def uses_stub_pointer(self) -> bool:
        """
        Whether the default pointer must be a generated stub executable.

        On Windows a link cannot be invoked directly as the compiler, so the
        default pointer is a launcher file instead of a symlink.
        """
        return self.is_windows

    def __str__(self) -> str:
        return self.url_platform


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.

    Raises:
        UnsupportedPlatformError: If no Zig builds exist for this host
    """
    return PlatformInfo(os=_detect_os(), arch=_detect_architecture())


def _detect_os() -> str:
    system = platform.system().lower()
    try:
        return SUPPORTED_OS[system]
    except KeyError:
        raise UnsupportedPlatformError(f"Unsupported operating system: {system}")


def _detect_architecture() -> str:
    machine = platform.machine().lower()
    try:
        return SUPPORTED_ARCH[machine]
    except KeyError:
        raise UnsupportedPlatformError(f"Unsupported CPU architecture: {machine}")


def clear_platform_cache():
    """
    Clear the platform detection cache.

    This forces the next call to detect_platform() to re-detect.
    Useful for testing.
    """
    detect_platform.cache_clear()


__all__ = [
    "PlatformInfo",
    "COMPILER_NAME",
    "detect_platform",
    "clear_platform_cache",
]
