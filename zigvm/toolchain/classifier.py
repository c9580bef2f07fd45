"""
Version classification and download URL construction.

Tagged releases and dev builds live under different paths on the download
server:

    release: <host>/download/<version>/zig-<platform>-<version>.<ext>
    dev:     <host>/builds/zig-<platform>-<version>.<ext>
"""

from enum import Enum
from typing import Optional

from ..core.config import DEFAULT_HOST
from ..core.platform import PlatformInfo, detect_platform

MASTER = "master"


class VersionKind(Enum):
    """Naming scheme of a version string."""

    RELEASE = "release"
    DEV = "dev"


def classify(version: str) -> VersionKind:
    """
    Decide whether a version string names a release or a dev build.

    Example:
        >>> classify("0.11.0")
        <VersionKind.RELEASE: 'release'>
        >>> classify("0.12.0-dev.100+aaaa")
        <VersionKind.DEV: 'dev'>
    """
    if "-" in version or "+" in version:
        return VersionKind.DEV
    return VersionKind.RELEASE


class VersionClassifier:
    """Builds canonical archive URLs for one platform and host."""

    def __init__(self, platform: Optional[PlatformInfo] = None, host: str = DEFAULT_HOST):
        self.platform = platform or detect_platform()
        self.host = host.rstrip("/")

    def classify(self, version: str) -> VersionKind:
        return classify(version)

    def archive_name(self, version: str) -> str:
        return f"zig-{self.platform.url_platform}-{version}.{self.platform.archive_ext}"

    def url_for(self, version: str) -> str:
        """
        Build the download URL for a concrete (non-master) version.

        Example:
            >>> VersionClassifier(PlatformInfo("linux", "x86_64")).url_for("0.11.0")
            'https://ziglang.org/download/0.11.0/zig-linux-x86_64-0.11.0.tar.xz'
        """
        archive = self.archive_name(version)
        if self.classify(version) is VersionKind.DEV:
            return f"{self.host}/builds/{archive}"
        return f"{self.host}/download/{version}/{archive}"


__all__ = [
    "MASTER",
    "VersionKind",
    "VersionClassifier",
    "classify",
]
