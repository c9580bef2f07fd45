"""
Retention policy for installed compiler versions.

A version is protected from cleanup when it is the current default, when it
is the current master target, or when its directory holds a keep marker.
Everything else in the install root that is a directory (orphan staging
directories included) may be deleted.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..core.exceptions import NotInstalled, ProtectedVersion
from ..core.filesystem import is_relative_to, safe_rmtree, touch
from .pointers import DefaultPointer, MasterPointer

logger = logging.getLogger(__name__)

KEEP_MARKER = "keep"

REASON_DEFAULT = "is default compiler"
REASON_MASTER = "it is master"
REASON_KEEP = "has keep file"


@dataclass
class CleanupResult:
    """Result of a bulk cleanup."""

    removed: List[str] = field(default_factory=list)
    skipped: Dict[str, str] = field(default_factory=dict)
    space_reclaimed: int = 0


class RetentionManager:
    """Decides which installed versions are protected and deletes the rest."""

    def __init__(
        self,
        install_dir: Path,
        default_pointer: DefaultPointer,
        master_pointer: MasterPointer,
    ):
        """
        Initialize retention manager.

        Args:
            install_dir: Install root
            default_pointer: Pointer whose target marks the default version
            master_pointer: Pointer whose target marks the master version
        """
        self.install_dir = Path(install_dir)
        self.default_pointer = default_pointer
        self.master_pointer = master_pointer

    def default_version(self) -> Optional[str]:
        """
        Name of the installed version the default pointer resolves to.

        Any target inside <install>/<version>/ protects <version>, however
        the install root was spelled when the pointer was written. A default
        activated from a path outside the install root protects nothing.
        """
        target = self.default_pointer.get_target()
        if target is None:
            return None
        target = Path(target).resolve()
        install_dir = self.install_dir.resolve()
        if not is_relative_to(target, install_dir) or target == install_dir:
            return None
        return target.relative_to(install_dir).parts[0]

    def master_version(self) -> Optional[str]:
        return self.master_pointer.get_target()

    def is_protected(
        self,
        name: str,
        default_version: Optional[str],
        master_target: Optional[str],
    ) -> Optional[str]:
        """
        Return the reason name is protected, or None if it may be deleted.

        Example:
            >>> manager.is_protected("0.11.0", "0.11.0", None)
            'is default compiler'
        """
        if default_version is not None and name == default_version:
            return REASON_DEFAULT
        if master_target is not None and name == master_target:
            return REASON_MASTER
        if (self.install_dir / name / KEEP_MARKER).exists():
            return REASON_KEEP
        return None

    def clean_one(self, name: str) -> None:
        """
        Delete one installed version.

        Raises:
            NotInstalled: If no such version directory exists
            ProtectedVersion: If the version is protected (nothing deleted)
        """
        version_dir = self._existing_version_dir(name)

        reason = self.is_protected(name, self.default_version(), self.master_version())
        if reason is not None:
            raise ProtectedVersion(name, reason)

        logger.info(f"deleting '{version_dir}'")
        safe_rmtree(version_dir, require_prefix=self.install_dir)

    def clean_all(self) -> CleanupResult:
        """
        Delete every unprotected directory in the install root.

        The first deletion failure aborts the remaining loop and propagates.
        """
        result = CleanupResult()
        if not self.install_dir.is_dir():
            return result

        default_version = self.default_version()
        master_target = self.master_version()

        for entry in sorted(self.install_dir.iterdir()):
            if entry.is_symlink() or not entry.is_dir():
                continue

            name = entry.name
            reason = self.is_protected(name, default_version, master_target)
            if reason is not None:
                logger.info(f"skipping '{name}' ({reason})")
                result.skipped[name] = reason
                continue

            size = _directory_size(entry)
            logger.info(f"deleting '{entry}'")
            safe_rmtree(entry, require_prefix=self.install_dir)
            result.removed.append(name)
            result.space_reclaimed += size

        return result

    def keep(self, name: str) -> Path:
        """
        Protect a version from bulk cleanup.

        Returns:
            Path of the keep marker

        Raises:
            NotInstalled: If no such version directory exists
        """
        marker = self._existing_version_dir(name) / KEEP_MARKER
        if marker.exists():
            logger.info(f"keep file '{marker}' already exists")
        else:
            touch(marker)
        return marker

    def _existing_version_dir(self, name: str) -> Path:
        version_dir = self.install_dir / name
        if (
            Path(name).name != name
            or version_dir.is_symlink()
            or not version_dir.is_dir()
        ):
            raise NotInstalled(name, f"compiler '{name}' is not installed")
        return version_dir


def _directory_size(path: Path) -> int:
    """Calculate total size of directory in bytes."""
    total = 0
    for item in path.rglob("*"):
        if item.is_file() and not item.is_symlink():
            total += item.stat().st_size
    return total


__all__ = [
    "KEEP_MARKER",
    "REASON_DEFAULT",
    "REASON_MASTER",
    "REASON_KEEP",
    "CleanupResult",
    "RetentionManager",
]
