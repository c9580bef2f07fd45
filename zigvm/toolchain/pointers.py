"""
Default and master pointers.

The default pointer is the stable path the shell invokes to run the active
compiler; it resolves to ``<install>/<version>/files`` (or any directory
activated from a path). The master pointer is ``<install>/master`` and
records which concrete version directory the ``master`` token resolved to
most recently.

Each pointer has two variants chosen once per platform:

    POSIX:   SymlinkPointer         + SymlinkMasterPointer (relative link)
    Windows: StubExecutablePointer  + FileMasterPointer    (version in a file)

Callers only see the common Pointer interface.
"""

import errno
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Union

from ..core.exceptions import FilesystemError, PointerKindMismatch
from ..core.filesystem import atomic_write, remove_file
from ..core.platform import PlatformInfo, detect_platform
from .classifier import MASTER
from .stub import DEFAULT_TEMPLATE, StubTemplate

logger = logging.getLogger(__name__)


class Pointer(ABC):
    """A filesystem entry that resolves to exactly one target, or to nothing."""

    kind = "pointer"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    @abstractmethod
    def get_target(self) -> Optional[Any]:
        """
        Resolve the pointer.

        Returns:
            The current target, or None if the pointer does not exist

        Raises:
            PointerKindMismatch: If the entry exists but has the wrong shape
        """

    @abstractmethod
    def set_target(self, target: Any) -> None:
        """Replace the pointer so that it resolves to target."""

    @abstractmethod
    def remove(self) -> bool:
        """Delete the pointer. Returns False if it did not exist."""

    def _normalize(self, target: Any) -> Any:
        return target

    def update(self, target: Any) -> bool:
        """
        Point at target unless already pointing there.

        Returns:
            True if the pointer was written, False if it was already current
        """
        target = self._normalize(target)
        current = self.get_target()
        if current == target:
            logger.debug(f"'{self.path}' already points to '{target}'")
            return False
        self.set_target(target)
        return True

    def __repr__(self) -> str:
        return f"{type(self).__name__}('{self.path}')"


class DefaultPointer(Pointer):
    """Pointer to the active compiler's directory."""

    def _normalize(self, target: Union[str, Path]) -> Path:
        return Path(target)


class MasterPointer(Pointer):
    """Pointer from 'master' to a concrete version name."""

    def _normalize(self, target: Union[str, Path]) -> str:
        return str(target)


# ============================================================================
# Symlink helpers
# ============================================================================


def _read_link(path: Path, expected: str) -> Optional[str]:
    try:
        return os.readlink(path)
    except FileNotFoundError:
        return None
    except OSError as e:
        if e.errno == errno.EINVAL or path.exists():
            raise PointerKindMismatch(path, expected) from e
        raise FilesystemError(f"Failed to read link '{path}': {e}") from e


def _replace_link(path: Path, target: str, expected: str) -> None:
    if path.is_symlink():
        remove_file(path)
    elif path.exists():
        raise PointerKindMismatch(path, expected)

    logger.debug(f"ln -s '{target}' '{path}'")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        os.symlink(target, path, target_is_directory=True)
    except OSError as e:
        raise FilesystemError(f"Failed to create symlink '{path}': {e}") from e


def _remove_link(path: Path, expected: str) -> bool:
    if not path.is_symlink():
        if path.exists():
            raise PointerKindMismatch(path, expected)
        return False
    remove_file(path)
    return True


# ============================================================================
# Default pointer variants
# ============================================================================


class SymlinkPointer(DefaultPointer):
    """Default pointer as a symlink to the compiler directory."""

    kind = "symlink"

    def get_target(self) -> Optional[Path]:
        target = _read_link(self.path, self.kind)
        return Path(target) if target is not None else None

    def set_target(self, target: Union[str, Path]) -> None:
        _replace_link(self.path, str(target), self.kind)

    def remove(self) -> bool:
        return _remove_link(self.path, self.kind)


class StubExecutablePointer(DefaultPointer):
    """
    Default pointer as a generated launcher.

    The launcher bytes come from a StubTemplate; only its path field differs
    between writes. Writes replace the whole file atomically.
    """

    kind = "zigvm launcher stub"

    def __init__(self, path: Union[str, Path], template: StubTemplate = DEFAULT_TEMPLATE):
        super().__init__(path)
        self.template = template

    def get_target(self) -> Optional[Path]:
        if self.path.is_dir():
            raise PointerKindMismatch(self.path, self.kind)
        if not self.path.exists():
            return None
        target = self.template.read(self.path.read_bytes(), self.path)
        return Path(target) if target is not None else None

    def set_target(self, target: Union[str, Path]) -> None:
        content = self.template.render(target)
        # refuse to overwrite anything that is not one of our launchers
        self.get_target()
        logger.debug(f"writing launcher '{self.path}' -> '{target}'")
        atomic_write(self.path, content)

    def remove(self) -> bool:
        if not self.path.exists():
            return False
        self.get_target()
        remove_file(self.path)
        return True


# ============================================================================
# Master pointer variants
# ============================================================================


class SymlinkMasterPointer(MasterPointer):
    """Master pointer as a relative symlink 'master -> <version>'."""

    kind = "symlink"

    def get_target(self) -> Optional[str]:
        target = _read_link(self.path, self.kind)
        return Path(target).name if target is not None else None

    def set_target(self, target: str) -> None:
        _replace_link(self.path, str(target), self.kind)

    def remove(self) -> bool:
        return _remove_link(self.path, self.kind)


class FileMasterPointer(MasterPointer):
    """Master pointer as a small text file holding the version name."""

    kind = "file"

    def get_target(self) -> Optional[str]:
        if self.path.is_dir():
            raise PointerKindMismatch(self.path, self.kind)
        if not self.path.exists():
            return None
        version = self.path.read_text(encoding="utf-8").strip()
        return version or None

    def set_target(self, target: str) -> None:
        if self.path.is_dir():
            raise PointerKindMismatch(self.path, self.kind)
        logger.debug(f"writing '{self.path}' -> '{target}'")
        atomic_write(self.path, str(target))

    def remove(self) -> bool:
        if self.path.is_dir():
            raise PointerKindMismatch(self.path, self.kind)
        if not self.path.exists():
            return False
        remove_file(self.path)
        return True


# ============================================================================
# Factories
# ============================================================================


def default_pointer_for(
    path: Union[str, Path], platform: Optional[PlatformInfo] = None
) -> DefaultPointer:
    """Select the default pointer variant for a platform."""
    platform = platform or detect_platform()
    if platform.uses_stub_pointer:
        return StubExecutablePointer(path)
    return SymlinkPointer(path)


def master_pointer_for(
    install_dir: Union[str, Path], platform: Optional[PlatformInfo] = None
) -> MasterPointer:
    """Select the master pointer variant for a platform."""
    platform = platform or detect_platform()
    path = Path(install_dir) / MASTER
    if platform.uses_stub_pointer:
        return FileMasterPointer(path)
    return SymlinkMasterPointer(path)


__all__ = [
    "Pointer",
    "DefaultPointer",
    "MasterPointer",
    "SymlinkPointer",
    "StubExecutablePointer",
    "SymlinkMasterPointer",
    "FileMasterPointer",
    "default_pointer_for",
    "master_pointer_for",
]
