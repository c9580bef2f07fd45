"""
Cross-platform file system utilities for zigvm.

This module provides the filesystem primitives the install engine is built on:
- Archive extraction (tar.xz, tar.gz, tar.bz2, zip) with traversal checks
- Safe file operations (atomic writes, guarded recursive deletion)
- Recursive executable search

All operations handle platform differences transparently.
"""

import logging
import os
import shutil
import sys
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import Optional, Union

from .exceptions import FilesystemError, UnsupportedArchive

logger = logging.getLogger(__name__)

IS_WINDOWS = os.name == "nt"

# Longest suffixes first so '.tar.xz' wins over '.xz'
TAR_EXTENSIONS = {
    ".tar.xz": "r:xz",
    ".tar.gz": "r:gz",
    ".tgz": "r:gz",
    ".tar.bz2": "r:bz2",
    ".tbz2": "r:bz2",
}
ZIP_EXTENSIONS = (".zip",)


class ArchiveExtractionError(FilesystemError):
    """Failed to extract an archive."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


# ============================================================================
# Path Utilities
# ============================================================================


def is_relative_to(path: Path, parent: Path) -> bool:
    """
    Check if path is relative to (under) parent directory.

    Example:
        >>> is_relative_to(Path("/home/user/.zigvm/cache/0.11.0"), Path("/home/user"))
        True
    """
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


def archive_stem(archive_name: str) -> str:
    """
    Strip the archive extension from a file name.

    Example:
        >>> archive_stem("zig-linux-x86_64-0.11.0.tar.xz")
        'zig-linux-x86_64-0.11.0'

    Raises:
        UnsupportedArchive: If the extension is not recognized
    """
    lowered = archive_name.lower()
    for ext in (*TAR_EXTENSIONS, *ZIP_EXTENSIONS):
        if lowered.endswith(ext):
            return archive_name[: -len(ext)]
    raise UnsupportedArchive(archive_name)


def find_executable_dir(root: Union[str, Path], name: str) -> Optional[Path]:
    """
    Recursively search root for an executable file called name.

    Args:
        root: Directory to search
        name: Executable file name (e.g. 'zig' or 'zig.exe')

    Returns:
        Resolved directory containing the executable, or None if not found
    """
    root = Path(root)
    for entry in sorted(root.iterdir()):
        if entry.name == name and entry.is_file() and _is_executable(entry):
            found = entry.parent.resolve()
            logger.debug(f"found {name} at '{found}'")
            return found

    for entry in sorted(root.iterdir()):
        if entry.is_dir() and not entry.is_symlink():
            logger.debug(f"searching '{entry}'")
            found = find_executable_dir(entry, name)
            if found is not None:
                return found

    return None


def _is_executable(path: Path) -> bool:
    return IS_WINDOWS or os.access(path, os.X_OK)


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not is_relative_to(member_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def extract_archive(archive_path: Union[str, Path], destination: Union[str, Path]) -> None:
    """
    Extract an archive to a destination directory.

    Detects the format from the file name and validates all member paths
    before anything is written.

    Supported formats:
    - .tar.xz, .tar.gz, .tgz, .tar.bz2, .tbz2
    - .zip

    Raises:
        UnsupportedArchive: If archive format is not recognized
        ArchiveExtractionError: If extraction fails
        InsecureArchiveError: If archive contains malicious paths
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    destination.mkdir(parents=True, exist_ok=True)
    archive_name = archive_path.name.lower()

    try:
        if archive_name.endswith(ZIP_EXTENSIONS):
            _extract_zip(archive_path, destination)
            return
        for ext, mode in TAR_EXTENSIONS.items():
            if archive_name.endswith(ext):
                _extract_tar(archive_path, destination, mode)
                return
    except (InsecureArchiveError, UnsupportedArchive):
        raise
    except Exception as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e

    raise UnsupportedArchive(archive_path.name)


def _extract_zip(archive_path: Path, destination: Path) -> None:
    """Extract a ZIP archive."""
    with zipfile.ZipFile(archive_path, "r") as zf:
        members = zf.namelist()

        for member in members:
            _validate_archive_path(member, destination)

        zf.extractall(destination)


def _extract_tar(archive_path: Path, destination: Path, mode: str) -> None:
    """Extract a tar archive with specified compression."""
    with tarfile.open(archive_path, mode) as tar:
        for member in tar.getmembers():
            _validate_archive_path(member.name, destination)

        # Extract with filter for security (Python 3.12+)
        # For older Python, we've already validated paths above
        if sys.version_info >= (3, 12):
            tar.extractall(destination, filter="data")
        else:
            tar.extractall(destination)


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    This ensures the file is never in a partially-written state.
    If the write fails, the original file (if any) remains unchanged.

    Raises:
        FilesystemError: If the file cannot be written

    Example:
        >>> atomic_write('master', '0.12.0-dev.100+aaaa')
        >>> atomic_write('zig.cmd', b'@setlocal\\r\\n...')
    """
    file_path = Path(file_path)
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)

        # Create temp file in same directory (ensures same filesystem)
        temp_fd, temp_path_str = tempfile.mkstemp(
            dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
        )
    except OSError as e:
        raise FilesystemError(f"Failed to write '{file_path}': {e}") from e
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding, newline="") as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        # Atomic rename (replaces destination if it exists)
        temp_path.replace(file_path)

    except Exception as e:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError:
            pass
        if isinstance(e, OSError):
            raise FilesystemError(f"Failed to write '{file_path}': {e}") from e
        raise


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree('~/.zigvm/cache/0.10.0', require_prefix='~/.zigvm/cache')
    """
    path = Path(path).absolute()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        # A symlink is judged by where it lives, not by what it points to
        if path.is_symlink():
            resolved = path.parent.resolve() / path.name
        else:
            resolved = path.resolve()
        if not is_relative_to(resolved, require_prefix) or resolved == require_prefix:
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists() and not path.is_symlink():
        return  # Already gone, nothing to do

    if path.is_symlink() or not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    if IS_WINDOWS:
        logger.debug(f'rd /s /q "{path}"')
    else:
        logger.debug(f"rm -rf '{path}'")

    try:
        if IS_WINDOWS:

            def handle_remove_readonly(func, target, exc):
                """Error handler for Windows read-only files."""
                if not os.access(target, os.W_OK):
                    os.chmod(target, 0o777)
                    func(target)
                else:
                    raise

            shutil.rmtree(path, onerror=handle_remove_readonly)
        else:
            shutil.rmtree(path)

    except Exception as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def rename(source: Path, destination: Path) -> None:
    """
    Rename source to destination in a single filesystem operation.

    Raises:
        FilesystemError: If the rename fails
    """
    logger.debug(f"mv '{source}' '{destination}'")
    try:
        os.rename(source, destination)
    except OSError as e:
        raise FilesystemError(f"Failed to rename '{source}' to '{destination}': {e}") from e


def remove_file(path: Path) -> None:
    """
    Delete a file or symlink.

    Raises:
        FilesystemError: If the deletion fails
    """
    if IS_WINDOWS:
        logger.debug(f"del '{path}'")
    else:
        logger.debug(f"rm '{path}'")
    try:
        os.unlink(path)
    except OSError as e:
        raise FilesystemError(f"Failed to remove '{path}': {e}") from e


def touch(path: Path) -> None:
    """
    Create an empty file if it does not exist.

    Raises:
        FilesystemError: If the file cannot be created
    """
    logger.debug(f"touch '{path}'")
    try:
        Path(path).touch()
    except OSError as e:
        raise FilesystemError(f"Failed to create '{path}': {e}") from e


__all__ = [
    "FilesystemError",
    "ArchiveExtractionError",
    "InsecureArchiveError",
    "is_relative_to",
    "archive_stem",
    "find_executable_dir",
    "extract_archive",
    "atomic_write",
    "safe_rmtree",
    "rename",
    "remove_file",
    "touch",
]
