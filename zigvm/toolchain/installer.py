"""
Atomic compiler installation.

This module downloads and extracts one compiler version into the install
root. The sequence runs entirely inside a staging directory and ends with a
single directory rename, so a version is either fully present at its
canonical path or not there at all:

    <root>/<version>.installing/           (created empty)
    <root>/<version>.installing/<archive>  (downloaded)
    <root>/<version>.installing/files/     (extracted + normalized)
    <root>/<version>/files/                (published by rename)

A crash before the final rename leaves only the staging directory, which the
next install attempt for that version removes first.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional

from ..core.download import DEFAULT_TIMEOUT, DownloadProgress, download_file
from ..core.exceptions import FilesystemError, InvalidVersionName
from ..core.filesystem import (
    ArchiveExtractionError,
    archive_stem,
    extract_archive,
    remove_file,
    rename,
    safe_rmtree,
)
from ..core.locking import LockManager

logger = logging.getLogger(__name__)

STAGING_SUFFIX = ".installing"
FILES_DIR = "files"


def validate_version_name(version: str) -> str:
    """
    Ensure version names exactly one directory inside the install root.

    Example:
        >>> validate_version_name("0.12.0-dev.100+aaaa")
        '0.12.0-dev.100+aaaa'

    Raises:
        InvalidVersionName: If version is empty, '.', '..', contains a path
            separator or ends with the staging suffix
    """
    if (
        not version
        or version in (".", "..")
        or "/" in version
        or "\\" in version
        or Path(version).name != version
        or version.endswith(STAGING_SUFFIX)
    ):
        raise InvalidVersionName(version)
    return version


@dataclass
class InstallResult:
    """Result of an install operation."""

    version: str
    """Concrete version name"""

    path: Path
    """Canonical version directory"""

    was_cached: bool
    """Whether the version was already installed (no network access)"""

    download_time: float = 0.0
    """Time spent downloading in seconds"""

    extraction_time: float = 0.0
    """Time spent extracting in seconds"""


class Installer:
    """
    Publishes compiler versions into the install root.

    Example:
        >>> installer = Installer(Path("~/.zigvm/cache").expanduser())
        >>> result = installer.install(
        ...     "0.11.0",
        ...     "https://ziglang.org/download/0.11.0/zig-linux-x86_64-0.11.0.tar.xz",
        ... )
        >>> print(result.path / "files")
    """

    def __init__(
        self,
        install_dir: Path,
        lock_manager: Optional[LockManager] = None,
        timeout: int = DEFAULT_TIMEOUT,
        progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    ):
        """
        Initialize installer.

        Args:
            install_dir: Install root
            lock_manager: Optional advisory lock manager
            timeout: Network timeout in seconds
            progress_callback: Optional callback for download progress
        """
        self.install_dir = Path(install_dir)
        self.lock_manager = lock_manager
        self.timeout = timeout
        self.progress_callback = progress_callback

    def version_dir(self, version: str) -> Path:
        return self.install_dir / version

    def staging_dir(self, version: str) -> Path:
        return self.install_dir / f"{version}{STAGING_SUFFIX}"

    def is_installed(self, version: str) -> bool:
        return self.version_dir(version).is_dir()

    def install(self, version: str, url: str) -> InstallResult:
        """
        Download, extract and publish a version.

        Idempotent: if the canonical directory already exists this returns
        immediately without touching the network.

        Args:
            version: Concrete version name (e.g. '0.11.0')
            url: Archive URL

        Returns:
            InstallResult describing the installed version

        Raises:
            InvalidVersionName: If version is not a plain directory name
            DownloadFailure: If the archive could not be downloaded
            UnsupportedArchive: If the archive extension is not recognized
            FilesystemError: If extraction or publishing fails
        """
        validate_version_name(version)
        if self.is_installed(version):
            logger.debug(f"compiler '{version}' already installed")
            return InstallResult(version, self.version_dir(version), was_cached=True)

        if self.lock_manager is None:
            return self._install(version, url)

        with self.lock_manager.version_lock(version):
            return self._install(version, url)

    def _install(self, version: str, url: str) -> InstallResult:
        version_dir = self.version_dir(version)
        if version_dir.is_dir():
            logger.info(f"compiler '{version}' was installed by another process")
            return InstallResult(version, version_dir, was_cached=True)

        archive_name = url.rstrip("/").rsplit("/", 1)[-1]

        with self._staging(version) as staging:
            archive_path = staging / archive_name

            logger.info(f"downloading '{url}'")
            download_start = time.time()
            download_file(
                url,
                archive_path,
                progress_callback=self.progress_callback,
                timeout=self.timeout,
            )
            download_time = time.time() - download_start
            logger.debug(f"downloaded in {download_time:.2f}s")

            extraction_start = time.time()
            root_name = archive_stem(archive_name)
            logger.debug(f"extracting archive to '{staging}'")
            extract_archive(archive_path, staging)

            self._normalize_root_directory(staging, root_name, archive_name)
            remove_file(archive_path)
            extraction_time = time.time() - extraction_start
            logger.debug(f"extracted archive in {extraction_time:.2f}s")

            # publish point
            rename(staging, version_dir)

        logger.info(f"installed compiler '{version}'")
        return InstallResult(
            version,
            version_dir,
            was_cached=False,
            download_time=download_time,
            extraction_time=extraction_time,
        )

    @contextmanager
    def _staging(self, version: str) -> Iterator[Path]:
        """
        Provide a fresh, empty staging directory for version.

        Any pre-existing staging directory (left by an interrupted run) is
        deleted first. If the body raises, the staging directory is deleted
        again before the error propagates, so no failed install leaves
        residue behind.
        """
        staging = self.staging_dir(version)
        safe_rmtree(staging, require_prefix=self.install_dir)
        logger.debug(f"creating directory '{staging}'")
        try:
            staging.mkdir(parents=True)
        except OSError as e:
            raise FilesystemError(f"Failed to create '{staging}': {e}") from e

        try:
            yield staging
        except BaseException:
            if staging.exists():
                try:
                    safe_rmtree(staging, require_prefix=self.install_dir)
                except Exception as cleanup_error:
                    logger.warning(
                        f"Failed to remove staging directory '{staging}': {cleanup_error}"
                    )
            raise

    def _normalize_root_directory(
        self, staging: Path, root_name: str, archive_name: str
    ) -> Path:
        """
        Rename the archive's top-level directory to staging/files.

        Upstream archives contain a single directory named after the archive.
        If it is named differently but is still the only extracted directory,
        that one is used instead.

        Raises:
            ArchiveExtractionError: If no single top-level directory exists
        """
        extracted = staging / root_name
        if not extracted.is_dir():
            directories = [p for p in staging.iterdir() if p.is_dir()]
            if len(directories) != 1:
                raise ArchiveExtractionError(
                    f"archive '{archive_name}' does not contain a single "
                    f"top-level directory (expected '{root_name}')"
                )
            extracted = directories[0]
            logger.debug(f"using top-level directory '{extracted.name}'")

        files_dir = staging / FILES_DIR
        rename(extracted, files_dir)
        return files_dir


__all__ = [
    "STAGING_SUFFIX",
    "FILES_DIR",
    "validate_version_name",
    "InstallResult",
    "Installer",
]
