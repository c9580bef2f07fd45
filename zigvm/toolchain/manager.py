"""
Version lifecycle engine.

VersionManager wires the classifier, index client, installer, pointers and
retention policy together from one ZigvmConfig. Every operation re-reads the
install root and the pointers, so manual edits between invocations are
tolerated.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from ..core.config import ZigvmConfig
from ..core.download import DownloadProgress
from ..core.exceptions import InvalidVersionName, NotInstalled
from ..core.filesystem import find_executable_dir
from ..core.locking import LockManager
from ..core.platform import PlatformInfo, detect_platform
from .classifier import MASTER, VersionClassifier
from .index import DownloadIndexClient
from .installer import (
    FILES_DIR,
    STAGING_SUFFIX,
    InstallResult,
    Installer,
    validate_version_name,
)
from .pointers import default_pointer_for, master_pointer_for
from .retention import CleanupResult, RetentionManager

logger = logging.getLogger(__name__)


class VersionManager:
    """
    Fetch, activate, list and clean compiler versions.

    Example:
        >>> manager = VersionManager(load_config())
        >>> manager.fetch("0.11.0", set_default=True)
        >>> manager.get_default()
        '0.11.0'
    """

    def __init__(
        self,
        config: ZigvmConfig,
        platform: Optional[PlatformInfo] = None,
        index_client: Optional[DownloadIndexClient] = None,
        installer: Optional[Installer] = None,
        progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    ):
        self.config = config
        self.platform = platform or detect_platform()
        self.classifier = VersionClassifier(self.platform, config.download_host)
        self.index_client = index_client or DownloadIndexClient(
            config.index_url, self.platform, config.timeout
        )
        self.installer = installer or Installer(
            config.install_dir,
            lock_manager=LockManager(config.lock_dir),
            timeout=config.timeout,
            progress_callback=progress_callback,
        )
        self.default_pointer = default_pointer_for(config.default_path, self.platform)
        self.master_pointer = master_pointer_for(config.install_dir, self.platform)
        self.retention = RetentionManager(
            config.install_dir, self.default_pointer, self.master_pointer
        )

    @property
    def install_dir(self) -> Path:
        return self.config.install_dir

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    def resolve(self, token: str) -> Tuple[str, str]:
        """
        Turn a version token into a concrete (version, url) pair.

        'master' is resolved through the download index; any other token is
        already a concrete version.

        Raises:
            InvalidVersionName: If token is not a plain directory name
        """
        if token == MASTER:
            return self.index_client.resolve_master()
        validate_version_name(token)
        return token, self.classifier.url_for(token)

    def fetch(self, token: str, set_default: bool = False) -> InstallResult:
        """
        Install a version and optionally make it the default.

        Fetching 'master' also moves the master pointer to the resolved
        version, but only after the install succeeded.
        """
        self.config.ensure_directories()
        version, url = self.resolve(token)

        result = self.installer.install(version, url)
        if result.was_cached:
            logger.info(f"compiler '{version}' already installed")

        if token == MASTER:
            self.master_pointer.update(version)

        if set_default:
            self.set_default(version)
        return result

    def fetch_index_text(self) -> str:
        return self.index_client.fetch_text()

    # ------------------------------------------------------------------
    # Default pointer
    # ------------------------------------------------------------------

    def set_default(self, token: str) -> bool:
        """
        Point the default at an installed version.

        Returns:
            True if the pointer changed

        Raises:
            NotInstalled: If the version (or master) is not installed
        """
        version = self._resolve_installed(token)
        target = self.install_dir / version / FILES_DIR
        changed = self.default_pointer.update(target)
        if changed:
            logger.info(f"default compiler is now '{version}'")
        return changed

    def set_default_from_path(
        self, path: Union[str, Path], force: Optional[bool] = None
    ) -> bool:
        """
        Point the default at an arbitrary directory.

        Without force, path is searched recursively for the compiler
        executable and its containing directory becomes the target. With
        force, path itself becomes the target.

        Returns:
            False if no compiler executable was found, True otherwise
        """
        if force is None:
            force = self.config.force

        path = Path(path).resolve()
        if force:
            target = path
        else:
            target = find_executable_dir(path, self.platform.compiler_binary)
            if target is None:
                logger.info(f"no '{self.platform.compiler_binary}' found under '{path}'")
                return False

        self.default_pointer.update(target)
        logger.info(f"default compiler is now '{target}'")
        return True

    def unset_default(self) -> bool:
        return self.default_pointer.remove()

    def get_default(self) -> Optional[str]:
        """
        Describe the current default.

        Returns the version name for managed installs, the target directory
        for path-activated defaults, or None if no default is set.
        """
        version = self.retention.default_version()
        if version is not None:
            return version
        target = self.default_pointer.get_target()
        return str(target) if target is not None else None

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def list_versions(self) -> List[str]:
        """Installed version names, sorted, staging directories excluded."""
        if not self.install_dir.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.install_dir.iterdir()
            if entry.is_dir()
            and not entry.is_symlink()
            and not entry.name.endswith(STAGING_SUFFIX)
        )

    def compiler_path(self, token: str) -> Path:
        """
        Path of the compiler executable of an installed version.

        Raises:
            NotInstalled: If the version is not installed
        """
        version = self._resolve_installed(token)
        return self.install_dir / version / FILES_DIR / self.platform.compiler_binary

    def keep(self, name: str) -> Path:
        return self.retention.keep(name)

    def clean(self, name: Optional[str] = None) -> Optional[CleanupResult]:
        """Clean one version, or every unprotected one if name is None."""
        if name is None:
            return self.retention.clean_all()
        self.retention.clean_one(name)
        return None

    def _resolve_installed(self, token: str) -> str:
        if token == MASTER:
            version = self.master_pointer.get_target()
            if version is None:
                raise NotInstalled(
                    MASTER, f"'{MASTER}' has not been fetched yet, run: zigvm fetch {MASTER}"
                )
        else:
            version = token

        try:
            validate_version_name(version)
        except InvalidVersionName as e:
            raise NotInstalled(version) from e

        version_dir = self.install_dir / version
        if version_dir.is_symlink() or not version_dir.is_dir():
            raise NotInstalled(version)
        return version


__all__ = ["VersionManager"]
