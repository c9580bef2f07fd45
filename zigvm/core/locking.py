"""
Advisory install locking for zigvm.

Cross-process use of one install root is not supported. These locks narrow
the window in which two zigvm invocations installing the same version could
race on the staging directory, but nothing in the engine relies on another
process honouring them: idempotency checks and staging purges still run
inside the lock.

Usage:
    from zigvm.core.locking import LockManager

    lock_manager = LockManager(Path("~/.zigvm/lock").expanduser())
    with lock_manager.version_lock("0.11.0"):
        installer.install("0.11.0", url)
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout as LockTimeout

logger = logging.getLogger(__name__)


class LockManager:
    """
    Manages lock files for zigvm resources.

    Lock files live outside the install root so that they are never mistaken
    for installed versions.

    Attributes:
        lock_dir: Directory where lock files are stored
    """

    def __init__(self, lock_dir: Path):
        self.lock_dir = Path(lock_dir)

    def lock_path(self, version: str) -> Path:
        # Sanitize version to create valid filename
        safe_id = version.replace("/", "-").replace("\\", "-").replace(":", "-")
        return self.lock_dir / f"version-{safe_id}.lock"

    @contextmanager
    def version_lock(self, version: str, timeout: int = 300):
        """
        Acquire lock for installing a specific version.

        Args:
            version: Concrete version name (e.g., '0.11.0')
            timeout: Maximum wait time in seconds (default: 300 for long downloads)

        Raises:
            LockTimeout: If lock can't be acquired within timeout
        """
        lock_path = self.lock_path(version)
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        lock = FileLock(lock_path, timeout=timeout)

        try:
            with lock:
                logger.debug(f"Acquired version lock: {lock_path}")
                yield
                logger.debug(f"Released version lock: {lock_path}")
        except LockTimeout as e:
            logger.error(
                f"Could not acquire install lock for {version} after {timeout}s. "
                "Another zigvm process may be installing this version."
            )
            raise LockTimeout(str(lock_path)) from e


__all__ = [
    "LockManager",
    "LockTimeout",
]
