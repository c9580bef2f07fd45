"""
Shared utilities for CLI commands.

Provides common functionality used across multiple CLI commands to
eliminate duplication and ensure consistent behavior.
"""

import logging
import sys
from typing import Optional

from zigvm.core.config import ZigvmConfig, load_config
from zigvm.core.download import DownloadProgress
from zigvm.toolchain.manager import VersionManager

logger = logging.getLogger(__name__)


def config_from_args(args) -> ZigvmConfig:
    """
    Resolve configuration, letting global CLI flags win.

    Args:
        args: Parsed command-line arguments

    Returns:
        Resolved ZigvmConfig
    """
    return load_config(
        install_dir=getattr(args, "install_dir", None),
        path_link=getattr(args, "path_link", None),
        verbose=getattr(args, "verbose", False),
        force=getattr(args, "force", False),
    )


def manager_from_args(args, show_progress: bool = False) -> VersionManager:
    """Build a VersionManager for a parsed command line."""
    config = config_from_args(args)
    logger.debug(f"install dir: {config.install_dir}")
    logger.debug(f"default pointer: {config.default_path}")

    callback = None
    if show_progress and not getattr(args, "quiet", False) and sys.stderr.isatty():
        callback = print_progress
    return VersionManager(config, progress_callback=callback)


def print_progress(progress: DownloadProgress) -> None:
    """Render download progress on a single stderr line."""
    finished = (
        progress.total_bytes > 0
        and progress.bytes_downloaded >= progress.total_bytes
    )
    end = "\n" if finished else ""
    print(f"\r{progress}", end=end, file=sys.stderr, flush=True)


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"error: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)
