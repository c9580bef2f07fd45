"""
Clean command implementation.

Deletes one installed compiler, or every compiler that is neither the
default, nor master, nor marked with a keep file.
"""

import logging

from zigvm.cli.utils import manager_from_args

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the clean command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    manager = manager_from_args(args)
    result = manager.clean(args.version)

    if result is not None:
        reclaimed_mb = result.space_reclaimed / (1024 * 1024)
        logger.info(
            f"deleted {len(result.removed)} compiler(s), kept {len(result.skipped)}, "
            f"reclaimed {reclaimed_mb:.1f} MB"
        )
    return 0
