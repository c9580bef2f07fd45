"""
Keep command implementation.

Marks an installed compiler so that 'clean' never deletes it.
"""

import logging

from zigvm.cli.utils import manager_from_args

logger = logging.getLogger(__name__)


def run(args) -> int:
    manager = manager_from_args(args)
    marker = manager.keep(args.version)
    logger.debug(f"keep file: {marker}")
    return 0
