"""
Undefine command implementation.

Removes the default compiler pointer.
"""

import logging

from zigvm.cli.utils import manager_from_args

logger = logging.getLogger(__name__)


def run(args) -> int:
    manager = manager_from_args(args)
    if not manager.unset_default():
        logger.warning("no default compiler is set")
    return 0
