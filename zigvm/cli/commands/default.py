"""
Default command implementation.

Prints or sets the default compiler.
"""

import logging
from pathlib import Path

from zigvm.cli.utils import manager_from_args, print_error
from zigvm.toolchain.classifier import MASTER

logger = logging.getLogger(__name__)

NO_DEFAULT = "<no-default>"


def run(args) -> int:
    """
    Run the default command.

    With no target the current default is printed. An existing directory is
    searched for a compiler (unless --force); anything else names an
    installed version or 'master'.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    manager = manager_from_args(args)

    if args.target is None:
        print(manager.get_default() or NO_DEFAULT)
        return 0

    target = args.target
    if target != MASTER and Path(target).is_dir():
        if manager.set_default_from_path(target):
            return 0
        if Path(target).name != target:
            print_error(f"no compiler found under '{target}'", "use --force to link it anyway")
            return 1
        logger.debug(f"'{target}' is not a compiler directory, treating it as a version")

    manager.set_default(target)
    return 0
