"""
Run command implementation.

Executes an installed compiler with the remaining arguments and returns its
exit code.
"""

import logging
import subprocess

from zigvm.cli.utils import manager_from_args
from zigvm.core.exceptions import ZigvmError

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the run command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code of the compiler process
    """
    manager = manager_from_args(args)
    compiler = manager.compiler_path(args.version)

    compiler_args = list(args.compiler_args)
    if compiler_args[:1] == ["--"]:
        compiler_args = compiler_args[1:]

    argv = [str(compiler)] + compiler_args
    logger.debug(f"exec {' '.join(argv)}")
    try:
        completed = subprocess.run(argv)
    except OSError as e:
        raise ZigvmError(f"failed to execute '{compiler}': {e}") from e
    return completed.returncode
