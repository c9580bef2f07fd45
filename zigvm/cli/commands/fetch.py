"""
Fetch command implementation.

Downloads and installs a compiler version, optionally making it the default.
'zigvm VERSION' is rewritten to 'zigvm fetch --default VERSION' by the parser.
"""

import logging

from zigvm.cli.utils import manager_from_args

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the fetch command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    manager = manager_from_args(args, show_progress=True)
    result = manager.fetch(args.version, set_default=args.default)

    if not result.was_cached:
        logger.debug(
            f"download {result.download_time:.2f}s, "
            f"extraction {result.extraction_time:.2f}s"
        )
    return 0
