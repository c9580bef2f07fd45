"""
Fetch-index command implementation.

Prints the raw JSON download index.
"""

from zigvm.cli.utils import manager_from_args


def run(args) -> int:
    manager = manager_from_args(args)
    print(manager.fetch_index_text())
    return 0
