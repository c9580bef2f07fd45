"""
List command implementation.

Prints installed compiler versions, one per line.
"""

from zigvm.cli.utils import manager_from_args


def run(args) -> int:
    manager = manager_from_args(args)
    for version in manager.list_versions():
        print(version)
    return 0
