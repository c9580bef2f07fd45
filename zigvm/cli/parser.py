"""
zigvm CLI argument parser.

This module implements the command-line interface for zigvm using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from filelock import Timeout as LockTimeout

from zigvm import __version__
from zigvm.core.exceptions import ZigvmError

logger = logging.getLogger(__name__)

# Command name -> module under zigvm.cli.commands
COMMANDS = {
    "fetch": "fetch",
    "default": "default",
    "undefine": "undefine",
    "list": "list",
    "clean": "clean",
    "keep": "keep",
    "run": "run",
    "fetch-index": "fetch_index",
}

# Global options that consume the following argument
_OPTIONS_WITH_VALUE = {"--install-dir", "--path-link"}


class CLI:
    """zigvm command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="zigvm",
            description="zigvm - Zig compiler version manager",
            epilog=(
                'Use "zigvm VERSION" to fetch a compiler and make it the default.\n'
                'Use "zigvm COMMAND --help" for command-specific help.'
            ),
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"zigvm {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--install-dir",
            type=Path,
            metavar="DIR",
            help="Directory holding installed compilers (default: ~/.zigvm/cache)",
        )
        parser.add_argument(
            "--path-link",
            type=Path,
            metavar="PATH",
            help="Path of the default compiler pointer",
        )
        parser.add_argument(
            "--force",
            action="store_true",
            help="Activate a default from a path without searching it for a compiler",
        )

        # Subcommands
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_fetch_command(subparsers)
        self._add_default_command(subparsers)
        self._add_undefine_command(subparsers)
        self._add_list_command(subparsers)
        self._add_clean_command(subparsers)
        self._add_keep_command(subparsers)
        self._add_run_command(subparsers)
        self._add_fetch_index_command(subparsers)

        return parser

    def _add_fetch_command(self, subparsers):
        """Add 'fetch' subcommand."""
        parser = subparsers.add_parser(
            "fetch",
            help="Download and install a compiler",
            description=(
                "Download and install a compiler version "
                "('master' for the latest dev build)"
            ),
        )
        parser.add_argument("version", metavar="VERSION", help="Version to fetch")
        parser.add_argument(
            "--default",
            action="store_true",
            help="Make the fetched version the default compiler",
        )

    def _add_default_command(self, subparsers):
        """Add 'default' subcommand."""
        parser = subparsers.add_parser(
            "default",
            help="Print or set the default compiler",
            description=(
                "Without arguments, print the default compiler. With a version, make "
                "it the default. With an existing directory, search it for a compiler "
                "and make that the default (see --force)."
            ),
        )
        parser.add_argument(
            "target",
            nargs="?",
            metavar="VERSION|PATH",
            help="Installed version, 'master', or a directory",
        )

    def _add_undefine_command(self, subparsers):
        """Add 'undefine' subcommand."""
        subparsers.add_parser(
            "undefine",
            help="Remove the default compiler pointer",
            description="Remove the default compiler pointer",
        )

    def _add_list_command(self, subparsers):
        """Add 'list' subcommand."""
        subparsers.add_parser(
            "list",
            help="List installed compilers",
            description="List installed compiler versions",
        )

    def _add_clean_command(self, subparsers):
        """Add 'clean' subcommand."""
        parser = subparsers.add_parser(
            "clean",
            help="Delete installed compilers",
            description=(
                "Delete one installed compiler, or every compiler that is not the "
                "default, not master and has no keep file"
            ),
        )
        parser.add_argument(
            "version", nargs="?", metavar="VERSION", help="Version to delete"
        )

    def _add_keep_command(self, subparsers):
        """Add 'keep' subcommand."""
        parser = subparsers.add_parser(
            "keep",
            help="Protect a compiler from 'clean'",
            description="Create a keep file so that 'clean' never deletes the version",
        )
        parser.add_argument("version", metavar="VERSION", help="Version to keep")

    def _add_run_command(self, subparsers):
        """Add 'run' subcommand."""
        parser = subparsers.add_parser(
            "run",
            help="Run an installed compiler",
            description="Run an installed compiler with the given arguments",
        )
        parser.add_argument("version", metavar="VERSION", help="Version to run")
        parser.add_argument(
            "compiler_args",
            nargs=argparse.REMAINDER,
            metavar="ARGS",
            help="Arguments passed to the compiler",
        )

    def _add_fetch_index_command(self, subparsers):
        """Add 'fetch-index' subcommand."""
        subparsers.add_parser(
            "fetch-index",
            help="Print the download index",
            description="Download and print the raw JSON download index",
        )

    def _expand_shorthand(self, args: List[str]) -> List[str]:
        """
        Rewrite 'zigvm VERSION' into 'zigvm fetch --default VERSION'.

        Example:
            >>> CLI()._expand_shorthand(["-v", "0.11.0"])
            ['-v', 'fetch', '--default', '0.11.0']
        """
        expect_value = False
        for index, arg in enumerate(args):
            if expect_value:
                expect_value = False
                continue
            if arg in _OPTIONS_WITH_VALUE:
                expect_value = True
                continue
            if arg.startswith("-"):
                continue
            if arg in COMMANDS:
                return args
            return args[:index] + ["fetch", "--default"] + args[index:]
        return args

    def parse_args(self, args: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        if args is None:
            args = sys.argv[1:]
        return self.parser.parse_args(self._expand_shorthand(list(args)))

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with given arguments.

        Args:
            args: Arguments to parse (uses sys.argv if None)

        Returns:
            Exit code (0 for success, non-zero for error)
        """
        parsed_args = self.parse_args(args)

        # Configure logging
        self._configure_logging(parsed_args)

        # Check if command specified
        if not parsed_args.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        try:
            return self._dispatch_command(parsed_args)
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130  # Standard exit code for SIGINT
        except (ZigvmError, LockTimeout) as e:
            logger.error(f"error: {e}")
            if parsed_args.verbose:
                import traceback

                traceback.print_exc()
            return 1

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        module_name = COMMANDS.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(f"zigvm.cli.commands.{module_name}")
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
