"""
Entry point for running zigvm as a module.

Usage: python -m zigvm [VERSION | command] [options]
"""

from zigvm.cli.parser import main

if __name__ == "__main__":
    main()
