"""
Entry point for running the zigvm CLI as a module.

Usage: python -m zigvm.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
