"""
zigvm - Zig compiler version manager.

Fetches, installs, activates and garbage-collects Zig compiler versions for a
single user, exposing one default compiler through a stable path.
"""

__version__ = "0.1.0"
