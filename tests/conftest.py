"""
Pytest configuration and shared fixtures for zigvm tests.
"""

import pytest

# Import test fixtures to make them available to all tests
# These imports register the fixtures with pytest's fixture discovery system
# ruff: noqa: F401
from tests.fixtures.archives import (
    archive_dir,
    linux_archive,
    windows_archive,
)
from tests.fixtures.installs import (
    platform_linux,
    platform_windows,
    zigvm_home,
    install_root,
    zigvm_config,
)

from zigvm.core.platform import clear_platform_cache


@pytest.fixture(autouse=True)
def reset_platform_cache():
    """Platform detection is cached per process; start each test fresh."""
    clear_platform_cache()
    yield
    clear_platform_cache()


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep the user's zigvm settings out of tests."""
    monkeypatch.delenv("ZIGVM_DIR", raising=False)
    monkeypatch.delenv("ZIGVM_INSTALL_DIR", raising=False)
