"""
Shared fixtures for CLI tests.
"""

from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def keep_pytest_logging():
    """CLI.run reconfigures the root logger, which would drop caplog's handler."""
    with patch("zigvm.cli.parser.CLI._configure_logging"):
        yield
