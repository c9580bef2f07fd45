"""Test fixtures for zigvm tests.

Fixtures are organized by type:

- archives: Compiler archives as published on the download server
- installs: Install roots populated with fake compiler versions

Import fixtures in your tests using:
    from tests.fixtures.archives import linux_archive
    from tests.fixtures.installs import install_root
"""

__all__ = [
    "archives",
    "installs",
]
