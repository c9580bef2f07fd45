"""
Unit tests for the retention policy.
"""

import logging
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from zigvm.core.exceptions import FilesystemError, NotInstalled, ProtectedVersion
from zigvm.toolchain.pointers import (
    FileMasterPointer,
    StubExecutablePointer,
    SymlinkMasterPointer,
    SymlinkPointer,
)
from zigvm.toolchain.retention import (
    REASON_DEFAULT,
    REASON_KEEP,
    REASON_MASTER,
    RetentionManager,
)
from tests.fixtures.installs import make_version


@pytest.fixture(
    params=[
        pytest.param(
            "symlink",
            marks=pytest.mark.skipif(sys.platform == "win32", reason="symlinks"),
        ),
        "stub",
    ]
)
def pointers(request, zigvm_home, install_root):
    """(default pointer, master pointer) for both pointer variants."""
    if request.param == "symlink":
        return (
            SymlinkPointer(zigvm_home / "default"),
            SymlinkMasterPointer(install_root / "master"),
        )
    return (
        StubExecutablePointer(zigvm_home / "zig.cmd"),
        FileMasterPointer(install_root / "master"),
    )


@pytest.fixture
def retention(install_root, pointers):
    default_pointer, master_pointer = pointers
    return RetentionManager(install_root, default_pointer, master_pointer)


@pytest.fixture
def scenario(install_root, retention):
    """0.10.0, 0.11.0 (default) and 0.12.0-dev.1 (master)."""
    for name in ("0.10.0", "0.11.0", "0.12.0-dev.1"):
        make_version(install_root, name)
    retention.default_pointer.set_target(install_root / "0.11.0" / "files")
    retention.master_pointer.set_target("0.12.0-dev.1")
    return retention


class TestIsProtected:
    """Test protection reasons."""

    def test_default(self, retention, install_root):
        make_version(install_root, "0.11.0")
        assert retention.is_protected("0.11.0", "0.11.0", None) == REASON_DEFAULT

    def test_master(self, retention, install_root):
        make_version(install_root, "0.12.0-dev.1")
        assert retention.is_protected("0.12.0-dev.1", None, "0.12.0-dev.1") == REASON_MASTER

    def test_keep_marker(self, retention, install_root):
        (make_version(install_root, "0.9.1") / "keep").touch()
        assert retention.is_protected("0.9.1", None, None) == REASON_KEEP

    def test_unprotected(self, retention, install_root):
        make_version(install_root, "0.10.0")
        assert retention.is_protected("0.10.0", "0.11.0", "0.12.0-dev.1") is None


class TestDefaultVersion:
    """Test deriving the default version from the pointer."""

    def test_no_default(self, retention):
        assert retention.default_version() is None

    def test_managed_default(self, scenario):
        assert scenario.default_version() == "0.11.0"

    def test_default_outside_install_root(self, retention, tmp_path):
        retention.default_pointer.set_target(tmp_path / "custom" / "files")
        assert retention.default_version() is None

    def test_target_inside_version_without_files_leaf(self, scenario, install_root):
        scenario.default_pointer.set_target(install_root / "0.10.0")

        assert scenario.default_version() == "0.10.0"
        result = scenario.clean_all()
        assert result.skipped["0.10.0"] == REASON_DEFAULT
        assert (install_root / "0.10.0").is_dir()

    @pytest.mark.skipif(sys.platform == "win32", reason="symlinks")
    def test_install_root_reached_through_symlink(self, tmp_path):
        real_root = tmp_path / "real_home" / "cache"
        for name in ("0.10.0", "0.11.0"):
            make_version(real_root, name)
        (tmp_path / "home").symlink_to(tmp_path / "real_home", target_is_directory=True)
        root = tmp_path / "home" / "cache"
        retention = RetentionManager(
            root,
            SymlinkPointer(tmp_path / "home" / "default"),
            SymlinkMasterPointer(root / "master"),
        )
        retention.default_pointer.set_target(real_root / "0.11.0" / "files")

        assert retention.default_version() == "0.11.0"
        result = retention.clean_all()
        assert result.removed == ["0.10.0"]
        assert (real_root / "0.11.0" / "files" / "zig").is_file()

    def test_master_version(self, scenario):
        assert scenario.master_version() == "0.12.0-dev.1"


class TestCleanAll:
    """Test bulk cleanup."""

    def test_end_to_end_scenario(self, scenario, install_root, caplog):
        default_before = scenario.default_pointer.get_target()
        master_before = scenario.master_pointer.get_target()

        with caplog.at_level(logging.INFO, logger="zigvm.toolchain.retention"):
            result = scenario.clean_all()

        assert result.removed == ["0.10.0"]
        assert result.skipped == {
            "0.11.0": REASON_DEFAULT,
            "0.12.0-dev.1": REASON_MASTER,
        }
        assert result.space_reclaimed > 0
        assert not (install_root / "0.10.0").exists()
        assert (install_root / "0.11.0" / "files" / "zig").is_file()
        assert (install_root / "0.12.0-dev.1" / "files" / "zig").is_file()
        assert scenario.default_pointer.get_target() == default_before
        assert scenario.master_pointer.get_target() == master_before
        assert f"skipping '0.11.0' ({REASON_DEFAULT})" in caplog.text
        assert f"skipping '0.12.0-dev.1' ({REASON_MASTER})" in caplog.text

    def test_keep_marker_protects(self, scenario, install_root):
        (install_root / "0.10.0" / "keep").touch()

        result = scenario.clean_all()

        assert result.removed == []
        assert result.skipped["0.10.0"] == REASON_KEEP

    def test_removes_orphan_staging(self, scenario, install_root):
        (install_root / "0.13.0.installing").mkdir()

        result = scenario.clean_all()

        assert "0.13.0.installing" in result.removed
        assert not (install_root / "0.13.0.installing").exists()

    def test_empty_root(self, retention):
        result = retention.clean_all()
        assert result.removed == [] and result.skipped == {}

    def test_failure_aborts_and_propagates(self, scenario, install_root, monkeypatch):
        make_version(install_root, "0.9.0")

        def failing_rmtree(path, require_prefix=None):
            raise OSError("disk on fire")

        monkeypatch.setattr("zigvm.toolchain.retention.safe_rmtree", failing_rmtree)

        with pytest.raises(OSError, match="disk on fire"):
            scenario.clean_all()
        assert (install_root / "0.9.0").exists()
        assert (install_root / "0.10.0").exists()


class TestCleanOne:
    """Test single-version cleanup."""

    def test_protected_default(self, scenario, install_root):
        with pytest.raises(ProtectedVersion) as exc_info:
            scenario.clean_one("0.11.0")

        assert exc_info.value.reason == REASON_DEFAULT
        assert str(exc_info.value) == "cannot clean '0.11.0' (is default compiler)"
        assert (install_root / "0.11.0").is_dir()

    def test_protected_master(self, scenario):
        with pytest.raises(ProtectedVersion, match="it is master"):
            scenario.clean_one("0.12.0-dev.1")

    def test_unprotected(self, scenario, install_root):
        scenario.clean_one("0.10.0")
        assert not (install_root / "0.10.0").exists()

    def test_missing(self, scenario):
        with pytest.raises(NotInstalled, match="'0.8.0' is not installed"):
            scenario.clean_one("0.8.0")

    def test_master_alias_is_not_a_version(self, scenario, install_root):
        with pytest.raises(NotInstalled):
            scenario.clean_one("master")
        assert (install_root / "0.12.0-dev.1").is_dir()

    def test_path_names_rejected(self, scenario):
        with pytest.raises(NotInstalled):
            scenario.clean_one("../cache")


class TestKeep:
    """Test keep markers."""

    def test_creates_marker(self, retention, install_root):
        make_version(install_root, "0.10.0")

        marker = retention.keep("0.10.0")

        assert marker == install_root / "0.10.0" / "keep"
        assert marker.is_file()
        assert retention.keep("0.10.0") == marker

    def test_missing(self, retention):
        with pytest.raises(NotInstalled):
            retention.keep("0.10.0")

    def test_marker_write_failure_is_filesystem_error(self, retention, install_root):
        make_version(install_root, "0.10.0")

        with patch.object(Path, "touch", side_effect=PermissionError("read-only")):
            with pytest.raises(FilesystemError, match="read-only"):
                retention.keep("0.10.0")
