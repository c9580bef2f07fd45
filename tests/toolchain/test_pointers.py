"""
Unit tests for default and master pointers.
"""

import os
import sys
from unittest.mock import patch

import pytest

from zigvm.core.exceptions import FilesystemError, PathTooLong, PointerKindMismatch
from zigvm.core.filesystem import atomic_write
from zigvm.toolchain.pointers import (
    FileMasterPointer,
    StubExecutablePointer,
    SymlinkMasterPointer,
    SymlinkPointer,
    default_pointer_for,
    master_pointer_for,
)
from zigvm.toolchain.stub import MAX_PATH
from tests.fixtures.installs import make_version

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")


# ==============================================================================
# Factory Tests
# ==============================================================================


def test_default_pointer_variant_per_platform(tmp_path, platform_linux, platform_windows):
    assert isinstance(default_pointer_for(tmp_path / "default", platform_linux), SymlinkPointer)
    assert isinstance(
        default_pointer_for(tmp_path / "zig.cmd", platform_windows), StubExecutablePointer
    )


def test_master_pointer_variant_per_platform(tmp_path, platform_linux, platform_windows):
    posix = master_pointer_for(tmp_path, platform_linux)
    windows = master_pointer_for(tmp_path, platform_windows)

    assert isinstance(posix, SymlinkMasterPointer)
    assert isinstance(windows, FileMasterPointer)
    assert posix.path == windows.path == tmp_path / "master"


# ==============================================================================
# SymlinkPointer Tests
# ==============================================================================


@posix_only
class TestSymlinkPointer:
    """Test symlink-backed default pointer."""

    def test_absent(self, zigvm_home):
        assert SymlinkPointer(zigvm_home / "default").get_target() is None

    def test_set_and_get(self, zigvm_home, install_root):
        target = make_version(install_root, "0.11.0") / "files"
        pointer = SymlinkPointer(zigvm_home / "default")

        pointer.set_target(target)

        assert pointer.get_target() == target
        assert os.path.realpath(pointer.path) == os.path.realpath(target)

    def test_update_is_idempotent(self, zigvm_home, install_root):
        target = make_version(install_root, "0.11.0") / "files"
        pointer = SymlinkPointer(zigvm_home / "default")

        with patch("zigvm.toolchain.pointers.os.symlink", wraps=os.symlink) as symlink:
            assert pointer.update(target) is True
            assert pointer.update(target) is False

        assert symlink.call_count == 1
        assert pointer.get_target() == target

    def test_update_replaces(self, zigvm_home, install_root):
        old = make_version(install_root, "0.10.0") / "files"
        new = make_version(install_root, "0.11.0") / "files"
        pointer = SymlinkPointer(zigvm_home / "default")

        pointer.update(old)
        assert pointer.update(new) is True
        assert pointer.get_target() == new

    def test_dangling_link_is_readable(self, zigvm_home, install_root):
        pointer = SymlinkPointer(zigvm_home / "default")
        pointer.set_target(install_root / "gone" / "files")

        assert pointer.get_target() == install_root / "gone" / "files"

    def test_plain_file_is_kind_mismatch(self, zigvm_home, install_root):
        path = zigvm_home / "default"
        path.write_text("not a link")
        pointer = SymlinkPointer(path)

        with pytest.raises(PointerKindMismatch, match="not a symlink"):
            pointer.get_target()
        with pytest.raises(PointerKindMismatch):
            pointer.set_target(install_root)
        assert path.read_text() == "not a link"

    def test_remove(self, zigvm_home, install_root):
        pointer = SymlinkPointer(zigvm_home / "default")
        pointer.set_target(install_root)

        assert pointer.remove() is True
        assert pointer.remove() is False
        assert not pointer.path.is_symlink()
        assert install_root.is_dir()

    def test_remove_failure_is_filesystem_error(self, zigvm_home, install_root):
        pointer = SymlinkPointer(zigvm_home / "default")
        pointer.set_target(install_root)

        with patch("zigvm.core.filesystem.os.unlink", side_effect=PermissionError("busy")):
            with pytest.raises(FilesystemError, match="busy"):
                pointer.remove()
        assert pointer.get_target() == install_root


# ==============================================================================
# StubExecutablePointer Tests
# ==============================================================================


class TestStubExecutablePointer:
    """Test launcher-backed default pointer."""

    def test_absent(self, zigvm_home):
        assert StubExecutablePointer(zigvm_home / "zig.cmd").get_target() is None

    def test_update_is_idempotent(self, zigvm_home, install_root):
        target = install_root / "0.11.0" / "files"
        pointer = StubExecutablePointer(zigvm_home / "zig.cmd")

        with patch("zigvm.toolchain.pointers.atomic_write", wraps=atomic_write) as writer:
            assert pointer.update(target) is True
            assert pointer.update(target) is False

        assert writer.call_count == 1
        assert pointer.get_target() == target

    def test_update_replaces(self, zigvm_home, install_root):
        pointer = StubExecutablePointer(zigvm_home / "zig.cmd")
        pointer.update(install_root / "0.10.0" / "files")

        assert pointer.update(install_root / "0.11.0" / "files") is True
        assert pointer.get_target() == install_root / "0.11.0" / "files"

    def test_path_too_long_writes_nothing(self, zigvm_home):
        pointer = StubExecutablePointer(zigvm_home / "zig.cmd")

        with pytest.raises(PathTooLong):
            pointer.set_target("x" * MAX_PATH)
        assert not pointer.path.exists()

    def test_foreign_file_is_kind_mismatch(self, zigvm_home, install_root):
        path = zigvm_home / "zig.cmd"
        path.write_bytes(b"@echo off\r\n")
        pointer = StubExecutablePointer(path)

        with pytest.raises(PointerKindMismatch):
            pointer.update(install_root)
        assert path.read_bytes() == b"@echo off\r\n"

    def test_directory_is_kind_mismatch(self, zigvm_home):
        path = zigvm_home / "zig.cmd"
        path.mkdir()

        with pytest.raises(PointerKindMismatch):
            StubExecutablePointer(path).get_target()

    def test_remove(self, zigvm_home, install_root):
        pointer = StubExecutablePointer(zigvm_home / "zig.cmd")
        pointer.set_target(install_root)

        assert pointer.remove() is True
        assert pointer.remove() is False


# ==============================================================================
# Master Pointer Tests
# ==============================================================================


@posix_only
class TestSymlinkMasterPointer:
    """Test relative master symlink."""

    def test_link_is_relative(self, install_root):
        make_version(install_root, "0.12.0-dev.1")
        pointer = SymlinkMasterPointer(install_root / "master")

        assert pointer.update("0.12.0-dev.1") is True

        assert os.readlink(pointer.path) == "0.12.0-dev.1"
        assert (pointer.path / "files" / "zig").is_file()
        assert pointer.get_target() == "0.12.0-dev.1"

    def test_update_is_idempotent(self, install_root):
        make_version(install_root, "0.12.0-dev.1")
        pointer = SymlinkMasterPointer(install_root / "master")

        assert pointer.update("0.12.0-dev.1") is True
        assert pointer.update("0.12.0-dev.1") is False

    def test_directory_is_kind_mismatch(self, install_root):
        (install_root / "master").mkdir()

        with pytest.raises(PointerKindMismatch):
            SymlinkMasterPointer(install_root / "master").update("0.12.0-dev.1")


class TestFileMasterPointer:
    """Test text-file master pointer."""

    def test_roundtrip(self, install_root):
        pointer = FileMasterPointer(install_root / "master")

        assert pointer.get_target() is None
        assert pointer.update("0.12.0-dev.1") is True
        assert pointer.update("0.12.0-dev.1") is False
        assert (install_root / "master").read_text() == "0.12.0-dev.1"

    def test_directory_is_kind_mismatch(self, install_root):
        (install_root / "master").mkdir()

        with pytest.raises(PointerKindMismatch):
            FileMasterPointer(install_root / "master").get_target()

    def test_remove(self, install_root):
        pointer = FileMasterPointer(install_root / "master")
        pointer.set_target("0.12.0-dev.1")

        assert pointer.remove() is True
        assert pointer.get_target() is None
