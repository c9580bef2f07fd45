"""
Tests for CLI command implementations.

Commands run end to end against a temporary zigvm home; downloads are
served by responses.
"""

import sys
from unittest.mock import patch

import pytest
import responses

from zigvm.cli.parser import CLI
from tests.fixtures.archives import build_archive
from tests.fixtures.installs import make_version

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="POSIX pointers")


@pytest.fixture(autouse=True)
def linux_host(monkeypatch, zigvm_home, isolated_environment):
    """Pretend to run on linux-x86_64 with the temporary zigvm home."""
    monkeypatch.setenv("ZIGVM_DIR", str(zigvm_home))
    monkeypatch.setattr("zigvm.core.platform.platform.system", lambda: "Linux")
    monkeypatch.setattr("zigvm.core.platform.platform.machine", lambda: "x86_64")


def zigvm(*args):
    return CLI().run(list(args))


class TestFetchCommand:
    """Test fetch and the bare-version shorthand."""

    @responses.activate
    def test_bare_version_fetches_and_sets_default(self, install_root, archive_dir, capsys):
        archive = build_archive(archive_dir, "0.11.0")
        responses.add(
            responses.GET,
            f"https://ziglang.org/download/0.11.0/{archive.name}",
            body=archive.read_bytes(),
        )

        assert zigvm("0.11.0") == 0
        assert (install_root / "0.11.0" / "files" / "zig").is_file()

        assert zigvm("default") == 0
        assert capsys.readouterr().out.strip() == "0.11.0"

    @responses.activate
    def test_download_failure_exits_1(self, install_root):
        responses.add(
            responses.GET,
            "https://ziglang.org/download/0.11.0/zig-linux-x86_64-0.11.0.tar.xz",
            status=404,
        )

        assert zigvm("fetch", "0.11.0") == 1
        assert list(install_root.iterdir()) == []

    @responses.activate
    def test_escaping_version_exits_1(self, zigvm_home, install_root, caplog):
        assert zigvm("../escape") == 1

        assert "invalid compiler version '../escape'" in caplog.text
        assert len(responses.calls) == 0
        assert not (zigvm_home / "escape").exists()
        assert list(install_root.iterdir()) == []


class TestDefaultCommand:
    """Test printing and setting the default."""

    def test_no_default(self, install_root, capsys):
        assert zigvm("default") == 0
        assert capsys.readouterr().out.strip() == "<no-default>"

    def test_set_installed_version(self, install_root, zigvm_home):
        make_version(install_root, "0.11.0")

        assert zigvm("default", "0.11.0") == 0
        assert (zigvm_home / "default").resolve() == (install_root / "0.11.0" / "files").resolve()

    def test_set_missing_version(self, install_root, caplog):
        assert zigvm("default", "0.11.0") == 1
        assert "zigvm fetch 0.11.0" in caplog.text

    def test_set_from_directory(self, install_root, zigvm_home, tmp_path):
        build_dir = tmp_path / "zig-src" / "zig-out" / "bin"
        build_dir.mkdir(parents=True)
        (build_dir / "zig").write_text("#!/bin/sh\n")
        (build_dir / "zig").chmod(0o755)

        assert zigvm("default", str(tmp_path / "zig-src")) == 0
        assert (zigvm_home / "default").resolve() == build_dir.resolve()

    def test_directory_without_compiler(self, install_root, tmp_path, capsys):
        (tmp_path / "empty").mkdir()

        assert zigvm("default", str(tmp_path / "empty")) == 1
        assert "no compiler found" in capsys.readouterr().err

    def test_force_links_directory(self, install_root, zigvm_home, tmp_path):
        (tmp_path / "empty").mkdir()

        assert zigvm("--force", "default", str(tmp_path / "empty")) == 0
        assert (zigvm_home / "default").resolve() == (tmp_path / "empty").resolve()

    def test_undefine(self, install_root, zigvm_home):
        make_version(install_root, "0.11.0")
        zigvm("default", "0.11.0")

        assert zigvm("undefine") == 0
        assert not (zigvm_home / "default").is_symlink()
        assert zigvm("undefine") == 0


class TestInventoryCommands:
    """Test list, keep and clean."""

    def test_list(self, install_root, capsys):
        make_version(install_root, "0.11.0")
        make_version(install_root, "0.10.0")

        assert zigvm("list") == 0
        assert capsys.readouterr().out.split() == ["0.10.0", "0.11.0"]

    def test_clean_keeps_default_and_kept(self, install_root):
        for name in ("0.9.1", "0.10.0", "0.11.0"):
            make_version(install_root, name)

        assert zigvm("default", "0.11.0") == 0
        assert zigvm("keep", "0.9.1") == 0
        assert zigvm("clean") == 0

        assert sorted(p.name for p in install_root.iterdir()) == ["0.11.0", "0.9.1"]

    def test_clean_protected_exits_1(self, install_root, caplog):
        make_version(install_root, "0.11.0")
        zigvm("default", "0.11.0")

        assert zigvm("clean", "0.11.0") == 1
        assert "is default compiler" in caplog.text
        assert (install_root / "0.11.0").is_dir()

    def test_keep_write_failure_exits_1(self, install_root, caplog):
        make_version(install_root, "0.10.0")

        denied = PermissionError("read-only")
        with patch("zigvm.core.filesystem.Path.touch", side_effect=denied):
            assert zigvm("keep", "0.10.0") == 1
        assert "read-only" in caplog.text


class TestRunCommand:
    """Test running an installed compiler."""

    def test_returns_compiler_exit_code(self, install_root):
        make_version(install_root, "0.11.0")

        with patch("zigvm.cli.commands.run.subprocess.run") as run:
            run.return_value.returncode = 3
            assert zigvm("run", "0.11.0", "version") == 3

        argv = run.call_args[0][0]
        assert argv == [str(install_root / "0.11.0" / "files" / "zig"), "version"]

    def test_not_installed(self, install_root):
        assert zigvm("run", "0.11.0", "version") == 1


class TestFetchIndexCommand:
    """Test printing the download index."""

    @responses.activate
    def test_prints_raw_index(self, install_root, capsys):
        responses.add(
            responses.GET, "https://ziglang.org/download/index.json", body='{"master": {}}'
        )

        assert zigvm("fetch-index") == 0
        assert capsys.readouterr().out.strip() == '{"master": {}}'
