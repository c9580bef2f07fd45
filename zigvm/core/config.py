"""
Configuration for zigvm.

Configuration is a single immutable value threaded through every engine
object. It is resolved once per invocation, in increasing precedence:

    built-in defaults < <root>/config.yaml < environment < CLI flags

Directory Structure:
    <root> (~/.zigvm/ or %USERPROFILE%\\.zigvm\\):
        - cache/        : Installed compiler versions (the install root)
        - lock/         : Advisory install lock files
        - default       : Default compiler pointer (symlink, POSIX)
        - zig.cmd       : Default compiler pointer (stub launcher, Windows)
        - config.yaml   : Optional configuration file

Example config.yaml:
    install_dir: /opt/zig/versions
    path_link: ~/bin/zig-default
    download_host: https://ziglang.org
    timeout: 60
"""

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigError
from .platform import PlatformInfo, detect_platform

logger = logging.getLogger(__name__)

ENV_ROOT_DIR = "ZIGVM_DIR"
ENV_INSTALL_DIR = "ZIGVM_INSTALL_DIR"
CONFIG_FILE_NAME = "config.yaml"

DEFAULT_HOST = "https://ziglang.org"
DEFAULT_INDEX_URL = "https://ziglang.org/download/index.json"
DEFAULT_TIMEOUT = 30


@dataclass(frozen=True)
class ZigvmConfig:
    """
    Resolved zigvm configuration.

    Attributes:
        root_dir: zigvm home directory
        install_dir: Install root holding one directory per version
        default_path: Path of the default compiler pointer
        lock_dir: Directory for advisory lock files
        download_host: Base URL for release and dev-build archives
        index_url: URL of the JSON download index
        timeout: Network timeout in seconds
        verbose: Emit debug traces
        force: Skip the compiler search when activating a default from a path
    """

    root_dir: Path
    install_dir: Path
    default_path: Path
    lock_dir: Path
    download_host: str = DEFAULT_HOST
    index_url: str = DEFAULT_INDEX_URL
    timeout: int = DEFAULT_TIMEOUT
    verbose: bool = False
    force: bool = False

    def with_overrides(self, **overrides: Any) -> "ZigvmConfig":
        """Return a copy with the given non-None fields replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def ensure_directories(self) -> None:
        """Create the root and install directories if missing."""
        for directory in (self.root_dir, self.install_dir):
            if not directory.exists():
                logger.debug(f"creating directory '{directory}'")
            directory.mkdir(parents=True, exist_ok=True)


def get_default_root_dir() -> Path:
    """
    Get the platform-specific zigvm home directory.

    Returns:
        - Windows: %USERPROFILE%\\.zigvm
        - Linux/macOS: ~/.zigvm
    """
    if os.name == "nt":
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise ConfigError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine zigvm directory."
            )
        return Path(user_profile) / ".zigvm"
    return Path.home() / ".zigvm"


def default_pointer_path(root_dir: Path, platform: PlatformInfo) -> Path:
    """Default location of the default pointer for a platform."""
    if platform.uses_stub_pointer:
        return root_dir / "zig.cmd"
    return root_dir / "default"


def load_yaml_config(config_file: Path) -> Dict[str, Any]:
    """
    Load and parse the optional YAML configuration file.

    Returns:
        Configuration dictionary (empty dict if file doesn't exist)

    Raises:
        ConfigError: If YAML parsing fails or the document is not a mapping
    """
    if not config_file.exists():
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid configuration in {config_file}: expected a mapping")
    return data


def _path_value(data: Dict[str, Any], key: str, base: Path) -> Optional[Path]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a string path, got {type(value).__name__}")
    path = Path(value).expanduser()
    return path if path.is_absolute() else base / path


def load_config(
    root_dir: Optional[Path] = None,
    install_dir: Optional[Path] = None,
    path_link: Optional[Path] = None,
    verbose: bool = False,
    force: bool = False,
    platform: Optional[PlatformInfo] = None,
    environ: Optional[Dict[str, str]] = None,
) -> ZigvmConfig:
    """
    Resolve configuration from defaults, config file, environment and flags.

    Args:
        root_dir: Explicit zigvm home (overrides ZIGVM_DIR)
        install_dir: Explicit install root (--install-dir)
        path_link: Explicit default pointer path (--path-link)
        verbose: Emit debug traces
        force: Force mode for default-from-path activation
        platform: PlatformInfo instance (auto-detected if None)
        environ: Environment mapping (os.environ if None)

    Raises:
        ConfigError: If the configuration file or a value is invalid
    """
    platform = platform or detect_platform()
    environ = os.environ if environ is None else environ

    if root_dir is None:
        env_root = environ.get(ENV_ROOT_DIR)
        root_dir = Path(env_root).expanduser() if env_root else get_default_root_dir()
    root_dir = Path(root_dir).absolute()

    data = load_yaml_config(root_dir / CONFIG_FILE_NAME)

    timeout = data.get("timeout", DEFAULT_TIMEOUT)
    if not isinstance(timeout, int) or isinstance(timeout, bool) or timeout <= 0:
        raise ConfigError(f"'timeout' must be a positive integer, got {timeout!r}")

    config = ZigvmConfig(
        root_dir=root_dir,
        install_dir=_path_value(data, "install_dir", root_dir) or root_dir / "cache",
        default_path=_path_value(data, "path_link", root_dir)
        or default_pointer_path(root_dir, platform),
        lock_dir=root_dir / "lock",
        download_host=str(data.get("download_host", DEFAULT_HOST)).rstrip("/"),
        index_url=str(data.get("index_url", DEFAULT_INDEX_URL)),
        timeout=timeout,
    )

    env_install = environ.get(ENV_INSTALL_DIR)
    return config.with_overrides(
        install_dir=Path(env_install).expanduser().absolute() if env_install else None
    ).with_overrides(
        install_dir=Path(install_dir).absolute() if install_dir else None,
        default_path=Path(path_link).absolute() if path_link else None,
        verbose=verbose or None,
        force=force or None,
    )


__all__ = [
    "ZigvmConfig",
    "ENV_ROOT_DIR",
    "ENV_INSTALL_DIR",
    "get_default_root_dir",
    "default_pointer_path",
    "load_yaml_config",
    "load_config",
]
