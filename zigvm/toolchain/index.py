"""
Download index client.

Only the token 'master' needs the remote index; every other version maps to
a fixed URL (see VersionClassifier). The index is a JSON document of the form:

    {
      "master": {
        "version": "0.12.0-dev.100+aaaa",
        "x86_64-linux": {"tarball": "https://.../zig-linux-x86_64-....tar.xz", ...},
        ...
      },
      "0.11.0": {...}
    }
"""

import json
import logging
from typing import Any, Dict, Optional, Tuple

from ..core.config import DEFAULT_INDEX_URL, DEFAULT_TIMEOUT
from ..core.download import fetch_text
from ..core.exceptions import DownloadFailure, DownloadIndexError
from ..core.platform import PlatformInfo, detect_platform
from .classifier import MASTER

logger = logging.getLogger(__name__)


class DownloadIndexClient:
    """Fetches the download index and resolves 'master'."""

    def __init__(
        self,
        url: str = DEFAULT_INDEX_URL,
        platform: Optional[PlatformInfo] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self.url = url
        self.platform = platform or detect_platform()
        self.timeout = timeout

    def fetch_text(self) -> str:
        """
        Fetch the raw index document.

        Raises:
            DownloadIndexError: If the index cannot be downloaded
        """
        try:
            return fetch_text(self.url, timeout=self.timeout)
        except DownloadFailure as e:
            raise DownloadIndexError(str(e)) from e

    def fetch(self) -> Dict[str, Any]:
        """
        Fetch and parse the index document.

        Raises:
            DownloadIndexError: On transport failure or invalid JSON
        """
        text = self.fetch_text()
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise DownloadIndexError(f"download index '{self.url}' is not valid JSON: {e}") from e
        if not isinstance(document, dict):
            raise DownloadIndexError(f"download index '{self.url}' is not a JSON object")
        return document

    def resolve_master(self, document: Optional[Dict[str, Any]] = None) -> Tuple[str, str]:
        """
        Resolve 'master' to a concrete (version, url) pair.

        Args:
            document: Already parsed index (fetched if None)

        Raises:
            DownloadIndexError: If a required key is missing
        """
        if document is None:
            document = self.fetch()

        master = _lookup(document, MASTER, MASTER)
        version = _lookup(master, "version", f"{MASTER}.version")
        platform_key = self.platform.json_platform
        build = _lookup(master, platform_key, f"{MASTER}.{platform_key}")
        url = _lookup(build, "tarball", f"{MASTER}.{platform_key}.tarball")

        if not isinstance(version, str) or not isinstance(url, str):
            raise DownloadIndexError(
                f"download index has malformed '{MASTER}' entry for {platform_key}"
            )

        logger.debug(f"master resolves to {version} ({url})")
        return version, url


def _lookup(node: Any, key: str, dotted: str) -> Any:
    if not isinstance(node, dict) or key not in node:
        raise DownloadIndexError(f"download index is missing '{dotted}'")
    return node[key]


__all__ = ["DownloadIndexClient"]
