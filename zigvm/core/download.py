"""
Network download helpers with streaming and progress tracking.

This module provides:
- Streaming HTTP/HTTPS downloads written to disk in bounded chunks
- Progress reporting (bytes, percentage, speed, ETA)
- Small text fetches (used for the download index)

Retries are intentionally left to callers; every transport failure surfaces
as a DownloadFailure carrying the URL and the underlying cause.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from .exceptions import DownloadFailure

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192
DEFAULT_TIMEOUT = 30


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second
    eta_seconds: float  # estimated time remaining

    def __str__(self) -> str:
        """Format progress for display."""
        return format_progress(self)


def download_file(
    url: str,
    destination: Path,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: int = DEFAULT_TIMEOUT,
) -> Path:
    """
    Stream the body at url into destination.

    Args:
        url: URL to download from
        destination: Local file to create (parent must exist)
        progress_callback: Optional callback for progress updates
        timeout: Connect/read timeout in seconds

    Returns:
        Path to downloaded file

    Raises:
        DownloadFailure: On connect errors, non-2xx status or mid-stream failure
        ValueError: If URL is empty

    Example:
        >>> download_file(
        ...     "https://ziglang.org/download/0.11.0/zig-linux-x86_64-0.11.0.tar.xz",
        ...     Path("/tmp/zig.tar.xz"),
        ... )
    """
    if not url:
        raise ValueError("URL cannot be empty")

    destination = Path(destination)
    logger.debug(f"Downloading '{url}' to '{destination}'")

    try:
        with requests.get(
            url, stream=True, timeout=timeout, allow_redirects=True
        ) as response:
            response.raise_for_status()
            _write_stream(response, destination, progress_callback)
    except RequestException as e:
        raise DownloadFailure(url, _describe(e)) from e
    except OSError as e:
        raise DownloadFailure(url, f"failed to write the HTTP response body: {e}") from e

    logger.debug(f"Download complete: {destination}")
    return destination


def _write_stream(
    response: requests.Response,
    destination: Path,
    progress_callback: Optional[Callable[[DownloadProgress], None]],
) -> None:
    content_length = response.headers.get("content-length")
    total_size = int(content_length) if content_length else 0

    downloaded = 0
    start_time = time.time()
    last_progress_time = start_time

    with open(destination, "wb") as f:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if not chunk:
                continue
            f.write(chunk)
            downloaded += len(chunk)

            # Report progress (max once per 0.5 seconds to avoid spam)
            current_time = time.time()
            if progress_callback and (
                current_time - last_progress_time >= 0.5 or downloaded == total_size
            ):
                elapsed = current_time - start_time
                speed = downloaded / elapsed if elapsed > 0 else 0
                remaining = total_size - downloaded if total_size > 0 else 0
                eta = remaining / speed if speed > 0 else 0

                progress_callback(
                    DownloadProgress(
                        bytes_downloaded=downloaded,
                        total_bytes=total_size if total_size > 0 else downloaded,
                        percentage=(downloaded / total_size * 100)
                        if total_size > 0
                        else 0,
                        speed_bps=speed,
                        eta_seconds=eta,
                    )
                )
                last_progress_time = current_time


def fetch_text(url: str, timeout: int = DEFAULT_TIMEOUT) -> str:
    """
    Fetch a small text document into memory.

    Raises:
        DownloadFailure: On any transport failure or non-2xx status
    """
    logger.debug(f"Fetching '{url}'")
    try:
        response = requests.get(url, timeout=timeout, allow_redirects=True)
        response.raise_for_status()
    except RequestException as e:
        raise DownloadFailure(url, _describe(e)) from e
    return response.text


def _describe(error: RequestException) -> str:
    response = getattr(error, "response", None)
    if response is not None and response.status_code:
        status = f"{response.status_code} {response.reason or ''}".rstrip()
        return f"HTTP server replied with unsuccessful response '{status}'"
    return str(error)


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.total_bytes > 0 and progress.percentage > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    else:
        # Unknown total size
        return f"{mb_downloaded:.1f} MB " f"at {speed_mbps:.1f} MB/s"


__all__ = [
    "DownloadProgress",
    "download_file",
    "fetch_text",
    "format_progress",
]
