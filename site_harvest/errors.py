# File: site_harvest/errors.py
"""site_harvest.errors: exception hierarchy shared by the crawler and the asset downloader.

Per-page and per-asset errors are recovered locally by their loops; only errors
outside this hierarchy (configuration, fetcher start-up) end a job.
"""

from __future__ import annotations

__all__ = [
    "HarvestError",
    "NavigationError",
    "AssetDownloadError",
    "AssetTooLargeError",
    "AssetTimeoutError",
    "AssetHTTPError",
    "MalformedAssetUrlError",
    "AssetTransportError",
]


class HarvestError(Exception):
    """Base class for all SiteHarvest errors."""


class NavigationError(HarvestError):
    """A page could not be rendered: DNS/connection failure, timeout or non-2xx status."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class AssetDownloadError(HarvestError):
    """An asset could not be fetched."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(reason)
        self.url = url
        self.reason = reason


class AssetTooLargeError(AssetDownloadError):
    def __init__(self, url: str, size: int, limit: int) -> None:
        super().__init__(url, f"Image too large: {size} bytes (limit {limit})")
        self.size = size
        self.limit = limit


class AssetTimeoutError(AssetDownloadError):
    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(url, f"Download timeout after {timeout:g} s")
        self.timeout = timeout


class AssetHTTPError(AssetDownloadError):
    def __init__(self, url: str, status: int) -> None:
        super().__init__(url, f"HTTP {status}")
        self.status = status


class MalformedAssetUrlError(AssetDownloadError):
    def __init__(self, url: str) -> None:
        super().__init__(url, f"Malformed URL: {url!r}")


class AssetTransportError(AssetDownloadError):
    """Connection-level failure (DNS, reset, protocol error)."""
