# site_harvest/assets/downloader.py
"""
Content-addressable asset downloader.

Each unique URL is fetched at most once per job. The full body is hashed and
written to disk only when the hash is new; a URL whose bytes were already
stored is recorded as a duplicate of the existing file. N URLs with
identical bytes therefore produce exactly one file.

Transfers are sequential with a fixed pause between them, and a per-asset
failure never stops the batch.
"""
from __future__ import annotations

import asyncio
import hashlib
import logging
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from aiohttp import ClientError, ClientSession, ClientTimeout, InvalidURL

from site_harvest.assets.manifest import DownloadStats, Manifest
from site_harvest.assets.paths import derive_path, fallback_path, with_hash_suffix
from site_harvest.assets.registry import HashRegistry
from site_harvest.errors import (
    AssetDownloadError,
    AssetHTTPError,
    AssetTimeoutError,
    AssetTooLargeError,
    AssetTransportError,
    MalformedAssetUrlError,
)
from site_harvest.utils import normalize_url

__all__ = ("AssetRecord", "FailedAsset", "BatchResult", "AssetDownloader", "content_hash")

_CHUNK_SIZE = 64 * 1024

ProgressCallback = Callable[[Dict[str, Any]], None]


def content_hash(data: bytes) -> str:
    # MD5 is fast and collision-prone; fine for a few hundred images per crawl.
    return hashlib.md5(data, usedforsecurity=False).hexdigest()


@dataclass(slots=True)
class AssetRecord:
    source_url: str
    local_path: str
    content_hash: str
    is_duplicate: bool
    size_bytes: int
    duplicate_of: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class FailedAsset:
    url: str
    error: str


@dataclass(slots=True)
class BatchResult:
    success: List[AssetRecord] = field(default_factory=list)
    duplicates: List[AssetRecord] = field(default_factory=list)
    failed: List[FailedAsset] = field(default_factory=list)
    statistics: DownloadStats = field(default_factory=DownloadStats)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": [r.to_dict() for r in self.success],
            "duplicates": [r.to_dict() for r in self.duplicates],
            "failed": [asdict(f) for f in self.failed],
            "statistics": self.statistics.to_dict(),
        }


class AssetDownloader:
    """Downloads assets into ``output_dir`` using a :class:`HashRegistry` for dedup."""

    def __init__(
        self,
        output_dir: Union[str, Path],
        *,
        max_size: int = 10 * 1024 * 1024,
        timeout: float = 30.0,
        delay: float = 0.1,
        user_agent: str = "SiteHarvest/1.0 (+content)",
        registry: Optional[HashRegistry] = None,
        session: Optional[ClientSession] = None,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.max_size = max_size
        self.timeout = timeout
        self.delay = delay
        self.user_agent = user_agent
        self.registry = registry if registry is not None else HashRegistry()
        self.session = session
        self._owns_session = session is None
        self.stats = DownloadStats()
        self._records: Dict[str, AssetRecord] = {}
        self._failures: Dict[str, AssetDownloadError] = {}
        self.logger = logging.getLogger("SiteHarvest")

    @classmethod
    def from_config(cls, config, **kwargs: Any) -> AssetDownloader:
        return cls(
            config.images_dir,
            max_size=config.max_asset_size,
            timeout=config.asset_timeout,
            delay=config.asset_delay,
            user_agent=config.user_agent,
            **kwargs,
        )

    async def __aenter__(self) -> AssetDownloader:
        if self.session is None:
            self.session = ClientSession(
                headers={"User-Agent": self.user_agent, "Accept": "image/*"},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    # ------------------------------------------------------------------ #
    # Single asset                                                       #
    # ------------------------------------------------------------------ #

    async def fetch(self, url: str) -> AssetRecord:
        """Download *url* once; later calls return the cached record or re-raise the cached failure."""
        if url in self._records:
            return self._records[url]
        if url in self._failures:
            raise self._failures[url]

        self.stats.total_urls += 1
        try:
            data = await self._transfer(url)
            record = self._store(url, data)
        except AssetDownloadError as exc:
            self.stats.failed += 1
            self._failures[url] = exc
            raise
        self._records[url] = record
        return record

    async def _transfer(self, url: str) -> bytes:
        if not self.session:
            raise RuntimeError("Session not initialized")
        if normalize_url(url) is None:
            raise MalformedAssetUrlError(url)

        try:
            async with self.session.get(url, timeout=ClientTimeout(total=self.timeout)) as resp:
                if not 200 <= resp.status < 300:
                    raise AssetHTTPError(url, resp.status)
                declared = resp.content_length
                if declared is not None and declared > self.max_size:
                    raise AssetTooLargeError(url, declared, self.max_size)

                buffer = bytearray()
                async for chunk in resp.content.iter_chunked(_CHUNK_SIZE):
                    buffer.extend(chunk)
                    if len(buffer) > self.max_size:
                        # leaving the context drops the connection mid-transfer
                        raise AssetTooLargeError(url, len(buffer), self.max_size)
                return bytes(buffer)
        except asyncio.TimeoutError as exc:
            raise AssetTimeoutError(url, self.timeout) from exc
        except InvalidURL as exc:
            raise MalformedAssetUrlError(url) from exc
        except ClientError as exc:
            raise AssetTransportError(url, str(exc) or type(exc).__name__) from exc

    def _target_for(self, url: str, digest: str) -> Path:
        """Path for new content at *url* that never clobbers or collides with what is on disk.

        ``/img/photo`` and ``/img/photo/large.png`` need the same name once as a
        file and once as a directory: a directory in the way gets a hash suffix,
        a file in the way of a parent sends the asset to ``fallback/``.
        """
        target = derive_path(url, self.output_dir)
        if any(parent.exists() and not parent.is_dir() for parent in target.parents):
            target = fallback_path(url, self.output_dir)
        if self.registry.owner_of_path(str(target)) is not None or target.is_dir():
            target = with_hash_suffix(target, digest)
        return target

    def _store(self, url: str, data: bytes) -> AssetRecord:
        digest = content_hash(data)
        existing = self.registry.path_for_hash(digest)
        if existing is not None:
            path = self.registry.register_duplicate(url, digest)
            self.stats.duplicates += 1
            self.logger.debug("Duplicate content %s -> %s", url, existing)
            return AssetRecord(url, path, digest, True, len(data), duplicate_of=existing)

        target = self._target_for(url, digest)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except (OSError, ValueError) as exc:
            raise AssetDownloadError(url, f"cannot write {target}: {exc}") from exc

        self.registry.register_original(url, digest, str(target))
        self.stats.unique_files += 1
        self.stats.total_size_bytes += len(data)
        return AssetRecord(url, str(target), digest, False, len(data))

    # ------------------------------------------------------------------ #
    # Batch                                                              #
    # ------------------------------------------------------------------ #

    async def download_all(self, urls: Iterable[str], on_progress: Optional[ProgressCallback] = None) -> BatchResult:
        """Fetch every distinct URL once, in order; failures are collected, not raised."""
        unique = list(dict.fromkeys(urls))
        total = len(unique)
        result = BatchResult()
        self.logger.info("Downloading %d unique asset URLs into %s", total, self.output_dir)

        for current, url in enumerate(unique, start=1):
            if on_progress:
                on_progress({"current": current, "total": total, "url": url})
            try:
                record = await self.fetch(url)
            except AssetDownloadError as exc:
                result.failed.append(FailedAsset(url, exc.reason))
                self.logger.warning("[%d/%d] Failed: %s - %s", current, total, url, exc.reason)
            else:
                if record.is_duplicate:
                    result.duplicates.append(record)
                    self.logger.info("[%d/%d] Duplicate: %s -> %s", current, total, url, record.local_path)
                else:
                    result.success.append(record)
                    self.logger.info("[%d/%d] Downloaded: %s -> %s", current, total, url, record.local_path)
            if self.delay > 0:
                await asyncio.sleep(self.delay)

        result.statistics = replace(self.stats)
        self.logger.info(
            "Download complete: %d urls, %d files, %d duplicates, %d failed, %s MB",
            self.stats.total_urls,
            self.stats.unique_files,
            self.stats.duplicates,
            self.stats.failed,
            self.stats.total_size_mb,
        )
        return result

    def apply_to_pages(self, pages: Iterable[Any]) -> None:
        """Fill ``local_path``/``hash``/``duplicate`` on the images of scraped pages."""
        for page in pages:
            for image in page.images:
                if image.src in self.registry:
                    image.local_path = self.registry.url_to_path[image.src]
                    image.hash = self.registry.url_to_hash[image.src]
                    image.duplicate = self.registry.is_duplicate(image.src)

    def generate_manifest(self) -> Manifest:
        return Manifest.from_registry(self.registry, self.stats, self.output_dir)
