# site_harvest/assets/manifest.py
"""
Image manifest: the durable record of a download job.

It lists every URL with the file that backs it, plus one entry per stored
file, so a later migration can re-point references without downloading again.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Union

from site_harvest.assets.registry import HashRegistry
from site_harvest.crawler.models import utc_now
from site_harvest.logger import logger


@dataclass(slots=True)
class DownloadStats:
    total_urls: int = 0
    unique_files: int = 0
    duplicates: int = 0
    failed: int = 0
    total_size_bytes: int = 0

    @property
    def total_size_mb(self) -> str:
        return f"{self.total_size_bytes / (1024 * 1024):.2f}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_urls": self.total_urls,
            "unique_files": self.unique_files,
            "duplicates": self.duplicates,
            "failed": self.failed,
            "total_size_bytes": self.total_size_bytes,
            "total_size_mb": self.total_size_mb,
        }


@dataclass(slots=True)
class Manifest:
    base_output_dir: str
    statistics: DownloadStats
    images: List[Dict[str, Any]] = field(default_factory=list)
    hash_map: List[Dict[str, Any]] = field(default_factory=list)
    generated_at: str = field(default_factory=utc_now)

    @classmethod
    def from_registry(cls, registry: HashRegistry, stats: DownloadStats, base_output_dir: Union[str, Path]) -> Manifest:
        images = []
        for url, local_path in registry.url_to_path.items():
            content_hash = registry.url_to_hash[url]
            duplicate = registry.is_duplicate(url)
            images.append(
                {
                    "url": url,
                    "localPath": local_path,
                    "hash": content_hash,
                    "duplicate": duplicate,
                    "originalFile": registry.hash_to_path[content_hash] if duplicate else None,
                    "fileName": os.path.basename(local_path),
                    "directory": os.path.dirname(local_path),
                }
            )
        hash_map = [
            {"hash": content_hash, "localPath": local_path, "fileName": os.path.basename(local_path)}
            for content_hash, local_path in registry.hash_to_path.items()
        ]
        return cls(
            base_output_dir=str(base_output_dir),
            statistics=replace(stats),
            images=images,
            hash_map=hash_map,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at,
            "base_output_dir": self.base_output_dir,
            "statistics": self.statistics.to_dict(),
            "images": self.images,
            "hash_map": self.hash_map,
        }

    def write(self, output_path: Union[str, Path]) -> Path:
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        with output.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)
        logger.info("Manifest saved: %s", output)
        return output


__all__ = ["DownloadStats", "Manifest"]
