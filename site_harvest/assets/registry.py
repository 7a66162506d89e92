# site_harvest/assets/registry.py
"""
In-memory content-addressable index of one download job.

Invariant: for every hash there is exactly one canonical file
(``hash_to_path``). Each URL maps to a hash and to a path; a duplicate URL
maps to the canonical path of the first URL that produced the same bytes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class HashRegistry:
    hash_to_path: Dict[str, str] = field(default_factory=dict)
    url_to_hash: Dict[str, str] = field(default_factory=dict)
    url_to_path: Dict[str, str] = field(default_factory=dict)
    hash_to_url: Dict[str, str] = field(default_factory=dict)

    def path_for_hash(self, content_hash: str) -> Optional[str]:
        return self.hash_to_path.get(content_hash)

    def owner_of_path(self, path: str) -> Optional[str]:
        """Hash whose canonical file lives at *path*, if any."""
        for content_hash, canonical in self.hash_to_path.items():
            if canonical == path:
                return content_hash
        return None

    def register_original(self, url: str, content_hash: str, path: str) -> None:
        if content_hash in self.hash_to_path:
            raise ValueError(f"hash {content_hash} already stored at {self.hash_to_path[content_hash]}")
        self.hash_to_path[content_hash] = path
        self.hash_to_url[content_hash] = url
        self.url_to_hash[url] = content_hash
        self.url_to_path[url] = path

    def register_duplicate(self, url: str, content_hash: str) -> str:
        """Point *url* at the existing file for *content_hash* and return that path."""
        path = self.hash_to_path[content_hash]
        self.url_to_hash[url] = content_hash
        self.url_to_path[url] = path
        return path

    def __contains__(self, url: object) -> bool:
        return url in self.url_to_path

    def is_duplicate(self, url: str) -> bool:
        content_hash = self.url_to_hash.get(url)
        return content_hash is not None and self.hash_to_url.get(content_hash) != url

    def original_path(self, url: str) -> Optional[str]:
        content_hash = self.url_to_hash.get(url)
        return self.hash_to_path.get(content_hash) if content_hash else None
