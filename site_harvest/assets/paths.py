# site_harvest/assets/paths.py
"""
Local paths for downloaded assets.

An asset keeps the origin's own layout under its hostname::

    https://example.com/assets/images/logo.png
      -> <root>/example.com/assets/images/logo.png

so references stay stable when the tree is later bulk-moved (e.g. to a CDN).
"""
from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Union
from urllib.parse import unquote, urlsplit

__all__ = ["derive_path", "simple_hash", "fallback_path", "with_hash_suffix"]

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
FALLBACK_DIR = "fallback"


def simple_hash(text: str) -> str:
    """31-multiplier 32-bit string hash in base 36. Non-cryptographic, used for fallback names only."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    h = abs(h)
    if h == 0:
        return "0"
    digits = []
    while h:
        h, rem = divmod(h, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def fallback_path(asset_url: str, output_root: Union[str, Path]) -> Path:
    return Path(output_root) / FALLBACK_DIR / f"image_{simple_hash(asset_url)}.jpg"


def derive_path(asset_url: str, output_root: Union[str, Path]) -> Path:
    """``{output_root}/{hostname}/{path}``; malformed URLs go to ``fallback/``.

    ``.`` and ``..`` segments are dropped so a path never leaves its host directory;
    a segment the filesystem cannot hold (NUL byte) sends the URL to ``fallback/``.
    """
    try:
        parts = urlsplit(asset_url)
        host = parts.hostname
    except ValueError:
        return fallback_path(asset_url, output_root)
    if not host or parts.scheme not in ("http", "https"):
        return fallback_path(asset_url, output_root)

    segments = [s for s in unquote(parts.path).split("/") if s not in ("", ".", "..")]
    if not segments or any("\x00" in s for s in segments):
        return fallback_path(asset_url, output_root)
    return Path(output_root, host, *segments)


def with_hash_suffix(path: Path, content_hash: str) -> Path:
    """``logo.png`` -> ``logo-<hash8>.png``; keeps two contents from sharing one path."""
    suffix = PurePosixPath(path.name).suffix
    stem = path.name[: -len(suffix)] if suffix else path.name
    return path.with_name(f"{stem}-{content_hash[:8]}{suffix}")
