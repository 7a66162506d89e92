# File: tests/test_downloader.py
from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest
from aiohttp import web

from site_harvest.assets.downloader import AssetDownloader, content_hash
from site_harvest.crawler.models import ImageInfo, PageRecord
from site_harvest.errors import AssetHTTPError, AssetTimeoutError, AssetTooLargeError, MalformedAssetUrlError

LOGO = b"\x89PNG fake logo bytes"
PHOTO = b"\xff\xd8 fake jpeg bytes"


def image_app(hits: dict) -> web.Application:
    """Small image server; ``hits`` counts requests per path."""

    async def static(request: web.Request) -> web.Response:
        hits[request.path_qs] = hits.get(request.path_qs, 0) + 1
        body = {
            "/img/logo.png": LOGO,
            "/copy/logo-again.png": LOGO,
            "/img/photo.jpg": PHOTO,
            "/img/v.png?v=1": b"version one",
            "/img/v.png?v=2": b"version two",
            "/nest/photo": b"bare photo",
            "/nest/photo/large.png": b"large photo",
        }.get(request.path_qs)
        if body is None:
            raise web.HTTPNotFound()
        return web.Response(body=body, content_type="image/png")

    async def huge(request: web.Request) -> web.Response:
        hits[request.path_qs] = hits.get(request.path_qs, 0) + 1
        return web.Response(body=b"x" * 5000, content_type="image/png")

    async def stream(request: web.Request) -> web.StreamResponse:
        hits[request.path_qs] = hits.get(request.path_qs, 0) + 1
        resp = web.StreamResponse(headers={"Content-Type": "image/png"})
        resp.enable_chunked_encoding()
        await resp.prepare(request)
        for _ in range(10):
            await resp.write(b"y" * 500)
        await resp.write_eof()
        return resp

    async def raw(request: web.Request) -> web.Response:
        # body differs per URL, so no two raw URLs deduplicate
        return web.Response(body=request.raw_path.encode(), content_type="image/png")

    async def slow(request: web.Request) -> web.Response:
        await asyncio.sleep(1)
        return web.Response(body=b"late")

    app = web.Application()
    app.router.add_get("/big/huge.png", huge)
    app.router.add_get("/big/stream.png", stream)
    app.router.add_get("/slow.png", slow)
    app.router.add_get("/raw/{tail:.*}", raw)
    app.router.add_get("/{tail:.*}", static)
    return app


@pytest.mark.asyncio()
async def test_identical_bytes_stored_once(serve, tmp_path):
    hits: dict = {}
    base = await serve(image_app(hits))
    first, second = f"{base}/img/logo.png", f"{base}/copy/logo-again.png"

    async with AssetDownloader(tmp_path, delay=0) as downloader:
        result = await downloader.download_all([first, second])
        manifest = downloader.generate_manifest()

    assert [r.source_url for r in result.success] == [first]
    assert [r.source_url for r in result.duplicates] == [second]
    original = result.success[0]
    dup = result.duplicates[0]
    assert dup.local_path == original.local_path
    assert dup.duplicate_of == original.local_path
    assert dup.content_hash == original.content_hash == content_hash(LOGO)

    files = [p for p in tmp_path.rglob("*") if p.is_file()]
    assert files == [Path(original.local_path)]
    assert Path(original.local_path) == tmp_path / "127.0.0.1" / "img" / "logo.png"
    assert Path(original.local_path).read_bytes() == LOGO

    stats = result.statistics
    assert (stats.total_urls, stats.unique_files, stats.duplicates, stats.failed) == (2, 1, 1, 0)
    assert stats.total_size_bytes == len(LOGO)

    entries = {e["url"]: e for e in manifest.images}
    assert entries[first]["duplicate"] is False
    assert entries[first]["originalFile"] is None
    assert entries[second]["duplicate"] is True
    assert entries[second]["localPath"] == entries[first]["localPath"]
    assert entries[second]["originalFile"] == original.local_path
    assert len(manifest.hash_map) == 1


@pytest.mark.asyncio()
async def test_same_url_is_fetched_once(serve, tmp_path):
    hits: dict = {}
    base = await serve(image_app(hits))
    url = f"{base}/img/photo.jpg"

    async with AssetDownloader(tmp_path, delay=0) as downloader:
        result = await downloader.download_all([url, url])
        again = await downloader.fetch(url)

    assert hits["/img/photo.jpg"] == 1
    assert len(result.success) == 1
    assert again.local_path == result.success[0].local_path
    assert downloader.stats.total_urls == 1


@pytest.mark.asyncio()
async def test_declared_size_over_limit_is_rejected(serve, tmp_path):
    base = await serve(image_app({}))
    url = f"{base}/big/huge.png"

    async with AssetDownloader(tmp_path, delay=0, max_size=1000) as downloader:
        with pytest.raises(AssetTooLargeError) as exc_info:
            await downloader.fetch(url)

    assert exc_info.value.size == 5000
    assert "Image too large" in exc_info.value.reason
    assert not any(p.is_file() for p in tmp_path.rglob("*"))


@pytest.mark.asyncio()
async def test_streamed_body_over_limit_is_rejected(serve, tmp_path):
    base = await serve(image_app({}))
    url = f"{base}/big/stream.png"

    async with AssetDownloader(tmp_path, delay=0, max_size=1000) as downloader:
        result = await downloader.download_all([url])

    assert result.success == []
    assert len(result.failed) == 1
    assert result.failed[0].url == url
    assert result.failed[0].error.startswith("Image too large")
    assert result.statistics.failed == 1
    assert not any(p.is_file() for p in tmp_path.rglob("*"))


@pytest.mark.asyncio()
async def test_slow_asset_times_out(serve, tmp_path):
    base = await serve(image_app({}))

    async with AssetDownloader(tmp_path, delay=0, timeout=0.2) as downloader:
        with pytest.raises(AssetTimeoutError):
            await downloader.fetch(f"{base}/slow.png")


@pytest.mark.asyncio()
async def test_failures_do_not_stop_the_batch(serve, tmp_path):
    hits: dict = {}
    base = await serve(image_app(hits))
    urls = [f"{base}/missing.png", "not a url", f"{base}/img/photo.jpg"]

    async with AssetDownloader(tmp_path, delay=0) as downloader:
        result = await downloader.download_all(urls)
        with pytest.raises(AssetHTTPError) as exc_info:
            await downloader.fetch(f"{base}/missing.png")

    assert [f.url for f in result.failed] == urls[:2]
    assert result.failed[0].error == "HTTP 404"
    assert [r.source_url for r in result.success] == [urls[2]]
    assert exc_info.value.status == 404
    # the cached failure is re-raised without a new request
    assert hits["/missing.png"] == 1
    assert result.statistics.failed == 2


@pytest.mark.asyncio()
async def test_malformed_url_is_reported(tmp_path):
    async with AssetDownloader(tmp_path, delay=0) as downloader:
        with pytest.raises(MalformedAssetUrlError):
            await downloader.fetch("javascript:alert(1)")


@pytest.mark.asyncio()
async def test_path_collision_gets_hash_suffix(serve, tmp_path):
    base = await serve(image_app({}))
    one, two = f"{base}/img/v.png?v=1", f"{base}/img/v.png?v=2"

    async with AssetDownloader(tmp_path, delay=0) as downloader:
        result = await downloader.download_all([one, two])

    first, second = result.success
    assert Path(first.local_path) == tmp_path / "127.0.0.1" / "img" / "v.png"
    expected = f"v-{content_hash(b'version two')[:8]}.png"
    assert Path(second.local_path) == tmp_path / "127.0.0.1" / "img" / expected
    assert Path(first.local_path).read_bytes() == b"version one"
    assert Path(second.local_path).read_bytes() == b"version two"


@pytest.mark.asyncio()
async def test_encoded_nul_in_path_goes_to_fallback(serve, tmp_path):
    base = await serve(image_app({}))
    nul, ok = f"{base}/raw/a%00b.png", f"{base}/raw/ok.png"

    async with AssetDownloader(tmp_path, delay=0) as downloader:
        result = await downloader.download_all([nul, ok])

    assert result.failed == []
    assert [r.source_url for r in result.success] == [nul, ok]
    assert Path(result.success[0].local_path).parent == tmp_path / "fallback"
    assert Path(result.success[1].local_path) == tmp_path / "127.0.0.1" / "raw" / "ok.png"


@pytest.mark.parametrize(
    "order",
    [("/nest/photo", "/nest/photo/large.png"), ("/nest/photo/large.png", "/nest/photo")],
)
@pytest.mark.asyncio()
async def test_file_and_directory_with_the_same_name(serve, tmp_path, order):
    base = await serve(image_app({}))
    urls = [f"{base}{path}" for path in order]

    async with AssetDownloader(tmp_path, delay=0) as downloader:
        result = await downloader.download_all(urls)

    assert result.failed == []
    assert [r.source_url for r in result.success] == urls
    stored = {r.source_url: Path(r.local_path) for r in result.success}
    assert stored[f"{base}/nest/photo"].read_bytes() == b"bare photo"
    assert stored[f"{base}/nest/photo/large.png"].read_bytes() == b"large photo"
    # whichever came first keeps its mirrored path
    assert stored[urls[0]] == tmp_path / "127.0.0.1" / order[0].lstrip("/")


@pytest.mark.asyncio()
async def test_progress_and_page_annotation(serve, tmp_path):
    base = await serve(image_app({}))
    logo, copy = f"{base}/img/logo.png", f"{base}/copy/logo-again.png"
    page = PageRecord(
        url=f"{base}/",
        level=1,
        images=[ImageInfo(src=logo), ImageInfo(src=copy), ImageInfo(src=f"{base}/missing.png")],
    )
    events = []

    async with AssetDownloader(tmp_path, delay=0) as downloader:
        await downloader.download_all([i.src for i in page.images], on_progress=events.append)
        downloader.apply_to_pages([page])

    assert [(e["current"], e["total"]) for e in events] == [(1, 3), (2, 3), (3, 3)]
    first, second, missing = page.images
    assert first.local_path == second.local_path is not None
    assert (first.duplicate, second.duplicate) == (False, True)
    assert first.hash == second.hash == content_hash(LOGO)
    assert missing.local_path is None and missing.hash is None


@pytest.mark.asyncio()
async def test_manifest_written_as_json(serve, tmp_path):
    base = await serve(image_app({}))

    async with AssetDownloader(tmp_path / "images", delay=0) as downloader:
        await downloader.download_all([f"{base}/img/logo.png", f"{base}/copy/logo-again.png"])
        path = downloader.generate_manifest().write(tmp_path / "out" / "manifest.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["base_output_dir"] == str(tmp_path / "images")
    assert data["statistics"]["unique_files"] == 1
    assert data["statistics"]["duplicates"] == 1
    assert data["statistics"]["total_size_mb"] == "0.00"
    assert [e["fileName"] for e in data["images"]] == ["logo.png", "logo.png"]
