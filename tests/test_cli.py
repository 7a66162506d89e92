# File: tests/test_cli.py
"""Tests for the CLI (`site_harvest.cli`) using click.testing.CliRunner.
They cover the `crawl` and `config` commands, `--version` and error handling.
"""
import asyncio
import json

import pytest
from click.testing import CliRunner

import site_harvest.cli as cli_module
from site_harvest.assets.manifest import DownloadStats, Manifest
from site_harvest.cli import cli
from site_harvest.crawler.crawler import CrawlResult
from site_harvest.crawler.models import PageRecord


@pytest.fixture()
def cfg_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        json.dumps(
            {
                "base_url": "https://example.com/",
                "max_pages": 10,
                "delay": 0,
                "timeout": 1.0,
                "user_agent": "Agent/1.0",
                "output_dir": str(tmp_path / "output"),
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture(autouse=True)
def patch_start_crawl(monkeypatch):
    """Patch start_crawl to return a canned result without touching the network."""
    seen = []

    async def fake_crawl(cfg):
        seen.append(cfg)
        return CrawlResult(
            base_url="https://example.com",
            pages=[PageRecord(url="https://example.com", level=1, title="Home", page_type="homepage")],
            crawler_stats={"total_urls": 1, "by_level": {"level1": 1}},
            manifest=Manifest(base_output_dir="output/images", statistics=DownloadStats()),
        )

    monkeypatch.setattr(cli_module, "start_crawl", fake_crawl)
    return seen


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "SiteHarvest" in result.output


def test_show_config(cfg_file):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "--limit", "3", "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["base_url"].rstrip("/") == "https://example.com"
    assert data["max_pages"] == 3


def test_missing_config_file_is_rejected(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(tmp_path / "nope.yaml"), "config"])
    assert result.exit_code != 0


def test_crawl_stdout(cfg_file):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "crawl"])
    assert result.exit_code == 0
    output = json.loads(result.output)
    assert output["base_url"] == "https://example.com"
    assert output["pages"][0]["title"] == "Home"
    assert output["statistics"]["total_pages"] == 1


def test_crawl_no_images_flag(cfg_file, patch_start_crawl):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "crawl", "--no-images"])
    assert result.exit_code == 0
    assert patch_start_crawl[0].download_images is False


def test_crawl_json_file_with_manifest(tmp_path, cfg_file):
    out = tmp_path / "out" / "result.json"
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "crawl", "--json", str(out)])
    assert result.exit_code == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["pages"][0]["url"] == "https://example.com"
    manifest = tmp_path / "out" / "result_image_manifest.json"
    assert manifest.exists()
    assert json.loads(manifest.read_text(encoding="utf-8"))["statistics"]["total_urls"] == 0


def test_crawl_html_and_sitemap_files(tmp_path, cfg_file):
    html_out = tmp_path / "report.html"
    sitemap_out = tmp_path / "sitemap.xml"
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["--config", str(cfg_file), "crawl", "--html", str(html_out), "--sitemap", str(sitemap_out)],
    )
    assert result.exit_code == 0
    assert "Home" in html_out.read_text(encoding="utf-8")
    assert b"<loc>https://example.com</loc>" in sitemap_out.read_bytes()


def test_crawl_timeout(monkeypatch, cfg_file):
    # a crawl that outlives --crawl-timeout
    async def slow(cfg):
        await asyncio.sleep(2)
        return CrawlResult(base_url="https://example.com")

    monkeypatch.setattr(cli_module, "start_crawl", slow)

    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "crawl", "--crawl-timeout", "0.2"])
    assert result.exit_code != 0
    assert "did not finish" in result.output
