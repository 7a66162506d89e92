# File: site_harvest/report/__init__.py
"""site_harvest.report: JSON, HTML and sitemap outputs of a crawl."""

from __future__ import annotations

from site_harvest.report.html_report import render_html
from site_harvest.report.json_report import manifest_path_for, render_json
from site_harvest.report.sitemap import render_sitemap

__all__ = ["render_json", "render_html", "render_sitemap", "manifest_path_for"]
