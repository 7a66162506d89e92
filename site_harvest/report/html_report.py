# File: site_harvest/report/html_report.py
"""site_harvest.report.html_report: HTML crawl summary rendered with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from site_harvest.aggregator import HarvestReport

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "report.html.j2"


def render_html(
    report: HarvestReport,
    template_dir: Optional[Union[Path, str]],
    output_path: Union[Path, str],
) -> Path:
    """Render the HTML report from a template and save it.

    Args:
        report: aggregated crawl report.
        template_dir: directory holding ``report.html.j2``; *None* uses the packaged template.
        output_path: path of the resulting HTML file.

    Returns:
        Path of the saved HTML file.

    Example:
    ```python
    from site_harvest.report.html_report import render_html
    html_path = render_html(report, template_dir=None, output_path='output/report.html')
    ```
    """
    template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "base_url": report.base_url,
        "scraped_at": report.scraped_at,
        "pages": report.pages,
        "failed_pages": report.failed_pages,
        "statistics": report.statistics,
        "image_results": report.image_results,
    }

    html_content = template.render(**context)
    output_path.write_text(html_content, encoding="utf-8")

    return output_path
