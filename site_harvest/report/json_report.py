# site_harvest/report/json_report.py

"""
JSON report for SiteHarvest.

Serializes a HarvestReport to a file; the image manifest is saved next to it.
"""
import json
from pathlib import Path

from site_harvest.aggregator import HarvestReport


def manifest_path_for(output_path: Path | str) -> Path:
    """``out/result.json`` -> ``out/result_image_manifest.json``."""
    output = Path(output_path)
    return output.with_name(f"{output.stem}_image_manifest.json")


def render_json(report: HarvestReport, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Save *report* as JSON at *output_path*.

    :param report: aggregated crawl report
    :param output_path: path of the JSON file
    :param pretty: indent with two spaces
    :return: Path of the saved file

    Example:
    ```python
    from site_harvest.report.json_report import render_json
    report_path = render_json(report, 'output/result.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        json.dump(report.to_dict(), f, ensure_ascii=False, indent=2 if pretty else None)

    return output
