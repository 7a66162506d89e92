# === FILE: site_harvest/cli.py ===
#!/usr/bin/env python3
"""
Command-line entry point of SiteHarvest.

Commands:
  crawl     Crawl the site from the config, download images, write outputs
  config    Show the effective configuration

Group options:
  --config PATH       Path to the YAML/JSON config (default: configs/default.yaml)
  --limit INT         Page budget (overrides max_pages)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stdout only if omitted)
  --log-format FORMAT Logging format string

crawl options:
  --json PATH         Save the crawl result as JSON (image manifest saved beside it)
  --html PATH         Save an HTML summary
  --sitemap PATH      Save sitemap.xml
  --template DIR      Directory with report.html.j2 (packaged template by default)
  --pretty            Indent JSON printed to stdout
  --no-images         Skip the image download phase
  --crawl-timeout SEC Timeout for the whole job (seconds)

Also:
  --version, -v       Show the SiteHarvest version

Example:
  site-harvest --config configs/default.yaml crawl --json output/result.json --sitemap output/sitemap.xml
"""
import asyncio
import sys
from pathlib import Path

import click

from site_harvest import __version__
from site_harvest.aggregator import aggregate_results
from site_harvest.config import load_config
from site_harvest.engine import start_crawl
from site_harvest.logger import init_logging, redirect_console
from site_harvest.report.html_report import render_html
from site_harvest.report.json_report import manifest_path_for, render_json
from site_harvest.report.sitemap import render_sitemap

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteHarvest, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/default.yaml',
    show_default=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to the YAML/JSON config file.'
)
@click.option(
    '--limit', '-l', 'limit',
    type=click.IntRange(min=1),
    default=None,
    help='Page budget (overrides max_pages)'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stdout if omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, limit, log_level, log_file, log_format):
    """SiteHarvest command group."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')
    if limit is not None:
        cfg = cfg.model_copy(update={'max_pages': limit})
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the crawl result as JSON'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save an HTML summary'
)
@click.option(
    '--sitemap', '-s', 'sitemap_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save sitemap.xml'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Directory with report.html.j2'
)
@click.option(
    '--pretty', is_flag=True,
    help='Indent JSON printed to stdout (2 spaces)'
)
@click.option(
    '--no-images', 'no_images', is_flag=True,
    help='Skip the image download phase'
)
@click.option(
    '--crawl-timeout', 'crawl_timeout',
    type=float,
    default=None,
    help='Timeout for the whole job (seconds)'
)
@click.pass_context
def crawl(ctx, json_output, html_output, sitemap_output, template_dir, pretty, no_images, crawl_timeout):
    """Crawl the site and write the requested outputs."""
    cfg = ctx.obj['config']
    if no_images:
        cfg = cfg.model_copy(update={'download_images': False})
    to_stdout = not (json_output or html_output or sitemap_output)
    if to_stdout:
        redirect_console(sys.stderr)
    else:
        click.echo(f'Starting crawl: {cfg.start_url}')
    try:
        if crawl_timeout:
            result = asyncio.run(
                asyncio.wait_for(start_crawl(cfg), timeout=crawl_timeout)
            )
        else:
            result = asyncio.run(start_crawl(cfg))
    except asyncio.TimeoutError:
        print_error(f'Crawl did not finish within {crawl_timeout} seconds')
    except Exception as e:
        print_error(f'Crawl failed: {e}')

    report = aggregate_results(result)

    # Nothing to save: print to stdout
    if to_stdout:
        click.echo(report.json(pretty=pretty))
        return

    if json_output:
        try:
            saved_json = render_json(report, json_output)
            click.echo(f'JSON report: {saved_json}')
            if result.manifest is not None:
                saved_manifest = result.manifest.write(manifest_path_for(json_output))
                click.echo(f'Image manifest: {saved_manifest}')
        except OSError as e:
            print_error(f'Failed to save JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Failed to save HTML: {e}')

    if sitemap_output:
        try:
            saved_sitemap = render_sitemap(report, sitemap_output)
            click.echo(f'Sitemap: {saved_sitemap}')
        except OSError as e:
            print_error(f'Failed to save sitemap: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Print the effective configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
